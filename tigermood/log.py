import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: str | int) -> int:
    """Map a level name or number to a logging level; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""
    resolved = resolve_level(level)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(resolved)
    else:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    if isinstance(level, str) and not isinstance(logging.getLevelName(level.strip().upper()), int):
        logging.getLogger(__name__).warning("Unknown log level %r, using INFO", level)
