import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"


class TokenStore(ABC):
    """Key/value session storage holding the access/refresh token pair."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    def _write_many(self, values: Dict[str, Optional[str]]) -> None:
        # None means remove; subclasses override to make this one write
        for key, value in values.items():
            if value is None:
                self.remove(key)
            else:
                self.set(key, value)

    @property
    def access_token(self) -> Optional[str]:
        return self.get(ACCESS_TOKEN_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self.get(REFRESH_TOKEN_KEY)

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self._write_many({ACCESS_TOKEN_KEY: access_token, REFRESH_TOKEN_KEY: refresh_token})

    def clear(self) -> None:
        self._write_many({ACCESS_TOKEN_KEY: None, REFRESH_TOKEN_KEY: None})


class MemoryTokenStore(TokenStore):
    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self._items: Dict[str, str] = {}
        if access_token:
            self._items[ACCESS_TOKEN_KEY] = access_token
        if refresh_token:
            self._items[REFRESH_TOKEN_KEY] = refresh_token

    def get(self, key):
        return self._items.get(key)

    def set(self, key, value):
        self._items[key] = value

    def remove(self, key):
        self._items.pop(key, None)


class FileTokenStore(TokenStore):
    """JSON file on disk, the local equivalent of browser localStorage.

    Every write rewrites the whole file through a temp file and os.replace,
    so readers see either the old pair or the new pair, never a mix.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable token file %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".tokens-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key):
        return self._load().get(key)

    def set(self, key, value):
        self._write_many({key: value})

    def remove(self, key):
        self._write_many({key: None})

    def _write_many(self, values):
        data = self._load()
        for key, value in values.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
        self._save(data)
