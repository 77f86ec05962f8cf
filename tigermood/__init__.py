from .api_client import ApiClient
from .config import Settings
from .errors import ApiError, AuthenticationError, ServerError, ValidationError
from .query_cache import QueryCache
from .storage import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationError",
    "FileTokenStore",
    "MemoryTokenStore",
    "QueryCache",
    "ServerError",
    "Settings",
    "TokenStore",
    "ValidationError",
]
