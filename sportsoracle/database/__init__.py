"""Database layer."""

from sportsoracle.database.api_cache import CachedValue, PersistentTTLCache, make_cache_key
from sportsoracle.database.connection import get_connection, get_db, init_db, reset_db

__all__ = [
    # Connection
    "get_connection",
    "get_db",
    "init_db",
    "reset_db",
    # Cache
    "CachedValue",
    "PersistentTTLCache",
    "make_cache_key",
]
