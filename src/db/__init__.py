"""Database package exposing the geocoordinate cache store.

Public API:
"""

from .kv_backend import CacheStoreError, KeyValueBackend, SqliteKeyValueBackend  # noqa: F401
from .geo_cache import (  # noqa: F401
    CacheStatistics,
    GeoCacheStore,
    location_key,
    organizer_key,
)

__all__ = [
    "CacheStoreError",
    "KeyValueBackend",
    "SqliteKeyValueBackend",
    "CacheStatistics",
    "GeoCacheStore",
    "location_key",
    "organizer_key",
]
