"""Tiered geocoordinate cache on top of the durable key/value backend.

Three key namespaces share one backend:
    ``<tournament id>``                  tournament tier (only tier with failure metadata)
    ``loc:<normalized location>:<region>``  location tier
    ``org:<normalized organizer>:<region>`` organizer tier

With the in-memory mirror enabled, the whole backend is loaded once at open time
and reads are served from memory; writes go to the backend first and update the
mirror only after the durable write succeeded, so both modes observe the same
state.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from threading import RLock
from typing import Dict, Iterator, Optional, Tuple

from domain.models import GeoRecord
from db.kv_backend import CacheStoreError, KeyValueBackend, SqliteKeyValueBackend
from tracking.retry_policy import is_cleanup_candidate, is_permanently_failed, should_retry

logger = logging.getLogger(__name__)

LOCATION_PREFIX = "loc:"
ORGANIZER_PREFIX = "org:"

TIER_TOURNAMENT = "tournament"
TIER_LOCATION = "location"
TIER_ORGANIZER = "organizer"


def _normalize(text: str) -> str:
    return text.strip().lower()


def location_key(location: str, region: str) -> str:
    return f"{LOCATION_PREFIX}{_normalize(location)}:{region}"


def organizer_key(organizer: str, region: str) -> str:
    return f"{ORGANIZER_PREFIX}{_normalize(organizer)}:{region}"


def tier_of(key: str) -> str:
    if key.startswith(LOCATION_PREFIX):
        return TIER_LOCATION
    if key.startswith(ORGANIZER_PREFIX):
        return TIER_ORGANIZER
    return TIER_TOURNAMENT


def encode_record(record: GeoRecord) -> bytes:
    return json.dumps(record.to_dict(), ensure_ascii=False).encode("utf-8")


def decode_record(raw: bytes) -> GeoRecord:
    try:
        return GeoRecord.from_dict(json.loads(raw.decode("utf-8")))
    except (ValueError, TypeError, AttributeError) as e:
        raise CacheStoreError(f"Corrupt cache record: {e}") from e


@dataclass
class CacheStatistics:
    total_entries: int = 0
    successful: int = 0
    failed: int = 0
    pending_retry: int = 0
    permanently_failed: int = 0
    tournament_cache_size: int = 0
    location_cache_size: int = 0
    organizer_cache_size: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class GeoCacheStore:
    def __init__(self, backend: KeyValueBackend, *, memory: bool = True):
        self._backend = backend
        self.memory = memory
        self._lock = RLock()
        self._mirror: Dict[str, Dict[str, GeoRecord]] = {
            TIER_TOURNAMENT: {},
            TIER_LOCATION: {},
            TIER_ORGANIZER: {},
        }
        if memory:
            self._preload()
        logger.info("Cache initialized: memory=%s", memory)

    @classmethod
    def open(cls, path: str, *, memory: bool = True) -> "GeoCacheStore":
        return cls(SqliteKeyValueBackend(path), memory=memory)

    def _preload(self) -> None:
        for key, raw in self._backend.items():
            try:
                record = decode_record(raw)
            except CacheStoreError as e:
                logger.error("Skipping unreadable cache entry %r during preload: %s", key, e)
                continue
            text_key = key.decode("utf-8")
            self._mirror[tier_of(text_key)][text_key] = record
        logger.info(
            "Preloaded %d tournament, %d location, %d organizer entries",
            len(self._mirror[TIER_TOURNAMENT]),
            len(self._mirror[TIER_LOCATION]),
            len(self._mirror[TIER_ORGANIZER]),
        )

    # --- basic operations -------------------------------------------------
    def get(self, key: str) -> Optional[GeoRecord]:
        if self.memory:
            with self._lock:
                return self._mirror[tier_of(key)].get(key)
        raw = self._backend.get(key.encode("utf-8"))
        return decode_record(raw) if raw is not None else None

    def set(self, key: str, record: GeoRecord) -> None:
        with self._lock:
            self._backend.set(key.encode("utf-8"), encode_record(record))
            if self.memory:
                self._mirror[tier_of(key)][key] = record

    def delete(self, key: str) -> None:
        with self._lock:
            self._backend.delete(key.encode("utf-8"))
            if self.memory:
                self._mirror[tier_of(key)].pop(key, None)

    def items(self) -> Iterator[Tuple[str, GeoRecord]]:
        if self.memory:
            with self._lock:
                snapshot = [
                    (key, record) for tier in self._mirror.values() for key, record in tier.items()
                ]
            yield from sorted(snapshot)
            return
        for key, raw in self._backend.items():
            yield key.decode("utf-8"), decode_record(raw)

    # --- aggregate queries ------------------------------------------------
    def statistics(self, now: Optional[float] = None) -> CacheStatistics:
        now = time.time() if now is None else now
        stats = CacheStatistics()
        for key, record in self.items():
            stats.total_entries += 1
            tier = tier_of(key)
            if tier == TIER_LOCATION:
                stats.location_cache_size += 1
            elif tier == TIER_ORGANIZER:
                stats.organizer_cache_size += 1
            else:
                stats.tournament_cache_size += 1
            if record.failed:
                stats.failed += 1
                if should_retry(record, now):
                    stats.pending_retry += 1
                if is_permanently_failed(record):
                    stats.permanently_failed += 1
            elif record.has_coordinates:
                stats.successful += 1
        return stats

    def cleanup_old_failed_entries(self, now: Optional[float] = None) -> int:
        """Delete failure records with >= 4 failures whose last attempt is over 30 days old."""
        now = time.time() if now is None else now
        stale = [key for key, record in self.items() if is_cleanup_candidate(record, now)]
        cleaned = 0
        for key in stale:
            try:
                self.delete(key)
            except CacheStoreError as e:
                logger.error("Failed to delete key %s during cleanup: %s", key, e)
                continue
            cleaned += 1
        logger.info("Cleaned up %d old failed geocoding entries", cleaned)
        return cleaned

    def close(self) -> None:
        self._backend.close()
