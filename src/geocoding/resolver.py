"""Tiered geocoordinate resolution for tournaments.

Lookup order: location tier, organizer tier, tournament tier, then one external
query. Successes fan out to every tier the tournament has a key for; failures
are recorded on the tournament tier only, with progressive backoff metadata.
The resolver never raises: cache and geocoder problems degrade to an empty
record and the caller substitutes the source's default coordinates.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol

from db.geo_cache import GeoCacheStore, location_key, organizer_key
from db.kv_backend import CacheStoreError
from domain.models import GeoRecord, Tournament
from geocoding.nominatim import Candidate, GeocodingError
from geocoding.place_names import guess_place
from tracking.retry_policy import should_retry

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    async def search(self, query: str) -> List[Candidate]: ...  # pragma: no cover


def pick_candidate(candidates: List[Candidate], region: str) -> Optional[Candidate]:
    """First candidate whose display name contains ``region`` (case-sensitive)."""
    for candidate in candidates:
        if region in candidate.display_name:
            return candidate
    return None


def geocoding_query(tournament: Tournament) -> str:
    if tournament.location:
        return tournament.location
    if tournament.organizer:
        return guess_place(tournament.organizer)
    return ""


class GeoResolver:
    def __init__(
        self,
        store: GeoCacheStore,
        geocoder: Geocoder,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.geocoder = geocoder
        self.clock = clock

    def _cached(self, key: str) -> Optional[GeoRecord]:
        try:
            return self.store.get(key)
        except CacheStoreError as e:
            logger.error("Cache read failed for %s, treating as miss: %s", key, e)
            return None

    def _write(self, key: str, record: GeoRecord) -> None:
        try:
            self.store.set(key, record)
        except CacheStoreError as e:
            logger.error("Failed to persist key %s: %s", key, e)

    async def resolve(self, region: str, tournament: Tournament) -> GeoRecord:
        if tournament.location:
            key = location_key(tournament.location, region)
            hit = self._cached(key)
            if hit is not None and hit.has_coordinates:
                logger.debug("Cache HIT (location): %s for tournament %s", key, tournament.id)
                return hit

        if tournament.organizer:
            key = organizer_key(tournament.organizer, region)
            hit = self._cached(key)
            if hit is not None and hit.has_coordinates:
                logger.debug("Cache HIT (organizer): %s for tournament %s", key, tournament.id)
                return hit

        previous = self._cached(tournament.id)
        now = self.clock()
        if previous is not None:
            if previous.has_coordinates:
                logger.debug("Cache HIT (tournament): %s", tournament.id)
                return previous
            if previous.failed and not should_retry(previous, now):
                logger.debug(
                    "Skipping geocoding retry for tournament %s (failed %d times)",
                    tournament.id,
                    previous.fail_count,
                )
                return previous

        query = geocoding_query(tournament)
        if not query:
            logger.debug("Tournament %s has neither location nor organizer", tournament.id)
            return GeoRecord.empty()

        logger.debug("Cache MISS for %s: querying geocoder with %r", tournament.id, query)
        try:
            match = pick_candidate(await self.geocoder.search(query), region)
        except GeocodingError as e:
            logger.error("Geocoding request failed for tournament %s: %s", tournament.id, e)
            match = None

        if match is None:
            fail_count = (previous.fail_count if previous is not None and previous.failed else 0) + 1
            logger.warning(
                "No suitable geocoordinates found for tournament %s in region %s", tournament.id, region
            )
            failure = GeoRecord.failure(fail_count=fail_count, last_attempt=int(now))
            self._write(tournament.id, failure)
            return failure

        record = GeoRecord.success(match.lat, match.lon, match.display_name)
        self._write(tournament.id, record)
        if tournament.location:
            self._write(location_key(tournament.location, region), record)
        if tournament.organizer:
            self._write(organizer_key(tournament.organizer, region), record)
        return record
