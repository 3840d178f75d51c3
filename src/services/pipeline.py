"""Ingestion pass orchestration: fetch, extract and geocode every selected source."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import httpx

from config import settings
from config.federations import load_catalog, select_sources
from core.async_http import build_client
from db.geo_cache import CacheStatistics, GeoCacheStore
from db.kv_backend import CacheStoreError
from domain.models import SourceDescriptor, Tournament
from geocoding.nominatim import NominatimGeocoder
from geocoding.resolver import GeoResolver
from parsing.table_extractor import extractor_for
from scraping.page_fetcher import FetchError, fetch_document

logger = logging.getLogger(__name__)

SourceIds = Union[str, Iterable[str], None]


class IngestionPipeline:
    """Runs ingestion passes against one cache store.

    The store is owned by the caller; the pipeline never closes it.
    """

    def __init__(
        self,
        cache_store: GeoCacheStore,
        *,
        sources: Optional[Iterable[SourceDescriptor]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: Optional[int] = settings.MAX_CONCURRENT_SOURCES,
        fetch_retries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cache_store = cache_store
        self.catalog: Dict[str, SourceDescriptor] = load_catalog(sources)
        self.transport = transport
        self.max_concurrency = max_concurrency if max_concurrency and max_concurrency > 0 else None
        self.fetch_retries = fetch_retries
        self.clock = clock

    def default_dates(self, date_from: str = "", date_to: str = "") -> Tuple[str, str]:
        today = datetime.fromtimestamp(self.clock()).date()
        if not date_from:
            date_from = today.strftime(settings.DATE_FORMAT)
        if not date_to:
            date_to = (today + timedelta(days=settings.DEFAULT_WINDOW_DAYS)).strftime(settings.DATE_FORMAT)
        return date_from, date_to

    def _log_statistics_and_maybe_cleanup(self) -> None:
        try:
            stats = self.cache_store.statistics(self.clock())
        except CacheStoreError as e:
            logger.error("Failed to read cache statistics: %s", e)
            return
        logger.info(
            "Cache stats: %d total, %d successful, %d failed, %d pending retry, %d permanently failed",
            stats.total_entries,
            stats.successful,
            stats.failed,
            stats.pending_retry,
            stats.permanently_failed,
        )
        if (
            stats.total_entries > settings.AUTO_CLEANUP_MIN_TOTAL
            and stats.permanently_failed > settings.AUTO_CLEANUP_MIN_PERMANENT
        ):
            logger.info("Cache has many failed entries, cleaning up old ones")
            self.cleanup_old_failed_entries()

    async def _process_source(
        self,
        client: httpx.AsyncClient,
        resolver: GeoResolver,
        source: SourceDescriptor,
        date_from: str,
        date_to: str,
        comp_type: str,
    ) -> List[Tournament]:
        try:
            document = await fetch_document(
                client, source, date_from, date_to, comp_type, retries=self.fetch_retries
            )
        except FetchError as e:
            logger.error("Skipping source %s for this pass: %s", source.id, e)
            return []

        extractor = source.extractor or extractor_for(source.dialect)
        tournaments = extractor.extract(document)
        default = source.default_coordinates
        out: List[Tournament] = []
        # one geocoder request at a time per source
        for tournament in tournaments:
            geo = await resolver.resolve(source.region, tournament)
            if geo.has_coordinates:
                out.append(tournament.with_coordinates(geo.lat, geo.lon))
            else:
                logger.warning(
                    "Using default coordinates of %s for tournament %s (%s)",
                    source.id,
                    tournament.id,
                    tournament.title,
                )
                out.append(tournament.with_coordinates(default.lat, default.lon))
        logger.info("Source %s yielded %d tournament(s)", source.id, len(out))
        return out

    async def run(
        self,
        date_from: str = "",
        date_to: str = "",
        comp_type: str = "",
        source_ids: SourceIds = None,
    ) -> List[Tournament]:
        date_from, date_to = self.default_dates(date_from, date_to)
        selected = select_sources(self.catalog, source_ids)
        logger.info(
            "Get Tournaments from: %s to: %s, compType: %s, sources: %s",
            date_from,
            date_to,
            comp_type,
            ",".join(s.id for s in selected),
        )
        self._log_statistics_and_maybe_cleanup()

        results: List[Tournament] = []
        lock = asyncio.Lock()
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async with build_client(self.transport) as client:
            resolver = GeoResolver(self.cache_store, NominatimGeocoder(client), clock=self.clock)

            async def worker(source: SourceDescriptor) -> None:
                if semaphore is not None:
                    async with semaphore:
                        found = await self._process_source(
                            client, resolver, source, date_from, date_to, comp_type
                        )
                else:
                    found = await self._process_source(client, resolver, source, date_from, date_to, comp_type)
                async with lock:
                    results.extend(found)

            outcomes = await asyncio.gather(*(worker(s) for s in selected), return_exceptions=True)

        for source, outcome in zip(selected, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Source %s failed unexpectedly: %r", source.id, outcome)
        logger.info("Pass finished with %d tournament(s) from %d source(s)", len(results), len(selected))
        return results

    def fetch_and_geocode(
        self,
        date_from: str = "",
        date_to: str = "",
        comp_type: str = "",
        source_ids: SourceIds = None,
    ) -> List[Tournament]:
        """Synchronous entry point; partial results on per-source failure, never raises for a source."""
        return asyncio.run(self.run(date_from, date_to, comp_type, source_ids))

    def warmup(
        self,
        date_from: str = "",
        date_to: str = "",
        comp_type: str = "",
        source_ids: SourceIds = None,
    ) -> int:
        """Run a pass only to fill the cache; returns the number of tournaments seen."""
        started = time.perf_counter()
        count = len(self.fetch_and_geocode(date_from, date_to, comp_type, source_ids))
        logger.info("Cache warmup finished: %d tournaments in %.1fs", count, time.perf_counter() - started)
        return count

    def get_cache_statistics(self) -> CacheStatistics:
        return self.cache_store.statistics(self.clock())

    def cleanup_old_failed_entries(self) -> int:
        return self.cache_store.cleanup_old_failed_entries(self.clock())
