"""Thin client for the Nominatim search endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import httpx

from config import settings
from core.async_http import AsyncHttpError, request

logger = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    def __init__(self, message: str, *, query: str | None = None):
        super().__init__(message)
        self.query = query


@dataclass(slots=True)
class Candidate:
    lat: str
    lon: str
    display_name: str


def _candidate(raw: Any) -> Optional[Candidate]:
    if not isinstance(raw, dict):
        return None
    lat, lon = raw.get("lat"), raw.get("lon")
    if lat in (None, "") or lon in (None, ""):
        return None
    return Candidate(lat=str(lat), lon=str(lon), display_name=str(raw.get("display_name") or ""))


class NominatimGeocoder:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str = settings.GEOCODER_URL,
        limit: int = settings.GEOCODER_LIMIT,
        language: str = settings.GEOCODER_LANGUAGE,
    ):
        self._client = client
        self.url = url
        self.limit = limit
        self.language = language

    async def search(self, query: str) -> List[Candidate]:
        """Ranked candidates for a free-text query; raises GeocodingError on any transport or payload problem."""
        params = {
            "q": query,
            "limit": str(self.limit),
            "format": "jsonv2",
            "accept-language": self.language,
        }
        try:
            # geocoder failures are recorded with backoff, never retried inline
            resp = await request(self.url, params=params, client=self._client, retries=0)
            payload = resp.json()
        except AsyncHttpError as e:
            raise GeocodingError(str(e), query=query) from e
        except ValueError as e:
            raise GeocodingError(f"Invalid JSON from geocoder: {e}", query=query) from e
        if not isinstance(payload, list):
            raise GeocodingError(f"Unexpected geocoder payload: {type(payload).__name__}", query=query)
        candidates = [c for c in (_candidate(item) for item in payload) if c is not None]
        logger.debug("Geocoder returned %d candidate(s) for %r", len(candidates), query)
        return candidates
