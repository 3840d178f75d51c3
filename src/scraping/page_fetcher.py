"""Fetch one federation's tournament calendar page.

Legacy sources take a URL-encoded form POST; modern sources take a GET with
bracketed query parameters under a per-source prefix.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
from bs4 import BeautifulSoup  # type: ignore
from bs4.builder import ParserRejectedMarkup  # type: ignore

from config import settings
from core.async_http import AsyncHttpError, request
from domain.models import Dialect, SourceDescriptor
from parsing.errors import DocumentParseError

logger = logging.getLogger(__name__)

DEFAULT_PARAM_PREFIX = "tx_nuportalrs_tournaments"

AGE_CATEGORIES: Dict[str, str] = {
    "Herren+Einzel": "general",
    "Herren+Doppel": "general",
    "Damen+Einzel": "general",
    "Damen+Doppel": "general",
    "Senioren+Einzel": "seniors",
    "Senioren+Doppel": "seniors",
    "Jugend+Einzel": "juniors",
    "Jugend+Doppel": "juniors",
}


class FetchError(RuntimeError):
    def __init__(self, message: str, *, source_id: str):
        super().__init__(message)
        self.source_id = source_id


@dataclass(slots=True)
class PageRequest:
    method: str
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, str] = field(default_factory=dict)


def age_category(comp_type: str) -> str:
    """Map a competition-type filter to the modern ``ageCategory`` value ("" = all)."""
    if not comp_type:
        return ""
    category = AGE_CATEGORIES.get(comp_type.replace(" ", "+"))
    if category is None:
        logger.warning("Unknown competition type: %s. Using default age category", comp_type)
        return ""
    return category


def build_request(
    source: SourceDescriptor, date_from: str, date_to: str, comp_type: str = ""
) -> PageRequest:
    if source.dialect == Dialect.LEGACY:
        data = {
            "queryName": "",
            "queryDateFrom": date_from,
            "queryDateTo": date_to,
            "valuationState": settings.LEGACY_VALUATION_STATE,
            "federation": source.id,
            "region": settings.LEGACY_REGION,
        }
        if comp_type:
            # form encoding turns "Herren+Einzel" into Herren%2BEinzel
            data["compType"] = comp_type
        return PageRequest(method="POST", url=source.url, data=data)

    prefix = source.param_prefix or DEFAULT_PARAM_PREFIX
    params = {
        f"{prefix}[__trustedProperties]": source.trusted_properties,
        f"{prefix}[tournamentsFilter][ageCategory]": age_category(comp_type),
        f"{prefix}[tournamentsFilter][fedRankValuation]": settings.MODERN_FED_RANK_VALUATION,
        f"{prefix}[tournamentsFilter][startDate]": date_from,
        f"{prefix}[tournamentsFilter][endDate]": date_to,
        f"{prefix}[tournamentsFilter][firstResult]": settings.MODERN_FIRST_RESULT,
        f"{prefix}[tournamentsFilter][maxResults]": settings.MODERN_MAX_RESULTS,
    }
    return PageRequest(method="GET", url=source.url, params=params)


def parse_document(html: str) -> BeautifulSoup:
    if not html.strip():
        raise DocumentParseError("Empty document", context={"length": len(html)})
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as e:
        raise DocumentParseError(f"Unparseable document: {e}", context={"length": len(html)}) from e


async def fetch_document(
    client: httpx.AsyncClient,
    source: SourceDescriptor,
    date_from: str,
    date_to: str,
    comp_type: str = "",
    *,
    retries: Optional[int] = None,
) -> BeautifulSoup:
    """Fetch and parse the calendar page of ``source``; raises FetchError on any failure."""
    req = build_request(source, date_from, date_to, comp_type)
    logger.info(
        "Get Tournaments in: %s from: %s to: %s, compType: %s", source.id, date_from, date_to, comp_type
    )
    try:
        resp = await request(
            req.url,
            method=req.method,
            params=req.params or None,
            data=req.data or None,
            client=client,
            retries=retries,
        )
        return parse_document(resp.text)
    except AsyncHttpError as e:
        raise FetchError(f"HTTP request failed for {source.id}: {e}", source_id=source.id) from e
    except DocumentParseError as e:
        raise FetchError(f"Failed to parse HTML document for {source.id}: {e}", source_id=source.id) from e
