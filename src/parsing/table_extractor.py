"""Dialect dispatch for the federation result-table extractors.

Each request dialect has exactly one extractor. The catalog resolves it once per
source via :func:`extractor_for`, so rows are never re-dispatched.
"""

from __future__ import annotations

from typing import Dict, List, Protocol, runtime_checkable

from bs4 import BeautifulSoup  # type: ignore

from domain.models import Dialect, Tournament
from parsing.legacy_table import LegacyTableExtractor
from parsing.modern_table import ModernTableExtractor


@runtime_checkable
class TableExtractor(Protocol):
    def extract(self, document: BeautifulSoup) -> List[Tournament]: ...  # pragma: no cover


_EXTRACTORS: Dict[Dialect, TableExtractor] = {
    Dialect.LEGACY: LegacyTableExtractor(),
    Dialect.MODERN: ModernTableExtractor(),
}


def extractor_for(dialect: Dialect) -> TableExtractor:
    return _EXTRACTORS[Dialect(dialect)]


def extract_tournaments(document: BeautifulSoup, dialect: Dialect) -> List[Tournament]:
    return extractor_for(dialect).extract(document)
