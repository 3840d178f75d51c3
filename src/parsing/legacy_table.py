"""Extractor for the legacy flat result table (form-post dialect).

Layout of the ``.result-set`` table:
    start row:        date | title + organizer block | competition | skill level
    continuation row: competition | skill level

A start row is recognised by the ``rowspan`` attribute on its first two cells.
Every following row without that pair adds one more competition entry to the
tournament started last.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag  # type: ignore

from domain.models import CompetitionEntry, Tournament
from utils.html_utils import cell_text, clean_cell, direct_cells, direct_rows

logger = logging.getLogger(__name__)

# Blank-line run between the title anchor and the organizer/address block.
ORGANIZER_SEPARATOR = "\n\t\n\n\n"
DETAIL_ID_MARKER = "tournamentId="


def detail_id(url: str) -> str:
    """Tournament id from a legacy detail link (``...?tournamentId=484582``)."""
    if DETAIL_ID_MARKER not in url:
        return ""
    tail = url.split(DETAIL_ID_MARKER, 1)[1]
    return re.split(r"[&#]", tail, maxsplit=1)[0].strip()


def split_organizer(title_cell: Tag) -> Optional[str]:
    """Organizer text following the blank-line separator, or None if the separator is absent."""
    parts = title_cell.get_text().split(ORGANIZER_SEPARATOR)
    if len(parts) < 2:
        return None
    return clean_cell(parts[1])


def _is_start_row(cells: List[Tag]) -> bool:
    return len(cells) >= 2 and bool(cells[0].get("rowspan")) and bool(cells[1].get("rowspan"))


def _entry(competition_cell: Optional[Tag], level_cell: Optional[Tag]) -> Optional[CompetitionEntry]:
    competition = cell_text(competition_cell)
    level = cell_text(level_cell)
    if not competition and not level:
        return None
    return CompetitionEntry(competition=competition, skill_level=level)


def _result_table(document: BeautifulSoup) -> Optional[Tag]:
    container = document.select_one(".result-set")
    if container is None:
        return None
    return container if container.name == "table" else container.find("table")


class LegacyTableExtractor:
    """Row-group state machine over the legacy result table."""

    def extract(self, document: BeautifulSoup) -> List[Tournament]:
        table = _result_table(document)
        if table is None:
            logger.debug("No .result-set table in legacy document")
            return []

        committed: List[Tournament] = []
        index: Dict[str, int] = {}
        active: Optional[Tournament] = None

        for row in direct_rows(table):
            cells = direct_cells(row)
            if not cells or not row.get_text(strip=True):
                continue

            if _is_start_row(cells):
                tournament = self._start_tournament(cells)
                # a dropped start row keeps its own continuation rows rather than the last committed one
                active = tournament
                if not tournament.title or not tournament.id:
                    logger.debug(
                        "Dropping legacy start row without title or id: title=%r url=%r",
                        tournament.title,
                        tournament.url,
                    )
                    continue
                if tournament.id in index:
                    existing = committed[index[tournament.id]]
                    existing.entries.extend(tournament.entries)
                    active = existing
                    continue
                index[tournament.id] = len(committed)
                committed.append(tournament)
                continue

            if active is None:
                logger.debug("Continuation row before any tournament start; dropped")
                continue
            entry = _entry(cells[0], cells[1] if len(cells) > 1 else None)
            if entry is not None:
                active.entries.append(entry)

        return committed

    def _start_tournament(self, cells: List[Tag]) -> Tournament:
        date_cell, title_cell = cells[0], cells[1]
        anchor = title_cell.find("a")
        title = cell_text(anchor)
        url = anchor.get("href", "") if anchor is not None else ""
        tournament = Tournament(id=detail_id(url), title=title, url=url, date=cell_text(date_cell))

        if title:
            organizer = split_organizer(title_cell)
            if organizer is None:
                logger.warning(
                    "Tournament organizer missing: %s ; Date: %s", title, tournament.date
                )
            else:
                tournament.organizer = organizer

        entry = _entry(
            cells[2] if len(cells) > 2 else None,
            cells[3] if len(cells) > 3 else None,
        )
        if entry is not None:
            tournament.entries.append(entry)
        return tournament
