"""Extractor for the modern nested result table (query-parameter dialect).

Header rows carry a ``daterange`` cell followed by an info cell mentioning the
organizer label. The info cell holds the title link (under ``h2`` or ``h3``
depending on the federation) and a paragraph with organizer and venue. The
competitions live in a nested table inside the ``competitionAbbr`` cell and may
continue on following rows, which are attached either to the tournament their
detail link names or to the most recent one.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag  # type: ignore

from domain.models import CompetitionEntry, Tournament
from utils.html_utils import cell_text, clean_cell, direct_cells, direct_rows, has_class, text_between

logger = logging.getLogger(__name__)

DETAIL_ID_MARKER = "detail/"
DATE_CLASS = "daterange"
COMPETITION_CLASS = "competitionAbbr"
ORGANIZER_LABEL = "Veranstalter"
ORGANIZER_START = "Veranstalter: "
ORGANIZER_END = " Austragungsort"
LOCATION_START = "Austragungsort: "
# WTB closes the venue with the entry deadline, RLP with the eligibility line.
LOCATION_ENDS = (" Meldeschluss", " Offen für")


def detail_id(url: str) -> str:
    """Tournament id from a modern detail link (``...turniersuche.html#detail/699982``)."""
    if DETAIL_ID_MARKER not in url:
        return ""
    return url.split(DETAIL_ID_MARKER, 1)[1].strip()


def _result_table(document: BeautifulSoup) -> Optional[Tag]:
    container = document.select_one(".responsive-individual")
    if container is None:
        return None
    return container if container.name == "table" else container.find("table")


def _header_cells(cells: List[Tag]) -> Optional[Tuple[Tag, Tag]]:
    for idx, cell in enumerate(cells):
        if not has_class(cell, DATE_CLASS):
            continue
        for later in cells[idx + 1 :]:
            if ORGANIZER_LABEL in later.get_text():
                return cell, later
        return None
    return None


def _title_anchor(info_cell: Tag) -> Optional[Tag]:
    return info_cell.select_one("h2 a") or info_cell.select_one("h3 a") or info_cell.find("a")


def parse_venue_block(text: str) -> Tuple[str, str]:
    """Split the info paragraph into ``(organizer, location)``; missing parts are empty."""
    text = clean_cell(text)
    organizer = text_between(text, ORGANIZER_START, ORGANIZER_END) or ""
    location = ""
    for end in LOCATION_ENDS:
        found = text_between(text, LOCATION_START, end)
        if found is not None:
            location = found
            break
    return organizer.strip(), location.strip()


def competition_entries(cell: Tag) -> List[CompetitionEntry]:
    sub_table = cell.find("table")
    if sub_table is None:
        return []
    entries: List[CompetitionEntry] = []
    for sub_row in direct_rows(sub_table):
        sub_cells = direct_cells(sub_row)
        if not sub_cells:
            continue
        first = sub_cells[0]
        name = ""
        if has_class(first, "name"):
            name = cell_text(first.find("span"))
        if not name:
            name = cell_text(first)
        # third cell (result) carries nothing we keep
        level = cell_text(sub_cells[1]) if len(sub_cells) > 1 else ""
        if name:
            entries.append(CompetitionEntry(competition=name, skill_level=level))
    return entries


class ModernTableExtractor:
    def extract(self, document: BeautifulSoup) -> List[Tournament]:
        table = _result_table(document)
        if table is None:
            logger.debug("No .responsive-individual table in modern document")
            return []

        committed: List[Tournament] = []
        index: Dict[str, int] = {}

        for row in direct_rows(table):
            if not row.get_text(strip=True):
                continue
            cells = direct_cells(row)
            if not cells:
                continue
            competition_cell = next((c for c in cells if has_class(c, COMPETITION_CLASS)), None)

            target: Optional[Tournament]
            header = _header_cells(cells)
            if header is not None:
                target = self._header_target(header, committed, index)
            else:
                target = self._continuation_target(cells, competition_cell, committed, index)

            if competition_cell is not None and target is not None:
                target.entries.extend(competition_entries(competition_cell))

        return committed

    def _header_target(
        self, header: Tuple[Tag, Tag], committed: List[Tournament], index: Dict[str, int]
    ) -> Optional[Tournament]:
        tournament = self._build_tournament(*header)
        if not tournament.title or not tournament.id:
            logger.debug(
                "Dropping modern header row without title or id: title=%r url=%r",
                tournament.title,
                tournament.url,
            )
            # its competitions still belong to the latest committed tournament
            return committed[-1] if committed else None
        if tournament.id in index:
            return committed[index[tournament.id]]
        index[tournament.id] = len(committed)
        committed.append(tournament)
        return tournament

    def _continuation_target(
        self,
        cells: List[Tag],
        competition_cell: Optional[Tag],
        committed: List[Tournament],
        index: Dict[str, int],
    ) -> Optional[Tournament]:
        for cell in cells:
            if cell is competition_cell:
                continue
            anchor = cell.find("a", href=True)
            if anchor is None:
                continue
            matched = index.get(detail_id(anchor["href"]))
            if matched is not None:
                return committed[matched]
            break
        return committed[-1] if committed else None

    def _build_tournament(self, date_cell: Tag, info_cell: Tag) -> Tournament:
        anchor = _title_anchor(info_cell)
        title = cell_text(anchor)
        url = anchor.get("href", "") if anchor is not None else ""
        paragraph = info_cell.find("p")
        organizer, location = parse_venue_block((paragraph or info_cell).get_text(" "))
        if not location:
            logger.debug("No venue in modern row for %r", title)
        return Tournament(
            id=detail_id(url),
            title=title,
            url=url,
            date=cell_text(date_cell),
            location=location,
            organizer=organizer,
        )
