"""HTML helper utilities shared by the table extractors."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from bs4 import Tag  # type: ignore

TAG_RE = re.compile(r"<[^>]+>")
NBSP_RE = re.compile(r"&nbsp;?")
WS_RE = re.compile(r"\s+")


def strip_tags(html: str) -> str:
    return TAG_RE.sub("", html)


def clean_cell(text: str) -> str:
    text = strip_tags(text)
    text = NBSP_RE.sub(" ", text)
    text = WS_RE.sub(" ", text).strip()
    return text


def cell_text(cell: Optional[Tag]) -> str:
    return clean_cell(cell.get_text(" ", strip=True)) if cell else ""


def has_class(cell: Tag, name: str) -> bool:
    return name in (cell.get("class") or [])


def text_between(text: str, start: str, end: str) -> Optional[str]:
    """Return the substring between the first ``start`` and the following ``end``.

    None when either marker is missing.
    """
    begin = text.find(start)
    if begin < 0:
        return None
    begin += len(start)
    stop = text.find(end, begin)
    if stop < 0:
        return None
    return text[begin:stop]


def direct_rows(table: Tag) -> Iterator[Tag]:
    """Yield the rows owned by ``table`` itself, skipping rows of nested tables."""
    for child in table.find_all(recursive=False):
        if child.name == "tr":
            yield child
        elif child.name in ("thead", "tbody", "tfoot"):
            yield from child.find_all("tr", recursive=False)


def direct_cells(row: Tag) -> list[Tag]:
    return row.find_all("td", recursive=False)


def dedupe(seq: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in seq:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
