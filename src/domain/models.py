"""Domain models for the tournament ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from parsing.table_extractor import TableExtractor


class Dialect(str, Enum):
    """Request/markup shape a federation endpoint speaks."""

    LEGACY = "legacy"  # form-post, flat result table with rowspan groups
    MODERN = "modern"  # query parameters, nested paragraph table


@dataclass(slots=True)
class CompetitionEntry:
    competition: str
    skill_level: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"competition": self.competition, "skill_level": self.skill_level}


@dataclass(slots=True)
class Tournament:
    id: str
    title: str
    url: str = ""
    date: str = ""
    location: str = ""
    organizer: str = ""
    lat: str = ""
    lon: str = ""
    entries: List[CompetitionEntry] = field(default_factory=list)

    def with_coordinates(self, lat: str, lon: str) -> "Tournament":
        """Return a detached copy carrying the given coordinates."""
        return Tournament(
            id=self.id,
            title=self.title,
            url=self.url,
            date=self.date,
            location=self.location,
            organizer=self.organizer,
            lat=lat,
            lon=lon,
            entries=[CompetitionEntry(e.competition, e.skill_level) for e in self.entries],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "date": self.date,
            "location": self.location,
            "organizer": self.organizer,
            "lat": self.lat,
            "lon": self.lon,
            "entries": [e.to_dict() for e in self.entries],
        }


@dataclass(frozen=True, slots=True)
class GeoRecord:
    """Geocoordinate cache record.

    Either a success record (coordinates present, ``failed`` False) or a
    failure record (empty coordinates, ``failed`` True, ``fail_count`` >= 1).
    """

    lat: str = ""
    lon: str = ""
    display_name: str = ""
    last_attempt: int = 0
    fail_count: int = 0
    failed: bool = False

    @classmethod
    def success(cls, lat: str, lon: str, display_name: str = "") -> "GeoRecord":
        return cls(lat=lat, lon=lon, display_name=display_name)

    @classmethod
    def failure(cls, *, fail_count: int, last_attempt: int) -> "GeoRecord":
        return cls(last_attempt=last_attempt, fail_count=max(1, fail_count), failed=True)

    @classmethod
    def empty(cls) -> "GeoRecord":
        return cls()

    @property
    def has_coordinates(self) -> bool:
        return bool(self.lat) and bool(self.lon)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "display_name": self.display_name,
            "last_attempt": self.last_attempt,
            "fail_count": self.fail_count,
            "is_failed": self.failed,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GeoRecord":
        return cls(
            lat=str(raw.get("lat") or ""),
            lon=str(raw.get("lon") or ""),
            display_name=str(raw.get("display_name") or ""),
            last_attempt=int(raw.get("last_attempt") or 0),
            fail_count=int(raw.get("fail_count") or 0),
            failed=bool(raw.get("is_failed", False)),
        )


@dataclass(frozen=True)
class SourceDescriptor:
    id: str
    url: str
    name: str
    dialect: Dialect
    default_coordinates: GeoRecord
    region: str
    trusted_properties: str = ""
    param_prefix: str = ""
    extractor: Optional["TableExtractor"] = field(default=None, compare=False, repr=False)
