"""Static catalog of the regional federation endpoints.

Each descriptor is bound to its dialect's table extractor once, when the catalog
is loaded.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Union

from domain.models import Dialect, GeoRecord, SourceDescriptor
from parsing.table_extractor import extractor_for
from utils.html_utils import dedupe

logger = logging.getLogger(__name__)

_LIGA_NU = "https://{}.liga.nu/cgi-bin/WebObjects/nuLigaTENDE.woa/wa/tournamentCalendar"

RLP_TRUSTED_PROPERTIES = (
    '{"tournamentsFilter":{"ageCategory":1,"ageGroupJuniors":1,"ageGroupSeniors":1,"circuit":1,'
    '"region":1,"fedRankValuation":1,"nationalValuation":1,"fedRank":1,"name":1,"city":1,'
    '"startDate":1,"endDate":1,"firstResult":1,"maxResults":1}}'
    "8732571a008a8bee386504005773291f579958de"
)

WTB_TRUSTED_PROPERTIES = (
    'a:1:{s:17:"tournamentsFilter";a:15:{s:11:"ageCategory";i:1;s:15:"ageGroupJuniors";i:1;'
    's:15:"ageGroupSeniors";i:1;s:7:"circuit";i:1;s:16:"fedRankValuation";i:1;'
    's:17:"nationalValuation";i:1;s:4:"type";i:1;s:7:"fedRank";i:1;s:6:"region";i:1;'
    's:4:"name";i:1;s:4:"city";i:1;s:9:"startDate";i:1;s:7:"endDate";i:1;'
    's:11:"firstResult";i:1;s:10:"maxResults";i:1;}}'
    "0084e646e91ed3b7e155957c5d3b286f2602eebc"
)


def _legacy(
    code: str, name: str, lat: str, lon: str, region: str, host: Optional[str] = None
) -> SourceDescriptor:
    # liga.nu subdomain defaults to the lowercased federation code
    return SourceDescriptor(
        id=code,
        url=_LIGA_NU.format(host or code.lower()),
        name=name,
        dialect=Dialect.LEGACY,
        default_coordinates=GeoRecord.success(lat, lon),
        region=region,
    )


FEDERATIONS: List[SourceDescriptor] = [
    _legacy("BAD", "Badischer Tennisverband", "49.34003", "8.68514", "Baden-Württemberg", host="baden"),
    _legacy("HTV", "Hessischer Tennisverband", "50.0770372", "8.7553832", "Hessen"),
    SourceDescriptor(
        id="RLP",
        url="https://www.rlp-tennis.de/spielbetrieb/turniere/appTournament.html",
        name="Rheinland-Pfälzischer Tennisverband",
        dialect=Dialect.MODERN,
        default_coordinates=GeoRecord.success("49.8335079", "8.0138431"),
        region="Rheinland-Pfalz",
        trusted_properties=RLP_TRUSTED_PROPERTIES,
        param_prefix="tx_nuportalrs_nuportalrs",
    ),
    _legacy("STV", "Sächsischer Tennisverband", "51.3633218", "12.4132917", "Sachsen"),
    _legacy(
        "TMV", "Tennisverband Mecklenburg-Vorpommern", "54.0829601", "12.0889703", "Mecklenburg-Vorpommern"
    ),
    _legacy("TSA", "Tennisverband Sachsen-Anhalt", "52.1063933", "11.6015097", "Sachsen-Anhalt"),
    _legacy("TTV", "Thüringer Tennisverband", "51.0012441", "11.3327579", "Thüringen"),
    _legacy("TVN", "Tennisverband Niederrhein", "51.4784721", "6.9804422", "Nordrhein-Westfalen"),
    SourceDescriptor(
        id="WTB",
        url="https://www.wtb-tennis.de/turniere/turnierkalender/app/nuTournaments.html",
        name="Württembergischer Tennisbund",
        dialect=Dialect.MODERN,
        default_coordinates=GeoRecord.success("48.853488", "9.1373019"),
        region="Baden-Württemberg",
        trusted_properties=WTB_TRUSTED_PROPERTIES,
        param_prefix="tx_nuportalrs_tournaments",
    ),
]


def load_catalog(descriptors: Optional[Iterable[SourceDescriptor]] = None) -> Dict[str, SourceDescriptor]:
    """Index descriptors by id, attaching each dialect's extractor."""
    catalog: Dict[str, SourceDescriptor] = {}
    for descriptor in descriptors if descriptors is not None else FEDERATIONS:
        if descriptor.extractor is None:
            descriptor = replace(descriptor, extractor=extractor_for(descriptor.dialect))
        catalog[descriptor.id] = descriptor
    return catalog


def parse_source_ids(source_ids: Union[str, Iterable[str], None]) -> List[str]:
    if source_ids is None:
        return []
    if isinstance(source_ids, str):
        source_ids = source_ids.split(",")
    return dedupe(s.strip() for s in source_ids if s and s.strip())


def select_sources(
    catalog: Dict[str, SourceDescriptor], source_ids: Union[str, Iterable[str], None] = None
) -> List[SourceDescriptor]:
    """Descriptors for the requested ids (all when none given); unknown ids are ignored."""
    wanted = parse_source_ids(source_ids)
    if not wanted:
        return list(catalog.values())
    selected = []
    for source_id in wanted:
        descriptor = catalog.get(source_id)
        if descriptor is None:
            logger.info("Ignoring unknown source id %r", source_id)
            continue
        selected.append(descriptor)
    return selected
