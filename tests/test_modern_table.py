from domain.models import Dialect
from parsing.modern_table import ModernTableExtractor, detail_id, parse_venue_block
from parsing.table_extractor import extract_tournaments
from tests.factories import modern_continuation_row, modern_document, modern_header_row, soup


def test_header_row_fields():
    doc = modern_document(
        [
            modern_header_row(
                "12.05.2026 - 14.05.2026",
                "Spring Open",
                "699982",
                organizer="TC Musterstadt",
                location="Tennisanlage am See, Bonn",
                entries=[("HE", "LK1-25"), ("DE", "LK1-25")],
            )
        ]
    )
    tournaments = ModernTableExtractor().extract(doc)
    assert len(tournaments) == 1
    t = tournaments[0]
    assert t.id == "699982"
    assert t.title == "Spring Open"
    assert t.date == "12.05.2026 - 14.05.2026"
    assert t.organizer == "TC Musterstadt"
    assert t.location == "Tennisanlage am See, Bonn"
    assert [(e.competition, e.skill_level) for e in t.entries] == [("HE", "LK1-25"), ("DE", "LK1-25")]


def test_h3_layout_and_alternative_venue_terminator():
    doc = modern_document(
        [modern_header_row("01.07.2026", "Summer Cup", "11", heading="h3", location_end="Offen für", location="Halle 2")]
    )
    t = ModernTableExtractor().extract(doc)[0]
    assert t.title == "Summer Cup"
    assert t.location == "Halle 2"


def test_continuation_rows_attach_by_id_or_to_latest():
    doc = modern_document(
        [
            modern_header_row("01.07.2026", "First", "1", entries=[("HE", "LK1")]),
            modern_header_row("02.07.2026", "Second", "2", entries=[("DE", "LK2")]),
            modern_continuation_row("1", [("HD", "LK3")]),
            modern_continuation_row(None, [("DD", "LK4")]),
            modern_continuation_row("999", [("MX", "LK5")]),
        ]
    )
    first, second = ModernTableExtractor().extract(doc)
    assert [e.competition for e in first.entries] == ["HE", "HD"]
    assert [e.competition for e in second.entries] == ["DE", "DD", "MX"]


def test_every_entry_attached_exactly_once():
    doc = modern_document(
        [
            modern_header_row("01.07.2026", "First", "1", entries=[("A", "1")]),
            modern_continuation_row("1", [("B", "2"), ("C", "3")]),
            modern_header_row("02.07.2026", "Second", "2", entries=[("D", "4")]),
            modern_continuation_row("1", [("E", "5")]),
        ]
    )
    tournaments = ModernTableExtractor().extract(doc)
    names = [e.competition for t in tournaments for e in t.entries]
    assert sorted(names) == ["A", "B", "C", "D", "E"]
    assert [e.competition for e in tournaments[0].entries] == ["A", "B", "C", "E"]


def test_header_without_id_hands_entries_to_latest_tournament():
    doc = modern_document(
        [
            modern_header_row("01.07.2026", "First", "1", entries=[("HE", "LK1")]),
            modern_header_row("02.07.2026", "No Link", None, entries=[("DE", "LK2")]),
            modern_continuation_row(None, [("HD", "LK3")]),
        ]
    )
    tournaments = ModernTableExtractor().extract(doc)
    assert [t.id for t in tournaments] == ["1"]
    assert [e.competition for e in tournaments[0].entries] == ["HE", "DE", "HD"]


def test_leading_header_without_id_is_dropped_with_its_entries():
    doc = modern_document(
        [
            modern_header_row("01.07.2026", "No Link", None, entries=[("HE", "LK1")]),
            modern_header_row("02.07.2026", "Linked", "2", entries=[("DE", "LK2")]),
        ]
    )
    tournaments = ModernTableExtractor().extract(doc)
    assert [t.id for t in tournaments] == ["2"]
    assert [e.competition for e in tournaments[0].entries] == ["DE"]


def test_continuation_before_any_header_is_dropped():
    doc = modern_document(
        [
            modern_continuation_row(None, [("X", "1")]),
            modern_header_row("01.07.2026", "First", "1"),
        ]
    )
    tournaments = ModernTableExtractor().extract(doc)
    assert len(tournaments) == 1
    assert tournaments[0].entries == []


def test_name_cell_without_span_uses_cell_text():
    row = (
        '<tr><td class="daterange">01.07.2026</td>'
        '<td><h2><a href="#detail/5">Cup</a></h2><p>Veranstalter: TC A Austragungsort: Halle Meldeschluss: x</p></td>'
        '<td class="competitionAbbr"><table><tr><td>Herren Einzel</td><td>LK4</td></tr>'
        "<tr><td></td><td>LK9</td></tr></table></td></tr>"
    )
    t = ModernTableExtractor().extract(modern_document([row]))[0]
    assert [(e.competition, e.skill_level) for e in t.entries] == [("Herren Einzel", "LK4")]


def test_venue_block_parsing():
    text = "Veranstalter: TC Blau-Weiß\n  Austragungsort: Platz 1, Speyer\nMeldeschluss: 01.05.2026"
    assert parse_venue_block(text) == ("TC Blau-Weiß", "Platz 1, Speyer")
    assert parse_venue_block("Veranstalter: TC A") == ("", "")


def test_detail_id():
    assert detail_id("https://www.wtb-tennis.de/turniere.html#detail/699982") == "699982"
    assert detail_id("https://www.wtb-tennis.de/turniere.html") == ""


def test_missing_table_and_idempotence():
    assert ModernTableExtractor().extract(soup("<div>nothing</div>")) == []
    rows = [
        modern_header_row("01.07.2026", "First", "1", entries=[("HE", "LK1")]),
        modern_continuation_row("1", [("HD", "LK3")]),
    ]
    first = extract_tournaments(modern_document(rows), Dialect.MODERN)
    second = extract_tournaments(modern_document(rows), Dialect.MODERN)
    assert [t.to_dict() for t in first] == [t.to_dict() for t in second]
