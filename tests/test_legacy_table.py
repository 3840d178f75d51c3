from domain.models import Dialect
from parsing.legacy_table import LegacyTableExtractor, detail_id
from parsing.table_extractor import extract_tournaments
from tests.factories import legacy_continuation_row, legacy_document, legacy_start_row, soup


def test_start_row_with_continuation_yields_one_tournament():
    doc = legacy_document(
        [
            legacy_start_row("12.05.2026", "Example Cup", "484582", "Herren Einzel", "LK5"),
            legacy_continuation_row("Herren Doppel", "LK8"),
        ]
    )
    tournaments = LegacyTableExtractor().extract(doc)
    assert len(tournaments) == 1
    t = tournaments[0]
    assert t.id == "484582"
    assert t.title == "Example Cup"
    assert t.date == "12.05.2026"
    assert t.organizer == "TC Example e.V."
    assert [(e.competition, e.skill_level) for e in t.entries] == [
        ("Herren Einzel", "LK5"),
        ("Herren Doppel", "LK8"),
    ]


def test_detail_id_stops_at_query_separator():
    assert detail_id("/x/tournamentDetail?tournamentId=484582&federation=BAD") == "484582"
    assert detail_id("/x/tournamentDetail?tournamentId=77#top") == "77"
    assert detail_id("/x/tournamentDetail?id=1") == ""


def test_commit_count_equals_marked_rows_minus_incomplete():
    doc = legacy_document(
        [
            legacy_start_row("01.06.2026", "A Open", "1", "Damen Einzel", "LK10", rowspan=1),
            legacy_start_row("02.06.2026", "", "2", "Damen Einzel", "LK10", rowspan=1),
            legacy_start_row("03.06.2026", "C Open", None, "Damen Einzel", "LK10", rowspan=1),
            legacy_start_row("04.06.2026", "D Open", "4", "Herren Einzel", "LK3", rowspan=1),
        ]
    )
    tournaments = LegacyTableExtractor().extract(doc)
    assert [t.id for t in tournaments] == ["1", "4"]


def test_continuations_of_dropped_row_are_not_misattributed():
    doc = legacy_document(
        [
            legacy_start_row("01.06.2026", "A Open", "1", "Damen Einzel", "LK10"),
            legacy_start_row("02.06.2026", "No Id Open", None, "Herren Einzel", "LK1"),
            legacy_continuation_row("Herren Doppel", "LK2"),
        ]
    )
    tournaments = LegacyTableExtractor().extract(doc)
    assert len(tournaments) == 1
    assert [e.competition for e in tournaments[0].entries] == ["Damen Einzel"]


def test_missing_separator_means_no_organizer(caplog):
    doc = legacy_document([legacy_start_row("12.05.2026", "Example Cup", "9", "Herren Einzel", "LK5", organizer=None)])
    with caplog.at_level("WARNING"):
        tournaments = LegacyTableExtractor().extract(doc)
    assert tournaments[0].organizer == ""
    assert "organizer missing" in caplog.text


def test_empty_rows_and_leading_continuation_are_skipped():
    doc = legacy_document(
        [
            legacy_continuation_row("Orphan", "LK1"),
            "<tr><td> </td><td></td></tr>",
            legacy_start_row("12.05.2026", "Example Cup", "5", "Herren Einzel", "LK5"),
            "<tr><td></td><td>  </td></tr>",
            legacy_continuation_row("Herren Doppel", "LK8"),
        ]
    )
    tournaments = LegacyTableExtractor().extract(doc)
    assert len(tournaments) == 1
    assert [e.competition for e in tournaments[0].entries] == ["Herren Einzel", "Herren Doppel"]


def test_duplicate_ids_merge_entries():
    doc = legacy_document(
        [
            legacy_start_row("12.05.2026", "Example Cup", "5", "Herren Einzel", "LK5", rowspan=1),
            legacy_start_row("12.05.2026", "Example Cup", "5", "Damen Einzel", "LK7", rowspan=1),
        ]
    )
    tournaments = LegacyTableExtractor().extract(doc)
    assert len(tournaments) == 1
    assert [e.competition for e in tournaments[0].entries] == ["Herren Einzel", "Damen Einzel"]


def test_missing_result_table_yields_nothing():
    assert LegacyTableExtractor().extract(soup("<html><body><p>Keine Turniere</p></body></html>")) == []


def test_extraction_is_idempotent():
    rows = [
        legacy_start_row("12.05.2026", "Example Cup", "5", "Herren Einzel", "LK5"),
        legacy_continuation_row("Herren Doppel", "LK8"),
        legacy_start_row("19.05.2026", "Second Cup", "6", "Damen Einzel", "LK9", rowspan=1),
    ]
    first = extract_tournaments(legacy_document(rows), Dialect.LEGACY)
    second = extract_tournaments(legacy_document(rows), Dialect.LEGACY)
    assert [t.to_dict() for t in first] == [t.to_dict() for t in second]
