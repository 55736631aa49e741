from poll_ingest.models import Answer, Table, TableFormat
from poll_ingest.normalizer import normalize_row, normalize_table
from poll_ingest.parser import parse_csv
from poll_ingest.roles import infer_roles

HEADER = ["Pollster", "Start", "End", "Sample", "Link", "Race", "Dem", "GOP"]


def _normalize(rows, columns=HEADER):
    table = Table.build(TableFormat.CSV, columns, rows)
    return table, normalize_table(table, infer_roles(table))


def test_normalize_basic_generic_ballot_row():
    table, result = _normalize(
        [["Acme", "1/20/2026", "2026-01-24", "1,000 LV", "https://acme.example/poll", "", "48%", "45%"]]
    )

    assert result.kept == 1
    assert result.skipped == 0
    record = result.records[0]
    assert record.pollster == "Acme"
    assert record.start_date == "2026-01-20"
    assert record.end_date == "2026-01-24"
    assert record.sample_size == 1000
    assert record.url == "https://acme.example/poll"
    assert record.race is None
    assert record.answers == (Answer("Dem", 48.0), Answer("GOP", 45.0))


def test_rows_without_pollster_or_answers_are_skipped():
    _, result = _normalize(
        [
            ["Acme", "", "", "", "", "", "48", "45"],
            ["", "1/1/2026", "1/2/2026", "500", "", "Note", "", ""],
            ["", "", "", "", "", "", "47", "44"],
            ["Beacon", "", "", "", "", "", "", ""],
        ]
    )

    assert result.kept == 3
    assert result.skipped == 1
    assert result.records[1].pollster is None
    assert result.records[2].answers == ()


def test_unparsable_values_become_none():
    _, result = _normalize([["Acme", "soon", "TBD", "n/a", "see site", "Senate", "48", "--"]])
    record = result.records[0]

    assert record.start_date is None
    assert record.end_date is None
    assert record.sample_size is None
    assert record.url is None
    assert record.race == "Senate"
    assert record.choices() == ["Dem"]


def test_end_date_does_not_fall_back_to_start():
    _, result = _normalize([["Acme", "1/20/2026", "", "", "", "", "48", "45"]])
    assert result.records[0].start_date == "2026-01-20"
    assert result.records[0].end_date is None


def test_numeric_cells_from_typed_sources():
    columns = ["Pollster", "End", "Sample", "Dem"]
    table = Table.build(TableFormat.GVIZ, columns, [["Acme", "Date(2026,0,28)", 1000.0, 48.0]])
    record = normalize_row(table, table.rows[0], infer_roles(table))

    assert record.end_date == "2026-01-28"
    assert record.sample_size == 1000
    assert record.answers == (Answer("Dem", 48.0),)


def test_short_rows_read_missing_cells_as_blank():
    columns = ["Pollster", "Dem", "GOP"]
    table = Table.build(TableFormat.CSV, columns, [["Acme", "48", "45"], ["Beacon", "47"]])
    result = normalize_table(table, infer_roles(table))
    assert result.records[1].answers == (Answer("Dem", 47.0),)


def test_export_fixture_counts(fixture_text):
    table = parse_csv(fixture_text("polls_export.csv")).table
    result = normalize_table(table, infer_roles(table))

    assert result.kept == 32
    assert result.skipped == 1
    siena = next(record for record in result.records if record.pollster == "Siena College, NYT")
    assert siena.sample_size == 1500
    assert siena.population == "RV"
    assert siena.answers == (Answer("Approve", 45.0), Answer("Disapprove", 55.0))
    assert next(record for record in result.records if record.pollster == "Pollster AP3").url is None
