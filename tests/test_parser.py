import json

import pytest

from poll_ingest.models import RawPayload, TableFormat
from poll_ingest.parser import (
    ParseFailure,
    ParseStatus,
    parse_csv,
    parse_gviz,
    parse_html_table,
    parse_json,
    parse_payload,
)

SMALL_CSV = (
    "Pollster,Start,End,Sample,Dem,GOP\n"
    "Acme,1/1/2026,1/3/2026,1000,48,45\n"
    "Beacon,1/2/2026,1/4/2026,900,47,44\n"
    "Civic,1/3/2026,1/5/2026,800,46,45\n"
    "Delta,1/4/2026,1/6/2026,700,49,43\n"
    "Echo,1/5/2026,1/7/2026,600,45,46\n"
)


def test_parse_gviz_unwraps_response(fixture_text):
    result = parse_gviz(fixture_text("gviz_response.js"))

    assert result.status is ParseStatus.PARSED
    table = result.table
    assert table.format is TableFormat.GVIZ
    assert table.columns == ("Pollster", "B", "Sample", "Dem", "col_4")
    assert table.rows[0] == ("Acme Research", "Date(2026,0,28)", 1000.0, 48.0, None)
    # formatted value is the fallback when the raw value is null
    assert table.rows[1][1] == "2/3/2026"
    assert table.rows[1][4] is None


def test_parse_gviz_skips_without_marker():
    assert parse_gviz(SMALL_CSV).status is ParseStatus.NOT_APPLICABLE


def test_parse_gviz_broken_argument_stops_chain():
    body = "google.visualization.Query.setResponse({not json});"
    result = parse_payload(RawPayload(url="https://example.com/tq", content_type="text/plain", body=body))

    assert isinstance(result, ParseFailure)
    assert [attempt.status for attempt in result.attempts] == [ParseStatus.INVALID]
    assert result.reasons()[0].startswith("gviz:")


def test_parse_gviz_error_response_is_invalid():
    body = 'google.visualization.Query.setResponse({"status":"error","errors":[]});'
    result = parse_gviz(body)
    assert result.status is ParseStatus.INVALID
    assert "status=error" in result.reason


def test_parse_json_record_array_unions_keys():
    body = json.dumps([{"pollster": "Acme", "dem": 48}, {"pollster": "Beacon", "gop": 44}])
    result = parse_json(body, "application/json")

    assert result.table.format is TableFormat.JSON_OBJECTS
    assert result.table.columns == ("pollster", "dem", "gop")
    assert result.table.rows == (("Acme", 48, None), ("Beacon", None, 44))


def test_parse_json_cols_rows_object():
    body = json.dumps(
        {
            "cols": [{"label": "Pollster"}, {"id": "dem"}, "GOP"],
            "rows": [["Acme", 48, 45], {"c": [{"v": "Beacon"}, {"v": 47}, {"f": "44"}]}],
        }
    )
    result = parse_json(body)

    assert result.table.format is TableFormat.JSON_TABLE
    assert result.table.columns == ("Pollster", "dem", "GOP")
    assert result.table.rows[1] == ("Beacon", 47, "44")


def test_parse_json_data_wrapper():
    body = json.dumps({"data": [{"Pollster": "Acme", "Dem": "48%"}]})
    result = parse_json(body)
    assert result.table.format is TableFormat.JSON_DATA
    assert result.table.row_as_dict(0) == {"Pollster": "Acme", "Dem": "48%"}


def test_parse_json_unknown_shape_is_invalid():
    payload = RawPayload(
        url="https://example.com/config.json",
        content_type="application/json",
        body='{"theme": "dark"}',
    )
    result = parse_payload(payload)

    assert isinstance(result, ParseFailure)
    assert result.attempts[-1].parser == "json"
    assert result.attempts[-1].status is ParseStatus.INVALID
    assert not any(attempt.parser == "csv" for attempt in result.attempts)


def test_parse_json_decode_error_falls_through_to_csv():
    payload = RawPayload(url="https://example.com/polls", content_type="application/json", body=SMALL_CSV)
    table = parse_payload(payload)

    assert table.format is TableFormat.CSV
    assert table.row_count == 5


def test_parse_csv_fixture(fixture_text):
    result = parse_csv(fixture_text("polls_export.csv"), "text/csv")

    table = result.table
    assert table.format is TableFormat.CSV
    assert table.column_count == 13
    assert table.row_count == 33
    assert table.columns[:4] == ("Race", "Pollster", "Start Date", "End Date")
    siena = [row for row in table.rows if row[1] == "Siena College, NYT"]
    assert len(siena) == 1
    assert siena[0][4] == "1,500"


def test_parse_csv_handles_quotes_and_crlf():
    body = (
        'Pollster,Start,End,Sample,Note\r\n'
        '"Acme ""Gold"" Poll",1/1/2026,1/3/2026,1000,"line one\r\nline two"\r\n'
        + "".join(f"P{i},1/1/2026,1/3/2026,500,ok\r\n" for i in range(5))
    )
    table = parse_csv(body).table

    assert table.rows[0][0] == 'Acme "Gold" Poll'
    assert table.rows[0][4] == "line one\r\nline two"
    assert table.row_count == 6


def test_parse_csv_rejects_short_or_ragged_bodies():
    assert parse_csv("a,b,c,d,e\n1,2,3,4,5\n").status is ParseStatus.NOT_APPLICABLE
    assert parse_csv("a,b\n" * 10).status is ParseStatus.NOT_APPLICABLE
    ragged = "a,b,c,d,e,f\n" + "1,2,3\n" * 6
    assert parse_csv(ragged).status is ParseStatus.NOT_APPLICABLE
    assert parse_csv("no delimiter here").status is ParseStatus.NOT_APPLICABLE


def test_parse_csv_accepts_one_short_trailing_field():
    body = "a,b,c,d,e,f\n" + "1,2,3,4,5\n" * 6
    table = parse_csv(body).table
    assert table.row_count == 6
    assert table.cell(table.rows[0], 5) is None


def test_parse_html_table_picks_largest_wide_table(fixture_text):
    result = parse_html_table(fixture_text("published_sheet.html"), "text/html")

    table = result.table
    assert table.format is TableFormat.HTML_TABLE
    assert table.columns == ("Pollster", "Start Date", "End Date", "Sample", "Dem", "GOP")
    assert table.row_count == 2
    assert table.rows[0][0] == "Acme Research"


def test_parse_html_table_synthesizes_headers_for_numeric_first_row():
    body = "<table>" + "<tr><td>1</td><td>2</td><td>3</td><td>4</td><td>5</td></tr>" * 3 + "</table>"
    table = parse_html_table(body).table
    assert table.columns == ("col_1", "col_2", "col_3", "col_4", "col_5")
    assert table.row_count == 3


def test_parse_html_table_ignores_narrow_tables():
    body = "<table><tr><td>Pollster</td><td>Dem</td></tr></table>"
    assert parse_html_table(body).status is ParseStatus.NOT_APPLICABLE


def test_script_payload_yields_no_table(fixture_text):
    payload = RawPayload(
        url="https://example.com/static/app.js",
        content_type="application/javascript",
        body=fixture_text("app_bundle.js"),
    )
    result = parse_payload(payload)

    assert isinstance(result, ParseFailure)
    assert all(attempt.status is ParseStatus.NOT_APPLICABLE for attempt in result.attempts)
    assert any("script" in reason for reason in result.reasons())


def test_csv_content_type_tries_csv_first():
    payload = RawPayload(url="https://example.com/polls.csv", content_type="text/csv", body=SMALL_CSV)
    assert parse_payload(payload).format is TableFormat.CSV


def test_gviz_payload_parses_through_chain(fixture_text):
    payload = RawPayload(
        url="https://docs.google.com/spreadsheets/d/abc/gviz/tq?tqx=out:json",
        content_type="text/javascript",
        body=fixture_text("gviz_response.js"),
    )
    assert parse_payload(payload).format is TableFormat.GVIZ


@pytest.mark.parametrize(
    "body, content_type",
    [
        ("[" * 100000, "application/json"),
        ("google.visualization.Query.setResponse(" + "[" * 100000 + ");", "text/javascript"),
    ],
)
def test_hostile_json_bodies_fail_without_raising(body, content_type):
    result = parse_payload(RawPayload(url="https://example.com/deep", content_type=content_type, body=body))
    assert isinstance(result, ParseFailure)


def test_inline_script_mentioning_gviz_still_reads_html_table(fixture_text):
    page = fixture_text("published_sheet.html").replace(
        "<body>",
        '<body>\n<script>google.visualization.Query.setResponse({"status": "ok"});</script>',
    )
    payload = RawPayload(url="https://docs.google.com/spreadsheets/d/abc/pubhtml", content_type="text/html", body=page)

    table = parse_payload(payload)

    assert table.format is TableFormat.HTML_TABLE
    assert table.row_count == 2
