import pytest

from poll_ingest.sniffing import is_probably_script, is_tracking_url, looks_like_markup, looks_like_tracking


@pytest.mark.parametrize(
    "body",
    [
        "var x = 1;\n",
        "\nconst polls = [];",
        "(function(){ window.foo = 1 })()",
        "dataLayer.push({})",
        "//# sourceMappingURL=app.js.map",
    ],
)
def test_is_probably_script_detects_code(body):
    assert is_probably_script(body)


@pytest.mark.parametrize(
    "body",
    [
        "Pollster,Start Date,End Date\nAcme,1/1/2026,1/3/2026",
        '[{"pollster": "Acme", "dem": 48}]',
        "",
    ],
)
def test_is_probably_script_passes_data(body):
    assert not is_probably_script(body)


def test_is_probably_script_only_reads_head():
    body = "a,b,c\n" * 1000 + "var late = 1;\n"
    assert not is_probably_script(body)


def test_looks_like_tracking():
    assert looks_like_tracking("google tag manager id")
    assert looks_like_tracking("datalayer")
    assert not looks_like_tracking("pollster")


def test_is_tracking_url():
    assert is_tracking_url("https://www.google-analytics.com/collect?v=2")
    assert is_tracking_url("https://static.hotjar.com/c/hotjar-1.js")
    assert not is_tracking_url("https://docs.google.com/spreadsheets/d/abc/gviz/tq")


def test_looks_like_markup():
    assert looks_like_markup("  <html>")
    assert not looks_like_markup("Pollster,Dem")
