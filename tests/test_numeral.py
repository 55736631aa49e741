import pytest

from poll_ingest.numeral import is_numeric, parse_int, parse_number


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("54.0%", 54.0),
        ("2,000", 2000.0),
        (" 48 ", 48.0),
        ("−3.5", -3.5),
        (".5", 0.5),
        (12, 12.0),
        (46.5, 46.5),
    ],
)
def test_parse_number_accepts_loose_formats(raw, expected):
    assert parse_number(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, True, "abc", "48 pts", "D+3", "nan", float("inf")])
def test_parse_number_rejects_non_numbers(raw):
    assert parse_number(raw) is None


def test_parse_int_takes_first_digit_run():
    assert parse_int("2,000") == 2000
    assert parse_int("1,000 LV") == 1000
    assert parse_int("n=850") == 850
    assert parse_int(1234.9) == 1234


def test_parse_int_returns_none_without_digits():
    assert parse_int("") is None
    assert parse_int("LV") is None
    assert parse_int(None) is None
    assert parse_int(False) is None


def test_is_numeric():
    assert is_numeric("45%")
    assert not is_numeric("Acme Research")


@pytest.mark.parametrize("raw", [10**400, "1" * 400, "-" + "9" * 400])
def test_parse_number_rejects_values_beyond_float_range(raw):
    assert parse_number(raw) is None


@pytest.mark.parametrize("raw", [10**400, float("inf")])
def test_parse_int_rejects_oversized_values(raw):
    assert parse_int(raw) is None
