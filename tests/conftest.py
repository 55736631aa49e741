from pathlib import Path

import pytest

from poll_ingest.models import RawPayload

FIXTURES = Path(__file__).parent / "fixtures"

EXPORT_URL = "https://docs.google.com/spreadsheets/d/abc123/export?format=csv&gid=0"


@pytest.fixture
def fixture_text():
    def _read(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def export_payload(fixture_text):
    return RawPayload(url=EXPORT_URL, content_type="text/csv", body=fixture_text("polls_export.csv"))


@pytest.fixture
def noise_payloads(fixture_text):
    return [
        RawPayload(
            url="https://www.googletagmanager.com/gtag/js?id=G-1",
            content_type="application/javascript",
            body=fixture_text("app_bundle.js"),
        ),
        RawPayload(
            url="https://example.com/api/config.json",
            content_type="application/json",
            body='{"theme": "dark", "features": ["a", "b"]}',
        ),
        RawPayload(
            url="https://example.com/api/nav.json",
            content_type="application/json",
            body='[{"label": "Home", "href": "/"}, {"label": "Polls", "href": "/polls"}]',
        ),
    ]
