"""Loading captured payloads handed over by the network-capture step."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Set

from .logging import get_logger
from .models import RawPayload
from .sniffing import is_tracking_url

logger = get_logger(__name__)

__all__ = ["CaptureBundle", "payload_from_dict", "load_capture", "read_payload_file", "drop_tracking"]

CONTENT_TYPE_KEYS = ("content_type", "contentType", "ct")

SUFFIX_CONTENT_TYPES = {
    ".csv": "text/csv",
    ".tsv": "text/tab-separated-values",
    ".json": "application/json",
    ".js": "text/javascript",
    ".txt": "text/plain",
    ".html": "text/html",
    ".htm": "text/html",
}


@dataclass(slots=True)
class CaptureBundle:
    payloads: List[RawPayload] = field(default_factory=list)
    excluded_urls: Set[str] = field(default_factory=set)


def payload_from_dict(data: Any) -> RawPayload:
    if not isinstance(data, dict):
        raise ValueError("payload entries must be objects")
    url = data.get("url")
    body = data.get("body")
    if not isinstance(url, str) or not url.strip():
        raise ValueError("payload entry is missing 'url'")
    if not isinstance(body, str):
        raise ValueError(f"payload entry for {url} is missing a text 'body'")
    content_type = next((data[key] for key in CONTENT_TYPE_KEYS if data.get(key)), "")
    return RawPayload(url=url.strip(), content_type=str(content_type), body=body)


def load_capture(path: Path) -> CaptureBundle:
    """Read ``{"payloads": [...], "excluded_urls": [...]}`` or a bare payload list."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"capture file {path} is not valid JSON: {exc.msg}") from exc

    if isinstance(document, list):
        entries, excluded = document, []
    elif isinstance(document, dict):
        entries = document.get("payloads") or []
        excluded = document.get("excluded_urls") or document.get("excludedUrls") or []
    else:
        raise ValueError(f"capture file {path} must hold an object or a list")

    bundle = CaptureBundle(
        payloads=[payload_from_dict(entry) for entry in entries],
        excluded_urls={str(url) for url in excluded},
    )
    logger.info(
        "capture_loaded",
        path=str(path),
        payloads=len(bundle.payloads),
        excluded=len(bundle.excluded_urls),
    )
    return bundle


def read_payload_file(
    path: Path,
    content_type: Optional[str] = None,
    url: Optional[str] = None,
) -> RawPayload:
    path = Path(path)
    guessed = SUFFIX_CONTENT_TYPES.get(path.suffix.lower(), "")
    return RawPayload(
        url=url or path.resolve().as_uri(),
        content_type=content_type or guessed,
        body=path.read_text(encoding="utf-8", errors="replace"),
    )


def drop_tracking(payloads: Iterable[RawPayload]) -> List[RawPayload]:
    """Remove payloads served from ad, analytics or session-recording hosts."""
    kept = []
    for payload in payloads:
        if is_tracking_url(payload.url):
            logger.debug("tracking_payload_dropped", url=payload.url)
            continue
        kept.append(payload)
    return kept
