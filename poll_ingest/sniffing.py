"""Cheap predicates that reject script, markup and tracking noise."""

from __future__ import annotations

import re

__all__ = ["is_probably_script", "looks_like_tracking", "is_tracking_url", "looks_like_markup"]

SNIFF_CHARS = 4000

SCRIPT_PATTERNS = (
    re.compile(r"(?:^|\n)\s*(?:function|var|let|const)\s+", re.IGNORECASE),
    re.compile(r"window\.|document\.|dataLayer|gtag\(", re.IGNORECASE),
    re.compile(r"sourceMappingURL=", re.IGNORECASE),
)

TRACKING_VOCABULARY = re.compile(
    r"gtag|data\s?layer|data_layer|analytics|tag\s?manager|tag_manager",
    re.IGNORECASE,
)

TRACKING_HOSTS = re.compile(
    r"(googletagmanager|google-analytics|doubleclick|adsystem|adservice|amazon-adsystem"
    r"|facebook|connect\.facebook|hotjar|segment\.|datadoghq|sentry|cloudflareinsights)",
    re.IGNORECASE,
)


def is_probably_script(text: str) -> bool:
    """Return True when the body looks like executable code rather than data.

    Only the head of the body is inspected.
    """
    head = (text or "")[:SNIFF_CHARS]
    return any(pattern.search(head) for pattern in SCRIPT_PATTERNS)


def looks_like_markup(text: str) -> bool:
    return (text or "").lstrip().startswith("<")


def looks_like_tracking(text: str) -> bool:
    return bool(TRACKING_VOCABULARY.search(text or ""))


def is_tracking_url(url: str) -> bool:
    return bool(TRACKING_HOSTS.search(url or ""))
