"""Dataset discovery and normalization engine for captured poll payloads."""

__all__ = [
    "config",
    "models",
    "parser",
    "scoring",
    "roles",
    "normalizer",
    "classifier",
    "dedup",
    "pipeline",
    "capture",
    "report",
    "cli",
]
