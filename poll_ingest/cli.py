"""Command-line interface for the poll ingestion engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .capture import drop_tracking, load_capture, read_payload_file
from .config import EngineConfig, load_config
from .logging import bind_run_context, configure_logging, get_logger
from .parser import ParseFailure, parse_payload
from .pipeline import DatasetEngine, IngestStatus
from .report import (
    build_polls_document,
    build_sources_document,
    build_status_document,
    write_json,
)
from .roles import infer_roles
from .scoring import matched_signals

logger = get_logger(__name__)

app = typer.Typer(add_completion=False, help="Poll dataset discovery and normalization")

EXIT_NO_DATASET = 3
EXIT_EMPTY = 4


def _config() -> EngineConfig:
    try:
        config = load_config()
    except ValueError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    configure_logging(config.log_level)
    return config


@app.command("run")
def run_command(
    capture: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Capture file with the payloads collected from the source pages",
    ),
    out: Path = typer.Option(Path("polls.json"), "--out", help="Polls document path"),
    status_path: Path = typer.Option(Path("status.json"), "--status", help="Status document path"),
    sources_path: Optional[Path] = typer.Option(
        None, "--sources", help="Optional candidate/debug document path"
    ),
    source_name: Optional[str] = typer.Option(
        None, "--source-name", help="Label recorded as meta.source"
    ),
    skip_tracking: bool = typer.Option(
        False, "--drop-tracking", help="Drop payloads served from ad/analytics hosts"
    ),
) -> None:
    config = _config()
    bind_run_context(command="run", capture=str(capture))
    try:
        bundle = load_capture(capture)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="CAPTURE") from exc

    payloads = drop_tracking(bundle.payloads) if skip_tracking else bundle.payloads
    result = DatasetEngine(config).run(payloads, excluded_urls=bundle.excluded_urls)

    write_json(status_path, build_status_document(result))
    if sources_path is not None:
        write_json(sources_path, build_sources_document(result))
    document = build_polls_document(result, source=source_name)
    if document is not None:
        write_json(out, document)
    logger.info(
        "documents_written",
        status=result.status.value,
        out=str(out) if document is not None else None,
        status_path=str(status_path),
        sources_path=str(sources_path) if sources_path else None,
    )

    if result.status is IngestStatus.NO_DATASET:
        typer.echo(f"No dataset found: {result.problem.reason}", err=True)
        raise typer.Exit(code=EXIT_NO_DATASET)
    if result.status is IngestStatus.EMPTY:
        typer.echo(f"Empty after normalization: {result.problem.reason}", err=True)
        raise typer.Exit(code=EXIT_EMPTY)

    buckets = result.buckets
    typer.echo(
        f"Wrote {out} (genericBallot={len(buckets.generic_ballot)}, "
        f"approval={len(buckets.approval)}, races={len(buckets.races)})"
    )


@app.command("inspect")
def inspect_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Single payload body"),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", help="Declared content type (guessed from the suffix otherwise)"
    ),
) -> None:
    config = _config()
    bind_run_context(command="inspect", path=str(path))
    payload = read_payload_file(path, content_type=content_type)
    parsed = parse_payload(payload)
    if isinstance(parsed, ParseFailure):
        typer.echo(json.dumps({"parsed": False, "reasons": parsed.reasons()}, indent=2))
        raise typer.Exit(code=1)

    engine = DatasetEngine(config)
    roles = infer_roles(parsed, sample_rows=config.sample_rows, threshold=config.numeric_threshold)
    typer.echo(
        json.dumps(
            {
                "parsed": True,
                "format": parsed.format.value,
                "columns": list(parsed.columns),
                "rows": parsed.row_count,
                "score": round(engine.score(payload.url, parsed), 3),
                "signals": matched_signals(parsed.columns),
                **roles.to_dict(parsed),
            },
            indent=2,
            ensure_ascii=False,
        )
    )


def main():
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
