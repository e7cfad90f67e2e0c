from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from bqwrite import __version__
from bqwrite.config import get_settings
from bqwrite.driver import RunConfig, run_benchmark
from bqwrite.errors import BqWriteError
from bqwrite.reporter import persist_result, print_result
from bqwrite.utils.logging import configure_logging, get_logger

log = get_logger("bqwrite")

app = typer.Typer(
    help=(
        "Test the BigQuery streaming insert API and get a view of the throughput "
        "available from this host.\n\n"
        "USAGE: bqwrite-test -p PROJECT_ID -d DATASET -t TABLENAME -w WORKERS"
    ),
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bqwrite-test {__version__}")
        raise typer.Exit()


@app.command()
def run(
    project: str = typer.Option(..., "-p", "--project", help="Google Cloud Project ID (Required)."),
    dataset: str = typer.Option(..., "-d", "--dataset", help="BigQuery Dataset (Required)."),
    table: str = typer.Option("bqwrite_test", "-t", "--table", help="BigQuery Table."),
    workers: int = typer.Option(
        5, "-w", "--workers", min=1, max=100, help="Number of Parallel Workers, 1 to 100."
    ),
    records: int = typer.Option(
        100, "-i", "--records", min=1, max=100_000_000, help="Number of Records, 1 to 100000000."
    ),
    batch_size: int = typer.Option(
        1, "-b", "--batch-size", min=1, max=50_000, help="Batch Size, 1 to 50000."
    ),
    overwrite: bool = typer.Option(False, "-o", "--overwrite", help="Overwrite BigQuery Table."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Output Verbose Detail."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit log lines as JSON."),
    results_dir: Optional[Path] = typer.Option(
        None, "--results-dir", help="Persist the run summary as JSON in this directory."
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
) -> None:
    """
    Stream synthetic records into a BigQuery table and report the throughput.
    """
    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_logs=json_logs or settings.log_json,
    )
    log.info("bqwrite-test %s", __version__)

    config = RunConfig(
        project_id=project,
        dataset_id=dataset,
        table_id=table,
        workers=workers,
        records=records,
        batch_size=batch_size,
        overwrite=overwrite,
        verbose=verbose,
    )

    try:
        result = run_benchmark(config)
    except BqWriteError as exc:
        log.error("Benchmark aborted: %s", exc)
        raise typer.Exit(code=1) from exc

    print_result(dict(result))

    target = results_dir or settings.results_dir
    if target:
        persist_result(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "version": __version__,
                "config": config.model_dump(),
                "result": dict(result),
            },
            target,
        )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


__all__ = ["app", "main"]


if __name__ == "__main__":
    main()
