"""
Diagnostic data dump for bqwrite-test.

Runs the same background record generator the benchmark streams from, but
writes each record's structured JSON form to a file (or stdout) instead of
BigQuery. Useful for checking record content and raw generation rate offline.
"""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path
from typing import Optional, TextIO

import typer

from bqwrite.generator import generate

app = typer.Typer(help="Generate synthetic benchmark records as JSON lines.")


def _write_records(out: TextIO, records: int, cancel: threading.Event) -> int:
    written = 0
    for record in generate(cancel, records):
        out.write(record.to_json())
        out.write("\n")
        written += 1
    return written


@app.command()
def main(
    records: int = typer.Option(
        100,
        "--records",
        "-i",
        min=0,
        help="Number of records to generate.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional JSON-lines output path (stdout if omitted).",
    ),
) -> None:
    """
    Generate synthetic records and write them as JSON lines.
    """
    cancel = threading.Event()
    start = time.perf_counter()
    try:
        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            with output.open("w", encoding="utf-8") as f:
                written = _write_records(f, records, cancel)
        else:
            written = _write_records(sys.stdout, records, cancel)
    finally:
        cancel.set()
    duration = time.perf_counter() - start

    rate = written / duration if duration > 0 else 0.0
    typer.echo(f"Generated {written:,} records in {duration:.2f}s ({rate:,.0f} records/s)", err=True)


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
