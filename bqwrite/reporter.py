from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from bqwrite.utils.logging import get_logger

log = get_logger(__name__)


def print_result(result: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a run summary as a rich table.
    """
    console = console or Console()

    table = Table(
        title="BigQuery Streaming Insert Results",
        box=box.ROUNDED,
        caption=result.get("table", ""),
    )
    table.add_column("Records", justify="right", style="magenta")
    table.add_column("Workers", justify="right", style="blue")
    table.add_column("Batch Size", justify="right", style="blue")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Throughput (rows/s)", justify="right", style="bold green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    table.add_column("Peak Threads", justify="right", style="yellow")
    table.add_column("CPU %", justify="right", style="red")

    mem_bytes = result.get("peak_rss_bytes") or 0
    cpu = result.get("cpu_percent") or 0.0

    table.add_row(
        f"{result.get('records_sent', 0):,}",
        str(result.get("workers", "")),
        str(result.get("batch_size", "")),
        f"{result.get('duration_seconds', 0.0):.3f}",
        f"{result.get('throughput_rows_per_sec', 0.0):,.2f}",
        f"{mem_bytes / (1024 * 1024):.2f}",
        str(result.get("peak_threads") or "-"),
        f"{cpu:.1f}",
    )

    console.print(table)


def persist_result(payload: Dict[str, Any], results_dir: Path | str) -> Path:
    """
    Write `payload` to `latest.json` and a timestamped archive in `results_dir`.

    Returns the archive path.
    """
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})
    return archive_path


__all__ = ["persist_result", "print_result"]
