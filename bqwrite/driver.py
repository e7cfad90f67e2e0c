"""
Stream driver for bqwrite-test: provision, stream, measure.

Usage (example from CLI):
    from bqwrite.driver import RunConfig, run_benchmark

    result = run_benchmark(RunConfig(project_id="my-project", dataset_id="bench"))
    print(result["records_sent"], result["duration_seconds"])

A run is all-or-nothing: any client, provisioning or write failure aborts it
with a BqWriteError, and there is no partial-success report.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional, TypedDict

from google.cloud import bigquery
from pydantic import BaseModel, Field

from bqwrite.config import get_settings
from bqwrite.errors import ProvisioningError, StreamWriteError
from bqwrite.generator import generate
from bqwrite.infrastructure.bq_factory import create_client, dataset_reference
from bqwrite.infrastructure.provisioner import ensure_table
from bqwrite.infrastructure.streamer import BigQueryStreamer, StreamerConfig, open_streamer
from bqwrite.utils.logging import get_logger
from bqwrite.utils.profiler import profile_block

log = get_logger(__name__)

StreamerFactory = Callable[[bigquery.Client, bigquery.TableReference, StreamerConfig], BigQueryStreamer]


class RunConfig(BaseModel):
    """
    Parameters of a single benchmark run.
    """

    project_id: str = Field(..., min_length=1)
    dataset_id: str = Field(..., min_length=1)
    table_id: str = Field("bqwrite_test", min_length=1)
    workers: int = Field(5, ge=1, le=100)
    records: int = Field(100, ge=0, le=100_000_000)
    batch_size: int = Field(1, ge=1, le=50_000)
    overwrite: bool = False
    verbose: bool = False

    model_config = {"frozen": True}


class StreamResult(TypedDict, total=False):
    """
    Metrics of a completed run.
    """

    table: str
    records_sent: int
    duration_seconds: float
    throughput_rows_per_sec: float
    workers: int
    batch_size: int
    peak_rss_bytes: Optional[int]
    peak_threads: Optional[int]
    cpu_percent: Optional[float]


def _log_parameters(config: RunConfig) -> None:
    log.info("Parameters")
    log.info("  Project ID:     %s", config.project_id)
    log.info("  Dataset:        %s", config.dataset_id)
    log.info("  Table:          %s", config.table_id)
    log.info("  Number Workers: %d", config.workers)
    log.info("  Number Records: %d", config.records)
    log.info("  Batch Size:     %d", config.batch_size)


def _stream(
    streamer: BigQueryStreamer,
    config: RunConfig,
    cancel: threading.Event,
    progress_interval: int,
) -> int:
    """
    Drain the generator into the streamer and return the number of records sent.
    """
    count = 0
    producer = generate(cancel, config.records)
    try:
        for record in producer:
            try:
                streamer.write(record)
            except StreamWriteError as exc:
                log.error("Error [streamer.write]: %s", exc, extra={"record": record.as_dict()})
                raise
            count += 1
            if config.verbose and count % progress_interval == 0:
                log.info("  Records Sent: %8d", count)
    finally:
        # Stops the producer when the loop exits early; harmless after a full drain.
        cancel.set()
        producer.join()

    streamer.close()
    if streamer.error is not None:
        log.error("Error [streamer.close]: %s", streamer.error)
        raise StreamWriteError(f"batch insert failed: {streamer.error}") from streamer.error
    return count


def run_benchmark(
    config: RunConfig,
    client: Optional[bigquery.Client] = None,
    cancel: Optional[threading.Event] = None,
    streamer_factory: StreamerFactory = open_streamer,
    sleep: Callable[[float], None] = time.sleep,
) -> StreamResult:
    """
    Provision the destination table, stream `config.records` records and
    return throughput metrics.

    Parameters
    ----------
    config : RunConfig
        Run parameters.
    client : bigquery.Client | None
        Client to use; created from `config.project_id` when omitted. The
        driver closes it before returning either way.
    cancel : threading.Event | None
        Run-scoped cancellation signal for the record generator.
    streamer_factory : callable
        Builds the streaming client; injectable for tests.
    sleep : callable
        Sleep used for the provisioning settle interval.

    Raises
    ------
    ClientConnectionError, ProvisioningError, StreamWriteError
        On the first fatal error; nothing is retried at this layer.
    """
    settings = get_settings()
    cancel = cancel or threading.Event()
    _log_parameters(config)

    if client is None:
        client = create_client(config.project_id)

    try:
        try:
            table_ref = ensure_table(
                client,
                dataset_reference(config.project_id, config.dataset_id),
                config.table_id,
                overwrite=config.overwrite,
                settle_seconds=settings.settle_seconds,
                sleep=sleep,
            )
        except ProvisioningError as exc:
            log.error("Error [ensure_table]: %s", exc)
            raise

        streamer = streamer_factory(
            client,
            table_ref,
            StreamerConfig(
                worker_count=config.workers,
                worker_queue_size=config.batch_size,
                batch_size=config.batch_size,
                max_batch_delay=settings.max_batch_delay,
                fail_on_invalid_rows=True,
                fail_for_unknown_values=True,
            ),
        )
        try:
            log.info("Start Streaming Data")
            with profile_block("stream") as stats:
                count = _stream(streamer, config, cancel, settings.progress_interval)
        finally:
            streamer.close()
    finally:
        client.close()

    duration = stats.duration_seconds
    log.info("  %d Records Streamed in %.3fs", count, duration)
    log.info("End Streaming Data")

    return StreamResult(
        table=f"{config.project_id}.{config.dataset_id}.{config.table_id}",
        records_sent=count,
        duration_seconds=duration,
        throughput_rows_per_sec=stats.rate(count),
        workers=config.workers,
        batch_size=config.batch_size,
        peak_rss_bytes=stats.peak_rss_bytes,
        peak_threads=stats.peak_threads,
        cpu_percent=stats.cpu_percent,
    )


__all__ = [
    "RunConfig",
    "StreamResult",
    "run_benchmark",
]
