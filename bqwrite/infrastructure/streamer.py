"""
Batching, multi-worker streaming client for BigQuery insertAll.

`write()` hands a record to a bounded queue shared by `worker_count` threads.
Each worker converts records to rows, groups them into batches of up to
`batch_size` rows and sends a batch when it is full or `max_batch_delay`
seconds after its first row arrived. Callers never see batch boundaries.

The first batch failure poisons the streamer: subsequent writes raise, and
workers keep draining the queue without inserting so writers never block on a
dead pipeline.
"""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import (
    BadGateway,
    InternalServerError,
    ServiceUnavailable,
    TooManyRequests,
)
from google.cloud import bigquery
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from bqwrite.domain.models import Record
from bqwrite.errors import InsertError, StreamerClosedError, StreamWriteError
from bqwrite.utils.logging import get_logger

log = get_logger(__name__)

_SHUTDOWN = object()


@dataclass(frozen=True)
class StreamerConfig:
    worker_count: int = 1
    worker_queue_size: int = 1
    batch_size: int = 1
    max_batch_delay: float = 5.0
    fail_on_invalid_rows: bool = True
    fail_for_unknown_values: bool = True

    def __post_init__(self) -> None:
        if self.worker_count < 1:
            raise ValueError("worker_count must be >= 1")
        if self.worker_queue_size < 1:
            raise ValueError("worker_queue_size must be >= 1")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.max_batch_delay <= 0:
            raise ValueError("max_batch_delay must be > 0")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(
        (ServiceUnavailable, InternalServerError, TooManyRequests, BadGateway)
    ),
    reraise=True,
)
def _insert_batch(
    client: bigquery.Client,
    table_ref: bigquery.TableReference,
    rows: List[Dict[str, Any]],
    row_ids: List[Optional[str]],
    config: StreamerConfig,
) -> None:
    """
    Send one batch through insertAll with automatic retry.

    Retries up to 3 times with exponential backoff for transient API errors.

    Raises
    ------
    InsertError
        If the API accepted the request but rejected one or more rows.
    """
    errors = client.insert_rows_json(
        table_ref,
        rows,
        row_ids=row_ids,
        skip_invalid_rows=not config.fail_on_invalid_rows,
        ignore_unknown_values=not config.fail_for_unknown_values,
        # Retries happen only in the tenacity decorator above.
        retry=None,
    )
    if errors:
        raise InsertError(errors)


class BigQueryStreamer:
    """
    Thread-safe streaming writer; one instance per table per run.
    """

    def __init__(
        self,
        client: bigquery.Client,
        table_ref: bigquery.TableReference,
        config: StreamerConfig,
    ) -> None:
        self.client = client
        self.table_ref = table_ref
        self.config = config
        self.rows_inserted = 0
        self.batches_inserted = 0
        self.error: Optional[BaseException] = None
        self._queue: queue.Queue[Any] = queue.Queue(
            maxsize=config.worker_count * config.worker_queue_size
        )
        self._lock = threading.Lock()
        # Serializes the closed check and enqueue in write() against close().
        self._write_lock = threading.Lock()
        self._closed = False
        self._workers = [
            threading.Thread(target=self._work, args=(worker_id,), name=f"bq-streamer-{worker_id}")
            for worker_id in range(config.worker_count)
        ]
        for worker in self._workers:
            worker.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, record: Record) -> None:
        """
        Queue one record for insertion, blocking while the worker queue is full.

        Raises
        ------
        StreamerClosedError
            If the streamer was already closed.
        StreamWriteError
            If an earlier batch failed.
        """
        with self._write_lock:
            if self._closed:
                raise StreamerClosedError("write on closed streamer")
            if self.error is not None:
                raise StreamWriteError(f"streamer failed: {self.error}") from self.error
            self._queue.put(record)

    def close(self) -> None:
        """
        Flush pending batches and stop the workers. Safe to call more than once.
        """
        with self._write_lock:
            if self._closed:
                return
            self._closed = True
        for _ in self._workers:
            self._queue.put(_SHUTDOWN)
        for worker in self._workers:
            worker.join()
        if self.error is not None:
            log.error("Streamer closed after failure: %s", self.error)
        log.debug(
            "Streamer closed",
            extra={"rows_inserted": self.rows_inserted, "batches": self.batches_inserted},
        )

    def _work(self, worker_id: int) -> None:
        rows: List[Dict[str, Any]] = []
        row_ids: List[Optional[str]] = []
        deadline = 0.0

        while True:
            timeout = max(0.0, deadline - time.monotonic()) if rows else None
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                self._flush(worker_id, rows, row_ids)
                rows, row_ids = [], []
                continue

            if item is _SHUTDOWN:
                self._flush(worker_id, rows, row_ids)
                return

            row, insert_id = item.save()
            if not rows:
                deadline = time.monotonic() + self.config.max_batch_delay
            rows.append(row)
            row_ids.append(insert_id)
            if len(rows) >= self.config.batch_size:
                self._flush(worker_id, rows, row_ids)
                rows, row_ids = [], []

    def _flush(
        self, worker_id: int, rows: List[Dict[str, Any]], row_ids: List[Optional[str]]
    ) -> None:
        if not rows or self.error is not None:
            return
        try:
            _insert_batch(self.client, self.table_ref, rows, row_ids, self.config)
        except Exception as exc:  # noqa: BLE001 - recorded and re-raised to the writer
            with self._lock:
                if self.error is None:
                    self.error = exc
            log.error(
                "Error [insert_rows_json]: %s",
                exc,
                extra={"worker": worker_id, "batch_rows": len(rows)},
            )
            return
        with self._lock:
            self.rows_inserted += len(rows)
            self.batches_inserted += 1


def open_streamer(
    client: bigquery.Client,
    table_ref: bigquery.TableReference,
    config: StreamerConfig,
) -> BigQueryStreamer:
    """Create a streamer and start its workers."""
    log.info(
        "Establish BigQuery Streaming Client",
        extra={"workers": config.worker_count, "batch_size": config.batch_size},
    )
    return BigQueryStreamer(client, table_ref, config)


__all__ = [
    "BigQueryStreamer",
    "StreamerConfig",
    "open_streamer",
]
