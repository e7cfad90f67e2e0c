"""
Background record generation for bqwrite-test.

A single producer thread builds records and hands them to the consumer through
a one-slot queue, so generation overlaps with transmission while at most one
record waits unconsumed. The producer stops early when the run's cancellation
event is set.

Usage:
    cancel = threading.Event()
    for record in generate(cancel, count=100):
        streamer.write(record)
"""

from __future__ import annotations

import queue
import threading
from datetime import datetime, timezone
from typing import Callable, Iterator, List

from bqwrite.domain.models import Record, new_record
from bqwrite.utils.logging import get_logger

log = get_logger(__name__)

RecordFactory = Callable[[str, int, datetime], Record]

SAMPLE_NAMES: List[str] = [
    "Louis Green",
    "Skyla Morrison",
    "Annalise Rosario",
    "Francisco Cole",
    "Aron Downs",
    "Alvin Buck",
    "Fletcher Clarke",
    "Sophie Salazar",
    "Kaleigh Hughes",
    "Winston Mason",
    "Braelyn Ho",
    "Finley Gibson",
]

ID_MULTIPLIER = 42

# Upper bound on how long a blocked put/get waits before re-checking state.
_POLL_INTERVAL_SECONDS = 0.05


class RecordGenerator:
    """
    Producer half of the generation pipeline; iterate it to consume records.

    The producer thread starts on construction. Iteration ends once the
    producer has finished (all records emitted, or cancelled) and the handoff
    slot is empty.
    """

    def __init__(
        self,
        cancel: threading.Event,
        count: int,
        factory: RecordFactory = new_record,
        poll_interval: float = _POLL_INTERVAL_SECONDS,
    ) -> None:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        self.count = count
        self.emitted = 0
        self._cancel = cancel
        self._factory = factory
        self._poll_interval = poll_interval
        self._channel: queue.Queue[Record] = queue.Queue(maxsize=1)
        self._finished = threading.Event()
        self._thread = threading.Thread(target=self._produce, name="record-generator", daemon=True)
        self._thread.start()

    def _produce(self) -> None:
        try:
            for index in range(self.count):
                if self._cancel.is_set():
                    break
                record = self._factory(
                    SAMPLE_NAMES[index % len(SAMPLE_NAMES)],
                    index * ID_MULTIPLIER,
                    datetime.now(timezone.utc),
                )
                if not self._emit(record):
                    break
                self.emitted += 1
        finally:
            self._finished.set()
            log.debug(
                "Record generator finished",
                extra={"emitted": self.emitted, "cancelled": self._cancel.is_set()},
            )

    def _emit(self, record: Record) -> bool:
        """Block until the slot is free or the run is cancelled."""
        while not self._cancel.is_set():
            try:
                self._channel.put(record, timeout=self._poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def __iter__(self) -> Iterator[Record]:
        while True:
            try:
                yield self._channel.get(timeout=self._poll_interval)
            except queue.Empty:
                # Records are queued before _finished is set, so an empty slot
                # after the producer finished means nothing is left.
                if self._finished.is_set() and self._channel.empty():
                    return

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()


def generate(
    cancel: threading.Event,
    count: int,
    factory: RecordFactory = new_record,
) -> RecordGenerator:
    """
    Start a background producer of `count` records and return it for iteration.
    """
    return RecordGenerator(cancel, count, factory)


__all__ = [
    "ID_MULTIPLIER",
    "SAMPLE_NAMES",
    "RecordFactory",
    "RecordGenerator",
    "generate",
]
