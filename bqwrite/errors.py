"""Exception hierarchy for bqwrite-test."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class BqWriteError(Exception):
    """Base exception for all bqwrite-test errors."""


class ClientConnectionError(BqWriteError):
    """Raised when the BigQuery client cannot be created."""


class ProvisioningError(BqWriteError):
    """Raised when the destination table cannot be fetched, deleted or created."""


class StreamWriteError(BqWriteError):
    """Raised when a record cannot be written to the streaming client."""


class StreamerClosedError(StreamWriteError):
    """Raised when writing to a streamer that has already been closed."""


class InsertError(BqWriteError):
    """Raised when insertAll reports row-level errors for a batch."""

    def __init__(self, errors: Sequence[Mapping[str, Any]]) -> None:
        self.errors = list(errors)
        super().__init__(f"insertAll rejected {len(self.errors)} row(s): {self.errors[:3]}")


__all__ = [
    "BqWriteError",
    "ClientConnectionError",
    "ProvisioningError",
    "StreamWriteError",
    "StreamerClosedError",
    "InsertError",
]
