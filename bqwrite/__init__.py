"""
bqwrite-test - throughput benchmark for the BigQuery streaming insert API.

The package generates synthetic records on a background thread and streams
them through a batching, multi-worker writer into a BigQuery table:

- One-time table provisioning (create, or delete and recreate)
- Bounded single-slot record generation with cancellation
- A thread-pool streaming client over insertAll
- Throughput, CPU and peak RSS reporting

Run it with `bqwrite-test -p PROJECT -d DATASET`.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Public API exports
from bqwrite.config import Settings, get_settings
from bqwrite.domain.models import TABLE_SCHEMA, Record, new_record
from bqwrite.driver import RunConfig, StreamResult, run_benchmark
from bqwrite.errors import (
    BqWriteError,
    ClientConnectionError,
    ProvisioningError,
    StreamWriteError,
)
from bqwrite.generator import SAMPLE_NAMES, generate
from bqwrite.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Record",
    "TABLE_SCHEMA",
    "new_record",
    # Generation
    "SAMPLE_NAMES",
    "generate",
    # Driver
    "RunConfig",
    "StreamResult",
    "run_benchmark",
    # Errors
    "BqWriteError",
    "ClientConnectionError",
    "ProvisioningError",
    "StreamWriteError",
    # Logging
    "configure_logging",
    "get_logger",
]
