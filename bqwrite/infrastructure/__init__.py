"""
Infrastructure package for bqwrite-test.

Centralizes BigQuery concerns: client construction, table provisioning and
the batching streaming writer. Keep this layer focused on I/O and resource
management, decoupled from the driver's orchestration logic.
"""

from bqwrite.infrastructure.bq_factory import create_client, dataset_reference, table_reference
from bqwrite.infrastructure.provisioner import ensure_table
from bqwrite.infrastructure.streamer import BigQueryStreamer, StreamerConfig, open_streamer

__all__ = [
    "BigQueryStreamer",
    "StreamerConfig",
    "create_client",
    "dataset_reference",
    "ensure_table",
    "open_streamer",
    "table_reference",
]
