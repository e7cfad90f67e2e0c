"""
Domain package for bqwrite-test.

Exports the synthetic record model and the destination table schema.
Keep this package focused on data definitions and serialization.
"""

from bqwrite.domain.models import (
    NO_DEDUPE_ID,
    ROW_TIMESTAMP_FORMAT,
    TABLE_SCHEMA,
    Record,
    new_record,
)

__all__ = [
    "NO_DEDUPE_ID",
    "ROW_TIMESTAMP_FORMAT",
    "TABLE_SCHEMA",
    "Record",
    "new_record",
]
