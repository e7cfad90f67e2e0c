"""
Domain models for bqwrite-test.

Defines the synthetic record streamed to BigQuery, its two serializations, and
the fixed schema of the destination table. `Record.save()` follows the
row/insert-id shape that `Client.insert_rows_json` consumes; `as_dict()` and
`to_json()` are the structured form used for diagnostics.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from google.cloud import bigquery
from pydantic import BaseModel, Field

ROW_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# insertAll de-duplication token meaning "no dedup requested" for the row.
NO_DEDUPE_ID: Optional[str] = None

TABLE_SCHEMA: List[bigquery.SchemaField] = [
    bigquery.SchemaField("name", "STRING"),
    bigquery.SchemaField("id", "INTEGER"),
    bigquery.SchemaField("created_at", "DATETIME"),
]


class Record(BaseModel):
    """
    Representation of a single synthetic row in the benchmark table.
    """

    name: str = Field(..., description="Sample name, picked cyclically from SAMPLE_NAMES.")
    id: int = Field(..., ge=0, le=2**63 - 1, description="Position-derived key (INT64).")
    created_at: datetime = Field(..., description="UTC timestamp captured at generation.")

    model_config = {
        "frozen": True,
    }

    def save(self) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Return the insertAll row for this record and its de-duplication id.
        """
        row = {
            "name": self.name,
            "id": self.id,
            "created_at": self.created_at.strftime(ROW_TIMESTAMP_FORMAT),
        }
        return row, NO_DEDUPE_ID

    def as_dict(self) -> Dict[str, Any]:
        """Structured form with the timestamp left as a datetime."""
        return {"name": self.name, "id": self.id, "created_at": self.created_at}

    def to_json(self) -> str:
        return self.model_dump_json()


def new_record(name: str, id: int, created_at: datetime) -> Record:
    """Record factory matching the generator's RecordFactory signature."""
    return Record(name=name, id=id, created_at=created_at)


__all__ = [
    "NO_DEDUPE_ID",
    "ROW_TIMESTAMP_FORMAT",
    "TABLE_SCHEMA",
    "Record",
    "new_record",
]
