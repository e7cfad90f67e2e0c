"""
Pytest configuration for bqwrite-test.

Provides fixtures for:
- An in-memory stand-in for the BigQuery client
- A recording sleep for the provisioning settle interval
- Settings isolation between tests
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest
from google.api_core.exceptions import NotFound
from google.cloud import bigquery

from bqwrite.config import get_settings
from bqwrite.domain.models import Record, new_record

# Stands in for the client library default so tests can tell it was overridden.
DEFAULT_INSERT_RETRY = object()

SETTINGS_ENV_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "BQWRITE_SETTLE_SECONDS",
    "BQWRITE_PROGRESS_INTERVAL",
    "BQWRITE_MAX_BATCH_DELAY",
    "BQWRITE_RESULTS_DIR",
)


class FakeBigQueryClient:
    """
    Records every call the benchmark makes against BigQuery.

    `insert_results` is consumed one entry per insert_rows_json call: an
    exception instance is raised, a list is returned as row errors. Once
    exhausted every call succeeds.
    """

    def __init__(
        self,
        exists: bool = False,
        get_error: Optional[Exception] = None,
        delete_error: Optional[Exception] = None,
        create_error: Optional[Exception] = None,
        insert_results: Optional[Sequence[Any]] = None,
    ) -> None:
        self.exists = exists
        self.get_error = get_error
        self.delete_error = delete_error
        self.create_error = create_error
        self.insert_results = list(insert_results or [])
        self.calls: List[str] = []
        self.created_tables: List[bigquery.Table] = []
        self.batches: List[Dict[str, Any]] = []
        self.insert_attempts = 0
        self.close_calls = 0
        self._lock = threading.Lock()

    def get_table(self, table_ref: bigquery.TableReference) -> bigquery.Table:
        self.calls.append("get_table")
        if self.get_error is not None:
            raise self.get_error
        if not self.exists:
            raise NotFound(f"Not found: Table {table_ref.table_id}")
        return bigquery.Table(table_ref)

    def delete_table(self, table_ref: bigquery.TableReference) -> None:
        self.calls.append("delete_table")
        if self.delete_error is not None:
            raise self.delete_error
        self.exists = False

    def create_table(self, table: bigquery.Table) -> bigquery.Table:
        self.calls.append("create_table")
        if self.create_error is not None:
            raise self.create_error
        self.created_tables.append(table)
        self.exists = True
        return table

    def insert_rows_json(
        self,
        table: bigquery.TableReference,
        json_rows: List[Dict[str, Any]],
        row_ids: Any = None,
        skip_invalid_rows: Optional[bool] = None,
        ignore_unknown_values: Optional[bool] = None,
        retry: Any = DEFAULT_INSERT_RETRY,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            self.insert_attempts += 1
            outcome = self.insert_results.pop(0) if self.insert_results else []
            if isinstance(outcome, Exception):
                raise outcome
            if not outcome:
                self.batches.append(
                    {
                        "table": table,
                        "rows": list(json_rows),
                        "row_ids": list(row_ids),
                        "skip_invalid_rows": skip_invalid_rows,
                        "ignore_unknown_values": ignore_unknown_values,
                        "retry": retry,
                    }
                )
            return outcome

    def close(self) -> None:
        self.close_calls += 1

    @property
    def inserted_rows(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [row for batch in self.batches for row in batch["rows"]]


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Drop ambient env overrides and the cached Settings around every test.
    """
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Settings also read .env from the working directory.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_client() -> Callable[..., FakeBigQueryClient]:
    """Factory for FakeBigQueryClient with per-test behaviour."""
    return FakeBigQueryClient


@pytest.fixture
def fake_client() -> FakeBigQueryClient:
    return FakeBigQueryClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def dataset_ref() -> bigquery.DatasetReference:
    return bigquery.DatasetReference("test-project", "bench")


@pytest.fixture
def table_ref(dataset_ref: bigquery.DatasetReference) -> bigquery.TableReference:
    return dataset_ref.table("bqwrite_test")


@pytest.fixture
def sample_record() -> Record:
    return new_record("Louis Green", 42, datetime(2024, 1, 2, 3, 4, 5, 678_000, tzinfo=timezone.utc))
