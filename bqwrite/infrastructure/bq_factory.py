"""
BigQuery client factory utilities for bqwrite-test.

Centralizes construction of the google-cloud-bigquery client and of the
dataset/table references, so the driver never deals with credential lookup
directly. Credentials come from Application Default Credentials.
"""

from __future__ import annotations

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery

from bqwrite.errors import ClientConnectionError
from bqwrite.utils.logging import get_logger

log = get_logger(__name__)


def create_client(project_id: str) -> bigquery.Client:
    """
    Create a BigQuery client bound to `project_id`.

    Raises
    ------
    ClientConnectionError
        If credentials cannot be resolved or the client cannot be constructed.
    """
    log.info("Establish BigQuery Client Connection", extra={"project": project_id})
    try:
        return bigquery.Client(project=project_id)
    except (GoogleAuthError, GoogleAPIError) as exc:
        log.error("Error [bigquery.Client]: %s", exc)
        raise ClientConnectionError(f"could not create BigQuery client for {project_id!r}: {exc}") from exc


def dataset_reference(project_id: str, dataset_id: str) -> bigquery.DatasetReference:
    return bigquery.DatasetReference(project_id, dataset_id)


def table_reference(project_id: str, dataset_id: str, table_id: str) -> bigquery.TableReference:
    return dataset_reference(project_id, dataset_id).table(table_id)


__all__ = [
    "create_client",
    "dataset_reference",
    "table_reference",
]
