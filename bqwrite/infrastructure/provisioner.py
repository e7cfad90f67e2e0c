"""
Destination table provisioning for bqwrite-test.

Runs once, synchronously, before any record is streamed. After a table is
deleted or created the provisioner sleeps a fixed settle interval: streaming
inserts against a table whose metadata has not propagated yet are rejected or
silently lost, and BigQuery offers no signal for when propagation is done.
"""

from __future__ import annotations

import time
from typing import Callable

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery

from bqwrite.domain.models import TABLE_SCHEMA
from bqwrite.errors import ProvisioningError
from bqwrite.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_SETTLE_SECONDS = 600.0


def _settle(settle_seconds: float, sleep: Callable[[float], None]) -> None:
    log.info(
        "  Sleeping for %.0f seconds to allow for eventual consistency to propagate",
        settle_seconds,
    )
    sleep(settle_seconds)


def ensure_table(
    client: bigquery.Client,
    dataset_ref: bigquery.DatasetReference,
    table_id: str,
    overwrite: bool = False,
    settle_seconds: float = DEFAULT_SETTLE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> bigquery.TableReference:
    """
    Make sure `table_id` exists in `dataset_ref` with TABLE_SCHEMA.

    Parameters
    ----------
    client : bigquery.Client
        Client used for metadata, delete and create calls.
    dataset_ref : bigquery.DatasetReference
        Dataset holding the table.
    table_id : str
        Table name.
    overwrite : bool
        Delete and recreate the table when it already exists.
    settle_seconds : float
        Fixed wait applied after a delete and after a create.
    sleep : callable
        Sleep function; injectable for tests.

    Returns
    -------
    bigquery.TableReference
        Reference to the provisioned table.

    Raises
    ------
    ProvisioningError
        If fetching metadata (other than "not found"), deleting or creating fails.
    """
    table_ref = dataset_ref.table(table_id)
    create = False

    try:
        client.get_table(table_ref)
        exists = True
    except NotFound:
        exists = False
        create = True
    except (GoogleAPIError, GoogleAuthError) as exc:
        raise ProvisioningError(f"fetching metadata for {table_id!r} failed: {exc}") from exc

    if exists and overwrite:
        log.info("Deleting Existing BigQuery Table: %s", table_id)
        try:
            client.delete_table(table_ref)
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise ProvisioningError(f"deleting {table_id!r} failed: {exc}") from exc
        _settle(settle_seconds, sleep)
        create = True

    if create:
        log.info("Creating BigQuery Table: %s", table_id)
        try:
            client.create_table(bigquery.Table(table_ref, schema=TABLE_SCHEMA))
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise ProvisioningError(f"creating {table_id!r} failed: {exc}") from exc
        _settle(settle_seconds, sleep)
    else:
        log.info("Using Existing BigQuery Table: %s", table_id)

    return table_ref


__all__ = ["DEFAULT_SETTLE_SECONDS", "ensure_table"]
