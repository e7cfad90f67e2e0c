from __future__ import annotations

import pytest
from google.api_core.exceptions import Forbidden, InternalServerError
from google.auth.exceptions import RefreshError

from bqwrite.domain.models import TABLE_SCHEMA
from bqwrite.errors import ProvisioningError
from bqwrite.infrastructure.provisioner import DEFAULT_SETTLE_SECONDS, ensure_table

SETTLE = 600.0
TABLE = "bqwrite_test"


def test_missing_table_is_created_then_settles(make_client, dataset_ref, recording_sleep) -> None:
    client = make_client(exists=False)

    table_ref = ensure_table(client, dataset_ref, TABLE, overwrite=False, sleep=recording_sleep)

    assert table_ref.table_id == TABLE
    assert client.calls == ["get_table", "create_table"]
    created = client.created_tables[0]
    assert [(f.name, f.field_type) for f in created.schema] == [
        (f.name, f.field_type) for f in TABLE_SCHEMA
    ]
    assert recording_sleep.calls == [SETTLE]


def test_existing_table_with_overwrite_settles_twice(make_client, dataset_ref, recording_sleep) -> None:
    client = make_client(exists=True)

    ensure_table(client, dataset_ref, TABLE, overwrite=True, sleep=recording_sleep)

    assert client.calls == ["get_table", "delete_table", "create_table"]
    assert recording_sleep.calls == [SETTLE, SETTLE]


def test_existing_table_without_overwrite_returns_immediately(
    make_client, dataset_ref, recording_sleep
) -> None:
    client = make_client(exists=True)

    ensure_table(client, dataset_ref, TABLE, overwrite=False, sleep=recording_sleep)

    assert client.calls == ["get_table"]
    assert recording_sleep.calls == []


def test_missing_table_with_overwrite_skips_delete(make_client, dataset_ref, recording_sleep) -> None:
    client = make_client(exists=False)

    ensure_table(client, dataset_ref, TABLE, overwrite=True, sleep=recording_sleep)

    assert client.calls == ["get_table", "create_table"]
    assert recording_sleep.calls == [SETTLE]


def test_settle_interval_is_configurable(make_client, dataset_ref, recording_sleep) -> None:
    client = make_client(exists=False)

    ensure_table(client, dataset_ref, TABLE, settle_seconds=1.5, sleep=recording_sleep)

    assert recording_sleep.calls == [1.5]
    assert DEFAULT_SETTLE_SECONDS == SETTLE


def test_metadata_failure_other_than_not_found_is_fatal(
    make_client, dataset_ref, recording_sleep
) -> None:
    client = make_client(get_error=Forbidden("Access Denied"))

    with pytest.raises(ProvisioningError, match="fetching metadata"):
        ensure_table(client, dataset_ref, TABLE, sleep=recording_sleep)

    assert client.calls == ["get_table"]
    assert recording_sleep.calls == []


def test_delete_failure_is_fatal(make_client, dataset_ref, recording_sleep) -> None:
    client = make_client(exists=True, delete_error=InternalServerError("backend error"))

    with pytest.raises(ProvisioningError, match="deleting"):
        ensure_table(client, dataset_ref, TABLE, overwrite=True, sleep=recording_sleep)

    assert "create_table" not in client.calls
    assert recording_sleep.calls == []


def test_create_failure_is_fatal(make_client, dataset_ref, recording_sleep) -> None:
    client = make_client(exists=False, create_error=Forbidden("no create permission"))

    with pytest.raises(ProvisioningError, match="creating"):
        ensure_table(client, dataset_ref, TABLE, sleep=recording_sleep)

    assert recording_sleep.calls == []


def test_credential_failure_on_first_call_is_a_provisioning_error(
    make_client, dataset_ref, recording_sleep
) -> None:
    client = make_client(get_error=RefreshError("token expired"))

    with pytest.raises(ProvisioningError, match="token expired"):
        ensure_table(client, dataset_ref, TABLE, sleep=recording_sleep)

    assert client.calls == ["get_table"]


def test_credential_failure_on_create_is_a_provisioning_error(
    make_client, dataset_ref, recording_sleep
) -> None:
    client = make_client(exists=False, create_error=RefreshError("token expired"))

    with pytest.raises(ProvisioningError, match="creating"):
        ensure_table(client, dataset_ref, TABLE, sleep=recording_sleep)
