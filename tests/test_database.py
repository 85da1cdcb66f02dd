"""Tests for the SQLAlchemy database implementation."""

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from coopledger.database.base import Database
from coopledger.domain.branches import Partition
from coopledger.domain.entities import AccountKind, ChangeRequestStatus
from coopledger.domain.errors import ConflictError, DomainError, InfrastructureError


def _request_values(txn, requester_id):
    return {
        "transaction_id": txn.id,
        "transaction_table": Partition.BAUAN.value,
        "requested_by": requester_id,
        "assigned_to": None,
        "branch_id": 2,
        "request_type": "modification",
        "original_data": txn.as_dict(),
        "requested_changes": {"payee": "X"},
        "reason": "Typo",
        "status": "pending",
    }


def test_implements_interface(temp_db):
    assert isinstance(temp_db, Database)


def test_initialize_schema_seeds_branches(temp_db):
    branches = temp_db.list_branches()

    assert [b.id for b in branches] == list(range(1, 14))
    assert branches[0].name == "Main Branch"
    assert branches[0].is_main


def test_initialize_schema_is_idempotent(temp_db):
    temp_db.initialize_schema()

    assert len(temp_db.list_branches()) == 13


def test_create_and_get_user(temp_db):
    user_id = temp_db.create_user(
        "lgarcia", branch_id=4, role="reviewer", first_name="Luz", last_name="Garcia",
        account_kind=AccountKind.TEST, created_at=datetime(2024, 1, 2, 3, 4),
    )

    user = temp_db.get_user(user_id)
    assert user.username == "lgarcia"
    assert user.full_name == "Luz Garcia"
    assert user.account_kind is AccountKind.TEST
    assert user.created_at == datetime(2024, 1, 2, 3, 4)
    assert user.is_active
    assert temp_db.get_user(9999) is None


def test_duplicate_username(temp_db):
    temp_db.create_user("dup", branch_id=1, role="staff")

    with pytest.raises(ConflictError, match="already exists"):
        temp_db.create_user("dup", branch_id=2, role="staff")


def test_unit_of_work_rolls_back_on_error(temp_db, sample_transaction):
    with pytest.raises(RuntimeError):
        with temp_db.unit_of_work() as session:
            temp_db.delete_transaction(Partition.BAUAN, sample_transaction.id, session=session)
            raise RuntimeError("boom")

    assert temp_db.get_transaction(Partition.BAUAN, sample_transaction.id) is not None


def test_unit_of_work_maps_storage_failures(temp_db):
    with pytest.raises(InfrastructureError, match="Database unavailable") as excinfo:
        with temp_db.unit_of_work():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    assert not isinstance(excinfo.value, DomainError)


def test_update_missing_transaction_returns_none(temp_db):
    assert temp_db.update_transaction(Partition.BAUAN, "missing", {"payee": "X"}) is None


def test_set_status_only_from_pending(temp_db, sample_transaction, requester):
    request = temp_db.insert_change_request(_request_values(sample_transaction, requester.id))

    approved = temp_db.set_change_request_status(request.id, ChangeRequestStatus.APPROVED, "ok", requester.id)
    assert approved.status is ChangeRequestStatus.APPROVED
    assert approved.processed_at is not None

    again = temp_db.set_change_request_status(request.id, ChangeRequestStatus.REJECTED, None, requester.id)
    assert again is None
    assert temp_db.get_change_request(request.id).status is ChangeRequestStatus.APPROVED


def test_change_request_json_round_trip(temp_db, sample_transaction, requester):
    request = temp_db.insert_change_request(_request_values(sample_transaction, requester.id))

    stored = temp_db.get_change_request(request.id)
    assert stored.requested_changes == {"payee": "X"}
    assert stored.original_data["id"] == sample_transaction.id


def test_locate_strategies_agree(temp_db, sample_transaction):
    partitions = tuple(Partition)

    assert temp_db.locate_transaction(sample_transaction.id, partitions) == temp_db.locate_transaction_union(
        sample_transaction.id, partitions
    )
    assert temp_db.locate_transaction_union("missing", partitions) is None
    assert temp_db.locate_transaction_union(sample_transaction.id, ()) is None
