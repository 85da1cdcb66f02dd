"""Shared pytest fixtures for coopledger tests."""

import os
import tempfile
from datetime import datetime

import pytest
from click.testing import CliRunner

from coopledger.database.factories import create_sqlite_database
from coopledger.domain.audit import InMemoryAuditListener
from coopledger.domain.change_request import ChangeRequestWorkflow
from coopledger.domain.directory import LedgerDirectory
from coopledger.domain.ledger import LedgerStore
from coopledger.domain.notifications import InMemoryNotificationSink


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests that open their own connection
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def audit():
    return InMemoryAuditListener()


@pytest.fixture
def notifier():
    return InMemoryNotificationSink()


@pytest.fixture
def store(temp_db, audit):
    """Create a LedgerStore with a temporary database."""
    return LedgerStore(temp_db, audit=audit)


@pytest.fixture(params=["sequential", "union"])
def directory(request, temp_db, store):
    """LedgerDirectory, once per lookup strategy."""
    return LedgerDirectory(temp_db, store=store, strategy=request.param)


@pytest.fixture
def workflow(temp_db, store, notifier, audit):
    directory = LedgerDirectory(temp_db, store=store, strategy="union")
    return ChangeRequestWorkflow(temp_db, directory=directory, notifier=notifier, audit=audit)


@pytest.fixture
def requester(temp_db):
    """A staff user in branch 2."""
    user_id = temp_db.create_user("rsantos", branch_id=2, role="staff", first_name="Rosa", last_name="Santos")
    return temp_db.get_user(user_id)


@pytest.fixture
def reviewer(temp_db):
    """An active production reviewer in branch 2."""
    user_id = temp_db.create_user(
        "mreyes",
        branch_id=2,
        role="reviewer",
        first_name="Mario",
        last_name="Reyes",
        created_at=datetime(2023, 1, 1),
    )
    return temp_db.get_user(user_id)


@pytest.fixture
def sample_fields():
    return {
        "transaction_date": "2024-03-15",
        "payee": "Juan Dela Cruz",
        "particulars": "Savings deposit",
        "reference": "OR-1001",
        "debit_amount": "0",
        "credit_amount": "5000.00",
    }


@pytest.fixture
def sample_transaction(store, requester, sample_fields):
    """A savings deposit recorded in branch 2."""
    return store.create(2, requester.id, sample_fields)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()
