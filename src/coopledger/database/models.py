"""SQLAlchemy models for the coopledger database."""

import uuid
from datetime import datetime, UTC
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, declared_attr, sessionmaker, Session

from coopledger.domain.branches import Partition

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class Branch(Base):
    """Branch reference row, seeded from the static branch table."""

    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    is_main = Column(Boolean, default=False, nullable=False)


class User(Base):
    """Staff user model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    role = Column(String, nullable=False)
    account_kind = Column(String, nullable=False, default="production")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class TransactionColumns:
    """Columns shared by every ledger partition."""

    id = Column(String(36), primary_key=True, default=_new_id)
    transaction_date = Column(Date, nullable=False)
    payee = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    cross_reference = Column(String, nullable=True)
    check_number = Column(String, nullable=True)
    particulars = Column(Text, nullable=False)
    debit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    credit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cash_in_bank = Column(Numeric(14, 2), nullable=False, default=0)
    loan_receivables = Column(Numeric(14, 2), nullable=False, default=0)
    savings_deposits = Column(Numeric(14, 2), nullable=False, default=0)
    interest_income = Column(Numeric(14, 2), nullable=False, default=0)
    service_charge = Column(Numeric(14, 2), nullable=False, default=0)
    sundries = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @declared_attr
    def branch_id(cls):
        return Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    @declared_attr
    def created_by(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)


def _partition_model(partition: Partition) -> type:
    class_name = "".join(part.title() for part in partition.name.split("_")) + "Transaction"
    return type(class_name, (TransactionColumns, Base), {"__tablename__": partition.value})


# One mapped class per partition; the table name comes from the closed enum.
PARTITION_MODELS: dict[Partition, Any] = {
    partition: _partition_model(partition) for partition in Partition
}


def model_for(partition: Partition) -> Any:
    """Return the mapped class for a partition."""
    return PARTITION_MODELS[partition]


class ChangeRequest(Base):
    """Change request model. Rows are never deleted."""

    __tablename__ = "change_requests"

    id = Column(String(36), primary_key=True, default=_new_id)
    transaction_id = Column(String(36), nullable=False, index=True)
    transaction_table = Column(String, nullable=False)
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    request_type = Column(String, nullable=False, default="modification")
    original_data = Column(JSON, nullable=False)
    requested_changes = Column(JSON, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending", index=True)
    reviewer_notes = Column(Text, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


def create_engine_for(
    database_url: str, pool_size: Optional[int] = None, pool_timeout: Optional[float] = None
) -> Engine:
    """Create an engine, applying pool settings where the backend pools connections."""
    options: dict[str, Any] = {"echo": False}
    in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
    if not in_memory:
        if pool_size is not None:
            options["pool_size"] = pool_size
        if pool_timeout is not None:
            options["pool_timeout"] = pool_timeout
    return create_engine(database_url, **options)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the schema if needed and return a session factory bound to the engine."""
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
