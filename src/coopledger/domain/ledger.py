"""Ledger store: single-partition transaction writes and reads."""

import logging
import uuid
from contextlib import nullcontext
from decimal import Decimal
from typing import Any, Mapping, Optional

from coopledger.database.base import Database
from coopledger.domain.audit import AuditEntry, AuditListener
from coopledger.domain.branches import Partition, PartitionRouter
from coopledger.domain.categorizer import BUCKET_FIELDS, categorize, has_explicit_buckets
from coopledger.domain.entities import Transaction, TransactionChange
from coopledger.domain.errors import (
    InvalidTransactionDataError,
    TransactionNotFoundError,
    TransactionUpdateFailedError,
)
from coopledger.domain.schema import AMOUNT_FIELDS, coerce_fields, unknown_fields

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Fields whose change invalidates derived bucket amounts.
CATEGORIZED_INPUTS = frozenset({"debit_amount", "credit_amount", "particulars"})


def transactional(db: Database, session: Any = None):
    """Join the caller's unit of work, or open a new one on db."""
    if session is not None:
        return nullcontext(session)
    return db.unit_of_work()


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_transaction_data(fields: Mapping[str, Any]) -> None:
    """Validate transaction fields before any write.

    Raises:
        InvalidTransactionDataError: Listing every problem found
    """
    values, errors = coerce_fields(fields)

    if values.get("transaction_date") is None and not any(
        e.startswith("Invalid transaction date") for e in errors
    ):
        errors.append("Transaction date is required")

    if _blank(fields.get("payee")):
        errors.append("Payee is required")

    if _blank(fields.get("particulars")):
        errors.append("Particulars is required")

    debit = values.get("debit_amount", ZERO)
    credit = values.get("credit_amount", ZERO)

    if debit < 0 or credit < 0:
        errors.append("Debit and credit amounts cannot be negative")
    elif debit + credit <= 0:
        errors.append("Either debit or credit amount must be greater than 0")

    if errors:
        raise InvalidTransactionDataError(errors)


class LedgerStore:
    """Create, read, update and delete transactions within one partition."""

    def __init__(
        self,
        db: Database,
        router: Optional[PartitionRouter] = None,
        audit: Optional[AuditListener] = None,
    ):
        """Initialize ledger store.

        Args:
            db: Database instance
            router: Branch to partition router
            audit: Optional listener receiving committed mutations
        """
        self.db = db
        self.router = router or PartitionRouter()
        self.audit = audit

    validate = staticmethod(validate_transaction_data)

    def _record(self, entry: AuditEntry) -> None:
        if self.audit is not None:
            self.audit.record(entry)

    def create(
        self,
        branch_id: int,
        creator_id: Optional[int],
        fields: Mapping[str, Any],
        session: Any = None,
    ) -> Transaction:
        """Create a transaction in the branch's partition.

        Bucket amounts are categorized from the particulars unless the caller
        supplies any of them.

        Args:
            branch_id: Owning branch
            creator_id: User creating the transaction
            fields: Transaction fields
            session: Optional unit of work to join

        Returns:
            The stored transaction

        Raises:
            BranchIdRequiredError, UnknownBranchError: If branch_id cannot be routed
            InvalidTransactionDataError: If fields fail validation
        """
        partition = self.router.partition_for(branch_id)

        unknown = [name for name in unknown_fields(fields) if name not in ("branch_id", "id")]
        if unknown:
            raise InvalidTransactionDataError([f"Unknown field '{name}'" for name in unknown])
        if fields.get("branch_id") is not None and self.router.partition_for(fields["branch_id"]) is not partition:
            raise InvalidTransactionDataError(["Branch ID does not match the target branch"])
        self.validate(fields)

        values, _ = coerce_fields(fields)
        for name in AMOUNT_FIELDS:
            values.setdefault(name, ZERO)
        if not has_explicit_buckets(values):
            values.update(
                categorize(values["debit_amount"], values["credit_amount"], values["particulars"]).as_dict()
            )

        values.update(
            id=str(uuid.uuid4()),
            branch_id=self.router.branch_for(partition),
            created_by=creator_id,
        )

        with transactional(self.db, session) as s:
            created = self.db.insert_transaction(partition, values, session=s)

        logger.info("Created transaction %s in %s", created.id, partition.value)
        if session is None:
            self._record(
                AuditEntry(creator_id, "transaction.create", "transaction", created.id, after=created.as_dict())
            )
        return created

    def read_by_id(self, partition: Partition | str, transaction_id: str, session: Any = None) -> Optional[Transaction]:
        """Read a transaction from one partition, or None."""
        return self.db.get_transaction(Partition.from_name(partition), transaction_id, session=session)

    def update(
        self,
        partition: Partition | str,
        transaction_id: str,
        fields: Mapping[str, Any],
        actor_id: Optional[int] = None,
        session: Any = None,
    ) -> TransactionChange:
        """Apply a partial update to a transaction within one partition.

        The merged row is re-validated. If debit, credit or particulars change
        and no bucket amount is supplied, buckets are recomputed.

        Raises:
            InvalidTransactionDataError: If fields are unknown, try to move the
                row to another branch, or leave the row invalid
            TransactionNotFoundError: If the row is absent from the partition
            TransactionUpdateFailedError: If the update affected no rows
        """
        partition = Partition.from_name(partition)

        errors = [f"Unknown field '{name}'" for name in unknown_fields(fields)]
        if "branch_id" in fields:
            errors.append("Branch ID cannot be changed")
        values, coerce_errors = coerce_fields(fields)
        errors.extend(coerce_errors)
        if errors:
            raise InvalidTransactionDataError(errors)

        with transactional(self.db, session) as s:
            before = self.db.get_transaction(partition, transaction_id, session=s)
            if before is None:
                raise TransactionNotFoundError(transaction_id)

            merged = {
                "transaction_date": before.transaction_date,
                "payee": before.payee,
                "particulars": before.particulars,
                "debit_amount": before.debit_amount,
                "credit_amount": before.credit_amount,
            }
            merged.update({k: v for k, v in values.items() if k in merged})
            self.validate(merged)

            if CATEGORIZED_INPUTS & values.keys() and not any(name in values for name in BUCKET_FIELDS):
                values.update(
                    categorize(merged["debit_amount"], merged["credit_amount"], merged["particulars"]).as_dict()
                )

            after = self.db.update_transaction(partition, transaction_id, values, session=s)
            if after is None:
                raise TransactionUpdateFailedError(transaction_id, partition.value)

        change = TransactionChange(before=before, after=after)
        logger.info(
            "Updated transaction %s in %s (%s)",
            transaction_id,
            partition.value,
            ", ".join(change.changed_fields) or "no changes",
        )
        if session is None:
            self._record(
                AuditEntry(
                    actor_id, "transaction.update", "transaction", transaction_id,
                    before=before.as_dict(), after=after.as_dict(),
                )
            )
        return change

    def delete(
        self,
        partition: Partition | str,
        transaction_id: str,
        actor_id: Optional[int] = None,
        session: Any = None,
    ) -> Transaction:
        """Delete a transaction from one partition. Returns the deleted row.

        Raises:
            TransactionNotFoundError: If the row is absent from the partition
        """
        partition = Partition.from_name(partition)
        with transactional(self.db, session) as s:
            deleted = self.db.delete_transaction(partition, transaction_id, session=s)
            if deleted is None:
                raise TransactionNotFoundError(transaction_id)

        logger.info("Deleted transaction %s from %s", transaction_id, partition.value)
        if session is None:
            self._record(
                AuditEntry(actor_id, "transaction.delete", "transaction", transaction_id, before=deleted.as_dict())
            )
        return deleted
