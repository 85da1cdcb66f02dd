"""Ledger directory: operations that span or select among partitions.

A transaction id does not encode its partition, so lookups by id scatter
over every partition. How they scatter is a pluggable strategy:

- ``sequential`` queries partitions one at a time in branch order and stops
  at the first hit. Cheap when hits cluster early, serial round-trips on a
  miss.
- ``union`` issues a single UNION ALL over every partition. One round-trip,
  but every partition is always queried.

Branch-scoped reads never fan out: they route to exactly one partition.
"""

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from dateutil.relativedelta import relativedelta

from coopledger.database.base import Database
from coopledger.domain.audit import AuditEntry, AuditListener
from coopledger.domain.branches import Partition, PartitionRouter
from coopledger.domain.entities import Transaction, TransactionChange, TransactionStats
from coopledger.domain.errors import TransactionNotFoundError, ValidationError
from coopledger.domain.filters import TransactionFilters
from coopledger.domain.ledger import LedgerStore, transactional

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 10


class LookupStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    UNION = "union"


class ScatterStrategy(Protocol):
    """How the directory queries every partition."""

    name: LookupStrategy

    def locate(
        self, db: Database, transaction_id: str, partitions: tuple[Partition, ...], session: Any
    ) -> Optional[tuple[Partition, Transaction]]:
        ...

    def stats(
        self,
        db: Database,
        router: PartitionRouter,
        date_from: Optional[date],
        date_to: Optional[date],
        session: Any,
    ) -> dict[int, TransactionStats]:
        ...


class SequentialScatter:
    """One partition at a time, first match wins."""

    name = LookupStrategy.SEQUENTIAL

    def locate(self, db, transaction_id, partitions, session):
        return db.locate_transaction(transaction_id, partitions, session=session)

    def stats(self, db, router, date_from, date_to, session):
        return {
            branch_id: db.transaction_stats(
                router.partition_for(branch_id), branch_id, date_from, date_to, session=session
            )
            for branch_id in router.branch_ids
        }


class UnionScatter:
    """All partitions in one UNION ALL query."""

    name = LookupStrategy.UNION

    def locate(self, db, transaction_id, partitions, session):
        return db.locate_transaction_union(transaction_id, partitions, session=session)

    def stats(self, db, router, date_from, date_to, session):
        return db.transaction_stats_union(router.partitions, date_from, date_to, session=session)


STRATEGIES: Mapping[LookupStrategy, ScatterStrategy] = {
    LookupStrategy.SEQUENTIAL: SequentialScatter(),
    LookupStrategy.UNION: UnionScatter(),
}


def resolve_strategy(strategy: "LookupStrategy | str | ScatterStrategy") -> ScatterStrategy:
    """Return a scatter strategy by name, or pass an instance through."""
    if isinstance(strategy, (LookupStrategy, str)):
        try:
            return STRATEGIES[LookupStrategy(strategy)]
        except ValueError:
            raise ValidationError(f"Unknown lookup strategy '{strategy}'") from None
    return strategy


class LedgerDirectory:
    """Cross-partition lookup, mutation by id, listing and statistics."""

    def __init__(
        self,
        db: Database,
        store: Optional[LedgerStore] = None,
        router: Optional[PartitionRouter] = None,
        strategy: "LookupStrategy | str | ScatterStrategy" = LookupStrategy.UNION,
        audit: Optional[AuditListener] = None,
    ):
        """Initialize ledger directory.

        Args:
            db: Database instance
            store: Ledger store used for mutations; built from db if omitted
            router: Branch to partition router
            strategy: Scatter strategy for lookups by id
            audit: Optional listener receiving committed mutations
        """
        self.db = db
        self.router = router or (store.router if store is not None else PartitionRouter())
        self.store = store or LedgerStore(db, self.router)
        self.strategy = resolve_strategy(strategy)
        self.audit = audit if audit is not None else self.store.audit

    def _record(self, entry: AuditEntry) -> None:
        if self.audit is not None:
            self.audit.record(entry)

    # Lookup by id
    def locate(self, transaction_id: str, session: Any = None) -> Optional[tuple[Partition, Transaction]]:
        """Find the partition holding a transaction, with the row itself."""
        if not transaction_id:
            return None
        with transactional(self.db, session) as s:
            found = self.strategy.locate(self.db, str(transaction_id), self.router.partitions, s)
        if found is None:
            logger.debug("Transaction %s not found (%s)", transaction_id, self.strategy.name.value)
        return found

    def find_by_id(self, transaction_id: str, session: Any = None) -> Optional[Transaction]:
        """Return the transaction with this id from whichever partition holds it."""
        found = self.locate(transaction_id, session=session)
        return found[1] if found is not None else None

    def update_by_id(
        self,
        transaction_id: str,
        fields: Mapping[str, Any],
        actor_id: Optional[int] = None,
        session: Any = None,
    ) -> TransactionChange:
        """Locate a transaction and update it inside its own partition.

        Raises:
            TransactionNotFoundError: If no partition holds the id
        """
        with transactional(self.db, session) as s:
            found = self.locate(transaction_id, session=s)
            if found is None:
                raise TransactionNotFoundError(transaction_id)
            partition, _ = found
            change = self.store.update(partition, transaction_id, fields, actor_id=actor_id, session=s)

        if session is None:
            self._record(
                AuditEntry(
                    actor_id, "transaction.update", "transaction", transaction_id,
                    before=change.before.as_dict(), after=change.after.as_dict(),
                )
            )
        return change

    def delete_by_id(self, transaction_id: str, actor_id: Optional[int] = None, session: Any = None) -> Transaction:
        """Locate a transaction and delete it from its own partition.

        Raises:
            TransactionNotFoundError: If no partition holds the id
        """
        with transactional(self.db, session) as s:
            found = self.locate(transaction_id, session=s)
            if found is None:
                raise TransactionNotFoundError(transaction_id)
            partition, _ = found
            deleted = self.store.delete(partition, transaction_id, actor_id=actor_id, session=s)

        if session is None:
            self._record(
                AuditEntry(actor_id, "transaction.delete", "transaction", transaction_id, before=deleted.as_dict())
            )
        return deleted

    # Branch-scoped reads
    def list_transactions(
        self, branch_id: int, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        """List one branch's transactions, newest first.

        Raises:
            BranchIdRequiredError: If branch_id is None
            UnknownBranchError: If branch_id is not routed
        """
        partition = self.router.partition_for(branch_id)
        return self.db.list_transactions(
            partition, self.router.branch_for(partition), filters or TransactionFilters()
        )

    def recent_transactions(self, branch_id: int, limit: int = DEFAULT_RECENT_LIMIT) -> list[Transaction]:
        return self.list_transactions(branch_id, TransactionFilters(limit=limit))

    def search_by_payee(self, branch_id: int, term: str, limit: Optional[int] = None) -> list[Transaction]:
        return self.list_transactions(branch_id, TransactionFilters(payee=term, limit=limit))

    def transactions_between(self, branch_id: int, start: date, end: date) -> list[Transaction]:
        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}")
        return self.list_transactions(branch_id, TransactionFilters(date_from=start, date_to=end))

    def transactions_for_month(self, branch_id: int, year: int, month: int) -> list[Transaction]:
        """List a branch's transactions dated within one calendar month."""
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")
        start = date(year, month, 1)
        end = start + relativedelta(months=1) - timedelta(days=1)
        return self.transactions_between(branch_id, start, end)

    def transaction_stats(
        self, branch_id: int, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> TransactionStats:
        """Aggregate one branch's totals."""
        partition = self.router.partition_for(branch_id)
        return self.db.transaction_stats(partition, self.router.branch_for(partition), date_from, date_to)

    # Consolidated reads
    def consolidated_stats(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> list[TransactionStats]:
        """Aggregate totals for every branch, one entry per branch in id order."""
        with self.db.unit_of_work() as s:
            by_branch = self.strategy.stats(self.db, self.router, date_from, date_to, s)
        return [by_branch.get(branch_id, TransactionStats(branch_id)) for branch_id in self.router.branch_ids]
