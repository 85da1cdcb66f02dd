"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Any, Iterable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from coopledger.domain.branches import Partition
from coopledger.domain.entities import (
    AccountKind,
    Branch,
    ChangeRequest,
    ChangeRequestStatus,
    Transaction,
    TransactionStats,
    User,
)
from coopledger.domain.filters import ChangeRequestFilters, TransactionFilters


class Database(ABC):
    """Abstract database interface for coopledger.

    Every data method accepts an optional ``session``. When one is given the
    method runs inside the caller's unit of work and does not commit;
    otherwise it opens, commits and releases its own.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release pooled connections."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create tables and seed branch reference data."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[Any]:
        """Begin a transactional scope.

        Commits on normal exit, rolls back on any exception and always
        returns the connection to the pool.
        """
        pass

    # Branch and user operations
    @abstractmethod
    def list_branches(self) -> list[Branch]:
        """List seeded branches ordered by id."""
        pass

    @abstractmethod
    def create_user(
        self,
        username: str,
        branch_id: int,
        role: str,
        first_name: str = "",
        last_name: str = "",
        account_kind: AccountKind = AccountKind.PRODUCTION,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def find_reviewer(self, branch_id: int, role: str, session: Any = None) -> Optional[User]:
        """Pick the reviewer for a branch.

        Active users with the given role in the branch; production accounts
        before test accounts, then oldest account first.
        """
        pass

    # Single-partition transaction operations
    @abstractmethod
    def insert_transaction(
        self, partition: Partition, values: dict[str, Any], session: Any = None
    ) -> Transaction:
        """Insert one row into a partition. Returns the stored row."""
        pass

    @abstractmethod
    def get_transaction(
        self, partition: Partition, transaction_id: str, session: Any = None
    ) -> Optional[Transaction]:
        """Get a transaction from one partition."""
        pass

    @abstractmethod
    def update_transaction(
        self, partition: Partition, transaction_id: str, values: dict[str, Any], session: Any = None
    ) -> Optional[Transaction]:
        """Update columns of one row. Returns None if no row was affected."""
        pass

    @abstractmethod
    def delete_transaction(
        self, partition: Partition, transaction_id: str, session: Any = None
    ) -> Optional[Transaction]:
        """Delete one row. Returns the deleted row, or None if absent."""
        pass

    @abstractmethod
    def list_transactions(
        self, partition: Partition, branch_id: int, filters: TransactionFilters, session: Any = None
    ) -> list[Transaction]:
        """List a branch's transactions, newest first."""
        pass

    @abstractmethod
    def transaction_stats(
        self,
        partition: Partition,
        branch_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        session: Any = None,
    ) -> TransactionStats:
        """Aggregate totals for one branch."""
        pass

    # Cross-partition operations
    @abstractmethod
    def locate_transaction(
        self, transaction_id: str, partitions: Iterable[Partition], session: Any = None
    ) -> Optional[tuple[Partition, Transaction]]:
        """Search partitions one query at a time, stopping at the first hit."""
        pass

    @abstractmethod
    def locate_transaction_union(
        self, transaction_id: str, partitions: Iterable[Partition], session: Any = None
    ) -> Optional[tuple[Partition, Transaction]]:
        """Search all partitions with one UNION ALL query."""
        pass

    @abstractmethod
    def transaction_stats_union(
        self,
        partitions: Iterable[Partition],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        session: Any = None,
    ) -> dict[int, TransactionStats]:
        """Aggregate totals per branch over all partitions in one query.

        Branches without transactions are absent from the result.
        """
        pass

    # Change request operations
    @abstractmethod
    def insert_change_request(self, values: dict[str, Any], session: Any = None) -> ChangeRequest:
        """Insert a change request. Returns the stored row."""
        pass

    @abstractmethod
    def get_change_request(self, request_id: str, session: Any = None) -> Optional[ChangeRequest]:
        """Get change request by ID."""
        pass

    @abstractmethod
    def set_change_request_status(
        self,
        request_id: str,
        status: ChangeRequestStatus,
        reviewer_notes: Optional[str],
        processed_by: Optional[int],
        expected_status: ChangeRequestStatus = ChangeRequestStatus.PENDING,
        session: Any = None,
    ) -> Optional[ChangeRequest]:
        """Move a request out of expected_status.

        Returns None if the request was not in expected_status.
        """
        pass

    @abstractmethod
    def list_change_requests(
        self, filters: ChangeRequestFilters, session: Any = None
    ) -> list[ChangeRequest]:
        """List change requests, newest first."""
        pass

    @abstractmethod
    def count_change_requests(self, filters: ChangeRequestFilters, session: Any = None) -> int:
        """Count change requests matching filters (limit/offset ignored)."""
        pass
