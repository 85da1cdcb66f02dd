"""Domain model entities for coopledger.

These are pure data classes representing business concepts, independent of
database schema. Storage rows are converted into them by
``coopledger.database.mappers``.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

REQUEST_NUMBER_PREFIX = "CR-"
REQUEST_NUMBER_LENGTH = 8


class AccountKind(str, Enum):
    """Whether a user account belongs to real staff or seeded test data."""

    PRODUCTION = "production"
    TEST = "test"


class ChangeRequestStatus(str, Enum):
    """Change request lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ChangeRequestStatus.PENDING


class RequestType(str, Enum):
    """Kind of change a requester is asking for."""

    MODIFICATION = "modification"
    DELETION = "deletion"


def request_number(request_id: str) -> str:
    """Return the human-readable number for a change request id.

    >>> request_number("3f2a9c1e-0000-4000-8000-000000000000")
    'CR-3F2A9C1E'
    """
    return REQUEST_NUMBER_PREFIX + str(request_id)[:REQUEST_NUMBER_LENGTH].upper()


@dataclass(frozen=True)
class Branch:
    """Cooperative branch. Static reference data."""

    id: int
    name: str
    location: str
    is_main: bool = False


@dataclass(frozen=True)
class User:
    """Staff user, as far as the ledger core needs to know about one."""

    id: int
    username: str
    first_name: str
    last_name: str
    branch_id: int
    role: str
    account_kind: AccountKind
    is_active: bool
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction entity."""

    id: str
    branch_id: int
    transaction_date: date
    payee: str
    particulars: str
    debit_amount: Decimal
    credit_amount: Decimal
    cash_in_bank: Decimal
    loan_receivables: Decimal
    savings_deposits: Decimal
    interest_income: Decimal
    service_charge: Decimal
    sundries: Decimal
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime
    reference: Optional[str] = None
    cross_reference: Optional[str] = None
    check_number: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly snapshot of the row.

        Used as the original-data snapshot of a change request and as the
        before/after payload of audit entries.
        """
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "transaction_date": self.transaction_date.isoformat(),
            "payee": self.payee,
            "reference": self.reference,
            "cross_reference": self.cross_reference,
            "check_number": self.check_number,
            "particulars": self.particulars,
            "debit_amount": str(self.debit_amount),
            "credit_amount": str(self.credit_amount),
            "cash_in_bank": str(self.cash_in_bank),
            "loan_receivables": str(self.loan_receivables),
            "savings_deposits": str(self.savings_deposits),
            "interest_income": str(self.interest_income),
            "service_charge": str(self.service_charge),
            "sundries": str(self.sundries),
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class TransactionChange:
    """Before and after state of a mutated transaction."""

    before: Transaction
    after: Transaction

    @property
    def changed_fields(self) -> list[str]:
        before = self.before.as_dict()
        after = self.after.as_dict()
        return sorted(k for k in after if k != "updated_at" and before.get(k) != after[k])


@dataclass(frozen=True)
class TransactionStats:
    """Aggregated totals for one branch."""

    branch_id: int
    total_transactions: int = 0
    total_debits: Decimal = Decimal("0")
    total_credits: Decimal = Decimal("0")
    total_cash_in_bank: Decimal = Decimal("0")
    total_loan_receivables: Decimal = Decimal("0")
    total_savings_deposits: Decimal = Decimal("0")
    total_interest_income: Decimal = Decimal("0")
    total_service_charge: Decimal = Decimal("0")
    total_sundries: Decimal = Decimal("0")


@dataclass(frozen=True)
class ChangeRequest:
    """Proposed change to an existing transaction."""

    id: str
    transaction_id: str
    transaction_table: str
    requested_by: int
    assigned_to: Optional[int]
    branch_id: int
    request_type: RequestType
    original_data: dict[str, Any]
    requested_changes: dict[str, Any]
    reason: Optional[str]
    status: ChangeRequestStatus
    created_at: datetime
    updated_at: datetime
    reviewer_notes: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None

    @property
    def request_number(self) -> str:
        return request_number(self.id)

    @property
    def is_pending(self) -> bool:
        return self.status is ChangeRequestStatus.PENDING


@dataclass(frozen=True)
class NotificationEvent:
    """Structured event handed to a notification sink."""

    user_id: int
    branch_id: int
    title: str
    body: str
    reference_id: str
    category: str = "important"
    severity: str = "info"
    reference_type: str = "change_request"
    highlighted: bool = True
    priority: str = "important"
    metadata: dict[str, Any] = field(default_factory=dict)
