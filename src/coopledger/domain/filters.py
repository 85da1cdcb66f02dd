"""Query filters for transaction and change request listings."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from coopledger.domain.entities import ChangeRequestStatus, RequestType


@dataclass(frozen=True)
class TransactionFilters:
    """Filters for a branch-scoped transaction listing.

    payee and reference match case-insensitively anywhere in the field.
    """

    payee: Optional[str] = None
    reference: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass(frozen=True)
class ChangeRequestFilters:
    """Filters for change request listings."""

    branch_id: Optional[int] = None
    status: Optional[ChangeRequestStatus] = None
    assigned_to: Optional[int] = None
    requested_by: Optional[int] = None
    transaction_id: Optional[str] = None
    request_type: Optional[RequestType] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
