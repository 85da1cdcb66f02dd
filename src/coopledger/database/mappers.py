"""Mapper functions to convert storage rows into domain entities.

Transaction mapping works on both ORM instances and Core result rows, since
cross-partition union queries return plain rows rather than mapped objects.
"""

import json
from decimal import Decimal
from typing import Any

from coopledger.domain import entities as domain
from coopledger.database.models import (
    Branch as ORMBranch,
    ChangeRequest as ORMChangeRequest,
    User as ORMUser,
)


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _json_object(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


def branch_to_domain(orm_branch: ORMBranch) -> domain.Branch:
    """Convert SQLAlchemy Branch model to domain Branch entity."""
    return domain.Branch(
        id=orm_branch.id,
        name=orm_branch.name,
        location=orm_branch.location,
        is_main=orm_branch.is_main,
    )


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        username=orm_user.username,
        first_name=orm_user.first_name,
        last_name=orm_user.last_name,
        branch_id=orm_user.branch_id,
        role=orm_user.role,
        account_kind=domain.AccountKind(orm_user.account_kind),
        is_active=orm_user.is_active,
        created_at=orm_user.created_at,
    )


def transaction_to_domain(row: Any) -> domain.Transaction:
    """Convert a partition row (ORM instance or Core row) to a Transaction entity."""
    return domain.Transaction(
        id=row.id,
        branch_id=row.branch_id,
        transaction_date=row.transaction_date,
        payee=row.payee,
        reference=row.reference,
        cross_reference=row.cross_reference,
        check_number=row.check_number,
        particulars=row.particulars,
        debit_amount=_decimal(row.debit_amount),
        credit_amount=_decimal(row.credit_amount),
        cash_in_bank=_decimal(row.cash_in_bank),
        loan_receivables=_decimal(row.loan_receivables),
        savings_deposits=_decimal(row.savings_deposits),
        interest_income=_decimal(row.interest_income),
        service_charge=_decimal(row.service_charge),
        sundries=_decimal(row.sundries),
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def stats_to_domain(branch_id: int, row: Any) -> domain.TransactionStats:
    """Convert an aggregate row to a TransactionStats entity."""
    return domain.TransactionStats(
        branch_id=branch_id,
        total_transactions=int(row.total_transactions or 0),
        total_debits=_decimal(row.total_debits),
        total_credits=_decimal(row.total_credits),
        total_cash_in_bank=_decimal(row.total_cash_in_bank),
        total_loan_receivables=_decimal(row.total_loan_receivables),
        total_savings_deposits=_decimal(row.total_savings_deposits),
        total_interest_income=_decimal(row.total_interest_income),
        total_service_charge=_decimal(row.total_service_charge),
        total_sundries=_decimal(row.total_sundries),
    )


def change_request_to_domain(orm_request: ORMChangeRequest) -> domain.ChangeRequest:
    """Convert SQLAlchemy ChangeRequest model to domain ChangeRequest entity."""
    return domain.ChangeRequest(
        id=orm_request.id,
        transaction_id=orm_request.transaction_id,
        transaction_table=orm_request.transaction_table,
        requested_by=orm_request.requested_by,
        assigned_to=orm_request.assigned_to,
        branch_id=orm_request.branch_id,
        request_type=domain.RequestType(orm_request.request_type),
        original_data=_json_object(orm_request.original_data),
        requested_changes=_json_object(orm_request.requested_changes),
        reason=orm_request.reason,
        status=domain.ChangeRequestStatus(orm_request.status),
        reviewer_notes=orm_request.reviewer_notes,
        processed_by=orm_request.processed_by,
        processed_at=orm_request.processed_at,
        created_at=orm_request.created_at,
        updated_at=orm_request.updated_at,
    )
