"""Keyword-based balance bucket categorization.

Each bucket is evaluated independently against the lower-cased particulars,
so one memo can land in several buckets at once ("loan repayment" moves both
cash in bank and loan receivables).
"""

from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any, Mapping, Optional

ZERO = Decimal("0")

BUCKET_FIELDS = (
    "cash_in_bank",
    "loan_receivables",
    "savings_deposits",
    "interest_income",
    "service_charge",
    "sundries",
)


@dataclass(frozen=True)
class BalanceBuckets:
    """Derived balance bucket amounts for one transaction."""

    cash_in_bank: Decimal = ZERO
    loan_receivables: Decimal = ZERO
    savings_deposits: Decimal = ZERO
    interest_income: Decimal = ZERO
    service_charge: Decimal = ZERO
    sundries: Decimal = ZERO

    def as_dict(self) -> dict[str, Decimal]:
        return asdict(self)


def _mentions(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


def _cash_in_bank(debit: Decimal, credit: Decimal, text: str) -> Decimal:
    if _mentions(text, "deposit", "savings"):
        return credit
    if _mentions(text, "loan", "disbursement"):
        return -debit
    return ZERO


def _loan_receivables(debit: Decimal, credit: Decimal, text: str) -> Decimal:
    if _mentions(text, "loan", "disbursement"):
        return debit
    if _mentions(text, "repayment", "payment"):
        return -credit
    return ZERO


def _credit_if(credit: Decimal, text: str, *keywords: str) -> Decimal:
    return credit if _mentions(text, *keywords) else ZERO


def categorize(debit: Decimal, credit: Decimal, particulars: Optional[str]) -> BalanceBuckets:
    """Classify a debit/credit movement into balance buckets.

    Args:
        debit: Debit amount (non-negative)
        credit: Credit amount (non-negative)
        particulars: Free-text memo; matching is case-insensitive

    Returns:
        BalanceBuckets with every bucket computed independently
    """
    debit = Decimal(debit or 0)
    credit = Decimal(credit or 0)
    text = (particulars or "").lower()

    return BalanceBuckets(
        cash_in_bank=_cash_in_bank(debit, credit, text),
        loan_receivables=_loan_receivables(debit, credit, text),
        savings_deposits=_credit_if(credit, text, "savings", "deposit"),
        interest_income=_credit_if(credit, text, "interest", "income"),
        service_charge=_credit_if(credit, text, "service", "charge", "fee"),
        sundries=_credit_if(credit, text, "sundries", "miscellaneous", "other"),
    )


def has_explicit_buckets(fields: Mapping[str, Any]) -> bool:
    """Return True if the caller supplied any non-zero bucket amount itself.

    All-zero buckets count as not supplied and are still categorized.
    """
    for name in BUCKET_FIELDS:
        value = fields.get(name)
        if value not in (None, "") and Decimal(str(value)) != ZERO:
            return True
    return False
