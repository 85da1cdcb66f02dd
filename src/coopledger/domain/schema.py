"""Field schema for ledger writes and requested-changes patches.

Only the fields listed here can reach a partition's column list. Values are
coerced to their column types before any statement is built.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from dateutil.parser import isoparse

from coopledger.domain.categorizer import BUCKET_FIELDS

DATE_FIELDS = ("transaction_date",)
REQUIRED_TEXT_FIELDS = ("payee", "particulars")
OPTIONAL_TEXT_FIELDS = ("reference", "cross_reference", "check_number")
AMOUNT_FIELDS = ("debit_amount", "credit_amount") + BUCKET_FIELDS

MUTABLE_FIELDS = frozenset(
    DATE_FIELDS + REQUIRED_TEXT_FIELDS + OPTIONAL_TEXT_FIELDS + AMOUNT_FIELDS
)

# Accepted in a requested-changes patch but never applied.
IGNORED_PATCH_FIELDS = frozenset({"branch_id"})


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return isoparse(value.strip()).date()
    raise ValueError(f"not a date: {value!r}")


def _coerce_amount(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"not an amount: {value!r}")
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise ValueError(f"not an amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"not an amount: {value!r}")
    return amount


def _coerce_optional_text(value: Any) -> Any:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def unknown_fields(fields: Iterable[str]) -> list[str]:
    """Return field names that are neither mutable nor ignorable, sorted."""
    return sorted(set(fields) - MUTABLE_FIELDS - IGNORED_PATCH_FIELDS)


def coerce_fields(fields: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Coerce the known fields of a mapping to their column types.

    Unknown keys are skipped; callers decide whether to reject them.

    Returns:
        Tuple of (coerced values, error messages)
    """
    values: dict[str, Any] = {}
    errors: list[str] = []

    for name, raw in fields.items():
        if name not in MUTABLE_FIELDS:
            continue
        try:
            if name in DATE_FIELDS:
                values[name] = None if raw in (None, "") else _coerce_date(raw)
            elif name in AMOUNT_FIELDS:
                values[name] = _coerce_amount(raw)
            elif name in OPTIONAL_TEXT_FIELDS:
                values[name] = _coerce_optional_text(raw)
            else:
                values[name] = raw if raw is None else str(raw)
        except (ValueError, OverflowError) as exc:
            errors.append(f"Invalid {name.replace('_', ' ')}: {exc}")

    return values, errors
