"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse a ledger amount string into a Decimal.

    Handles various formats:
    - "5000"
    - "5,000.50"
    - "₱5,000.50"
    - "PHP 5000"

    Sign is preserved; non-negative checks belong to transaction validation.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = amount_str.strip()

    # Remove currency symbols and codes
    cleaned = re.sub(r"^(PHP|Php|php)\s*", "", cleaned)
    cleaned = re.sub(r"[₱$]", "", cleaned)

    # Remove thousands separators
    cleaned = cleaned.replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'") from None
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount
