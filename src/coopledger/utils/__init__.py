"""Input parsing utilities for coopledger."""

from coopledger.utils.date_parser import parse_date, get_date_range
from coopledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "get_date_range", "parse_amount"]
