"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from coopledger.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("5000", Decimal("5000")),
        ("5,000.50", Decimal("5000.50")),
        ("₱5,000.50", Decimal("5000.50")),
        ("PHP 1,250", Decimal("1250")),
        ("$12.34", Decimal("12.34")),
        ("-75.00", Decimal("-75.00")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3", "NaN", "Infinity"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)
