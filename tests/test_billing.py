"""Unit tests for operations/billing.py -- order totals and currency display.

Covers:
- compute_totals() tax on subtotal, discount, half-up rounding, zero floor
- negative inputs rejected
- format_currency() symbols, grouping and unknown currency codes
"""

import pytest

from operations.billing import compute_totals, format_currency


class TestComputeTotals:
    def test_tax_and_total(self) -> None:
        assert compute_totals(100.0, 0.08) == (8.0, 108.0)

    def test_discount_applied_after_tax(self) -> None:
        """Tax is charged on the full subtotal; the discount comes off the total."""
        assert compute_totals(50.0, 0.10, discount=5.0) == (5.0, 50.0)

    def test_rounds_half_up_to_cents(self) -> None:
        tax, total = compute_totals(10.05, 0.05)
        assert tax == 0.5
        assert total == 10.55

    def test_total_never_negative(self) -> None:
        assert compute_totals(10.0, 0.0, discount=25.0) == (0.0, 0.0)

    @pytest.mark.parametrize(
        "subtotal, rate, discount",
        [(-1.0, 0.08, 0.0), (10.0, -0.1, 0.0), (10.0, 0.08, -2.0)],
    )
    def test_negative_inputs_rejected(self, subtotal, rate, discount) -> None:
        with pytest.raises(ValueError):
            compute_totals(subtotal, rate, discount)


class TestFormatCurrency:
    def test_usd_grouping(self) -> None:
        assert format_currency(1234.5) == "$1,234.50"

    def test_other_symbols(self) -> None:
        assert format_currency(3, "EUR") == "€3.00"
        assert format_currency(3, "gbp") == "£3.00"

    def test_negative_amount(self) -> None:
        assert format_currency(-7.25) == "-$7.25"

    def test_unknown_code_is_suffixed(self) -> None:
        assert format_currency(1234.5, "CHF") == "1,234.50 CHF"
