# Overview: Pytest coverage for the weight x unit price rule.

from decimal import Decimal
from types import SimpleNamespace

import pytest

from farmledger.services.pricing_service import MAX_TOTAL, compute_total, reprice
from farmledger.validation import ValidationError


class TestComputeTotal:

    def test_exact_fixed_point_product(self):
        assert compute_total(Decimal("100.00"), Decimal("150000.00")) == Decimal("15000000.00")

    def test_float_inputs_do_not_drift(self):
        # 0.1 * 3 is 0.30000000000000004 in binary floating point
        assert compute_total(0.1, 3) == Decimal("0.30")

    def test_rounds_half_up_to_cents(self):
        assert compute_total("0.5", "0.01") == Decimal("0.01")
        assert compute_total("1.25", "0.5") == Decimal("0.63")

    def test_zero_weight_is_zero_total(self):
        assert compute_total("0", "150000") == Decimal("0.00")

    def test_missing_operand_rejected(self):
        with pytest.raises(ValueError):
            compute_total(None, "1.00")

    def test_largest_storable_total(self):
        assert compute_total("1", "9999999999999.99") == MAX_TOTAL - Decimal("0.01")

    def test_total_beyond_column_rejected(self):
        # each operand fits its own column, the product does not
        with pytest.raises(ValidationError) as exc:
            compute_total("99999999.99", "9999999999999.99")
        assert set(exc.value.errors) == {"weight", "unit_price"}

    def test_rounding_up_into_overflow_rejected(self):
        with pytest.raises(ValidationError):
            compute_total("1", "9999999999999.995")


class TestReprice:

    def test_overwrites_existing_total(self):
        record = SimpleNamespace(weight=Decimal("2.50"), unit_price=Decimal("40.00"), total_amount=Decimal("999"))
        assert reprice(record) == Decimal("100.00")
        assert record.total_amount == Decimal("100.00")

    def test_uses_current_field_values(self):
        record = SimpleNamespace(weight=Decimal("100.00"), unit_price=Decimal("150000.00"), total_amount=None)
        reprice(record)
        record.weight = Decimal("50.00")
        reprice(record)
        assert record.total_amount == Decimal("7500000.00")
