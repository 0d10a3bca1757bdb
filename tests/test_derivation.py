"""
Tests for derived price computation

These tests verify:
- ABSOLUTE and PERCENT formulas
- Rounding to cents
- Rejection of negative or oversized results and unknown kinds
"""

import pytest
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from extranet.services.derivation import derive_price, apply_rule
from extranet.services.pricing_errors import InvalidDerivation
from extranet.services.rate_plan_registry import RuleSnapshot


class TestAbsoluteRule:
    """ABSOLUTE: derived = std + value"""

    def test_positive_value(self):
        """STD 100 with +10 gives 110"""
        assert derive_price(Decimal("100"), "ABSOLUTE", Decimal("10")) == Decimal("110.00")

    def test_negative_value(self):
        """STD 100 with -25 gives 75"""
        assert derive_price(Decimal("100"), "ABSOLUTE", Decimal("-25")) == Decimal("75.00")

    def test_result_exactly_zero_is_allowed(self):
        assert derive_price(Decimal("40"), "ABSOLUTE", Decimal("-40")) == Decimal("0.00")

    def test_negative_result_rejected(self):
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("40"), "ABSOLUTE", Decimal("-40.01"))

    def test_kind_is_case_insensitive(self):
        assert derive_price(100, "absolute", 5) == Decimal("105.00")

    def test_missing_value_means_zero(self):
        assert derive_price(Decimal("80"), "ABSOLUTE", None) == Decimal("80.00")


class TestPercentRule:
    """PERCENT: derived = std * (1 + value/100)"""

    def test_ten_percent_discount(self):
        """STD 100 with -10% gives 90"""
        assert derive_price(Decimal("100"), "PERCENT", Decimal("-10")) == Decimal("90.00")

    def test_markup(self):
        """STD 200 with +15% gives 230"""
        assert derive_price(Decimal("200"), "PERCENT", Decimal("15")) == Decimal("230.00")

    def test_rounds_half_up_to_cents(self):
        """99.99 * 0.95 = 94.9905 -> 94.99; 10.05 * 1.5 = 15.075 -> 15.08"""
        assert derive_price(Decimal("99.99"), "PERCENT", Decimal("-5")) == Decimal("94.99")
        assert derive_price(Decimal("10.05"), "PERCENT", Decimal("50")) == Decimal("15.08")

    def test_minus_hundred_percent_is_free(self):
        assert derive_price(Decimal("50"), "PERCENT", Decimal("-100")) == Decimal("0.00")

    def test_negative_result_rejected(self):
        """STD 50 with -200% would be -50: rejected"""
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("50"), "PERCENT", Decimal("-200"))

    def test_float_inputs_are_exact(self):
        """Floats go through str() so 0.1 stays 0.1"""
        assert derive_price(0.1, "ABSOLUTE", 0.2) == Decimal("0.30")


class TestRejections:
    """Inputs that can never produce a price"""

    def test_missing_base(self):
        with pytest.raises(InvalidDerivation):
            derive_price(None, "ABSOLUTE", Decimal("10"))

    def test_unknown_kind(self):
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("100"), "MULTIPLY", Decimal("2"))

    def test_missing_kind(self):
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("100"), None, Decimal("2"))

    def test_non_numeric_value(self):
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("100"), "ABSOLUTE", "ten")

    def test_nan_base(self):
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("NaN"), "ABSOLUTE", 1)

    def test_result_above_column_range(self):
        with pytest.raises(InvalidDerivation, match="exceeds the maximum"):
            derive_price(Decimal("99999999.99"), "ABSOLUTE", 1)

    def test_percent_overflow(self):
        with pytest.raises(InvalidDerivation):
            derive_price(Decimal("60000000"), "PERCENT", 100)

    def test_largest_price_is_allowed(self):
        assert derive_price(Decimal("99999998.99"), "ABSOLUTE", 1) == Decimal("99999999.99")

    def test_invalid_derivation_is_a_value_error(self):
        assert issubclass(InvalidDerivation, ValueError)


class TestApplyRule:
    """apply_rule reads kind/value off a snapshot"""

    def test_apply_snapshot(self):
        rule = RuleSnapshot(
            rate_plan_id=2, property_id=1, room_type_id=7, code="BB",
            kind="ABSOLUTE", value=Decimal("10"), active=True
        )
        assert apply_rule(Decimal("100"), rule) == Decimal("110.00")
