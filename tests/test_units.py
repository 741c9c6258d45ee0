"""Tests for vitaltrack/units.py - unit normalization."""

import pytest

from vitaltrack.errors import ClientError, InvalidOptionError, RationalDivisionByZeroError
from vitaltrack.numerism import Rational
from vitaltrack.units import (
    ABSOLUTE_ZERO_CELSIUS,
    SugarUnit,
    body_mass_index,
    squared_height_m2,
    sugar_to_mmol_per_l,
)


class TestBodyMassIndex:
    """Tests for BMI derivation."""

    def test_bmi_exact(self):
        """Test 80 kg at 200 cm is exactly 20."""
        assert body_mass_index(Rational(80), 200) == Rational(20)

    def test_bmi_is_exact_fraction(self):
        """Test BMI keeps the exact fraction."""
        bmi = body_mass_index(Rational.parse("72.5"), 180)
        assert bmi == Rational(145, 2) / Rational(81, 25)
        assert bmi.to_decimal_string(2) == "22.38"

    def test_no_height_means_not_computable(self):
        """Test BMI is absent without a configured height."""
        assert body_mass_index(Rational(80), None) is None

    def test_zero_height_raises(self):
        with pytest.raises(RationalDivisionByZeroError):
            body_mass_index(Rational(80), 0)

    def test_squared_height(self):
        assert squared_height_m2(150) == Rational(9, 4)
        assert squared_height_m2(None) is None


class TestSugarUnits:
    """Tests for blood sugar unit conversion."""

    def test_mg_per_dl_converts_exactly(self):
        """Test 90 mg/dL is exactly 5 mmol/L."""
        assert sugar_to_mmol_per_l(Rational(90), "mg-per-dl") == Rational(5)

    def test_mg_per_dl_non_terminating(self):
        """Test 100 mg/dL keeps the exact fraction 50/9."""
        value = sugar_to_mmol_per_l(Rational(100), "mg-per-dl")
        assert (value.numerator, value.denominator) == (50, 9)

    def test_mmol_per_l_unchanged(self):
        value = Rational.parse("5.6")
        assert sugar_to_mmol_per_l(value, "mmol-per-l") == value

    def test_unknown_unit_lists_valid_options(self):
        """Test an unknown unit key lists both valid keys."""
        with pytest.raises(InvalidOptionError) as exc_info:
            sugar_to_mmol_per_l(Rational(5), "mg")
        assert exc_info.value.valid_options == ["mmol-per-l", "mg-per-dl"]
        assert exc_info.value.key == "sugar_unit_key"
        assert exc_info.value.value == "mg"

    def test_invalid_option_is_client_error(self):
        with pytest.raises(ClientError):
            SugarUnit.from_key("MMOL-PER-L")

    @pytest.mark.parametrize(
        "key,factor", [("mmol-per-l", Rational(1)), ("mg-per-dl", Rational(1, 18))]
    )
    def test_factors(self, key, factor):
        assert SugarUnit.from_key(key).factor_to_mmol_per_l == factor


def test_absolute_zero():
    assert ABSOLUTE_ZERO_CELSIUS == Rational.parse("-273.15")
