"""Tests for vitaltrack/forms.py - input validation."""

from datetime import datetime, timedelta, timezone

import pytest

from vitaltrack.errors import (
    ClientError,
    InvalidIntegerError,
    InvalidOptionError,
    InvalidRationalError,
    MissingValueError,
    NegativeValueError,
    ValueTooHighError,
    ValueTooLowError,
)
from vitaltrack.forms import (
    blood_pressure_from_form,
    blood_sugar_from_form,
    body_mass_from_form,
    temperature_from_form,
)
from vitaltrack.numerism import Rational

NOW = datetime(2025, 2, 1, 7, 45, tzinfo=timezone(timedelta(hours=1)))


class TestBloodPressureForm:
    """Tests for blood_pressure_from_form."""

    def test_valid(self):
        measurement = blood_pressure_from_form(
            {"systolic": "121", "diastolic": "79", "pulse": "64", "spo2": "98"}, NOW
        )
        assert (measurement.systolic, measurement.diastolic, measurement.pulse) == (121, 79, 64)
        assert measurement.spo2 == 98
        assert measurement.timestamp == NOW
        assert measurement.id is None

    def test_blank_spo2_is_absent(self):
        measurement = blood_pressure_from_form(
            {"systolic": "121", "diastolic": "79", "pulse": "64", "spo2": ""}, NOW
        )
        assert measurement.spo2 is None

    def test_default_timestamp_is_local_aware(self):
        measurement = blood_pressure_from_form({"systolic": "1", "diastolic": "1", "pulse": "1"})
        assert measurement.timestamp.tzinfo is not None

    def test_missing_value(self):
        with pytest.raises(MissingValueError) as exc_info:
            blood_pressure_from_form({"systolic": "121", "pulse": "64"}, NOW)
        assert exc_info.value.key == "diastolic"

    def test_not_an_integer(self):
        with pytest.raises(InvalidIntegerError) as exc_info:
            blood_pressure_from_form({"systolic": "12x", "diastolic": "79", "pulse": "64"}, NOW)
        assert exc_info.value.key == "systolic"
        assert exc_info.value.value == "12x"

    @pytest.mark.parametrize("raw", ["1_2_0", "٨٠", "１２０", "12.0", "+", "1 2"])
    def test_integer_requires_ascii_digits(self, raw):
        """Underscores, non-ASCII digits and decimals are not integers."""
        with pytest.raises(InvalidIntegerError) as exc_info:
            blood_pressure_from_form({"systolic": raw, "diastolic": "79", "pulse": "64"}, NOW)
        assert exc_info.value.value == raw

    def test_integer_with_sign(self):
        measurement = blood_pressure_from_form(
            {"systolic": "+121", "diastolic": "79", "pulse": "64"}, NOW
        )
        assert measurement.systolic == 121

    def test_naive_timestamp_gets_local_offset(self):
        naive = datetime(2025, 2, 1, 7, 45)
        measurement = blood_pressure_from_form(
            {"systolic": "121", "diastolic": "79", "pulse": "64"}, naive
        )
        assert measurement.timestamp.utcoffset() is not None
        assert measurement.timestamp.replace(tzinfo=None) == naive

    def test_negative(self):
        with pytest.raises(NegativeValueError):
            blood_pressure_from_form({"systolic": "121", "diastolic": "79", "pulse": "-1"}, NOW)

    def test_spo2_ceiling(self):
        with pytest.raises(ValueTooHighError) as exc_info:
            blood_pressure_from_form(
                {"systolic": "121", "diastolic": "79", "pulse": "64", "spo2": "101"}, NOW
            )
        assert exc_info.value.maximum == 100
        assert "too high" in exc_info.value.detail


class TestBodyMassForm:
    """Tests for body_mass_from_form."""

    def test_with_height(self):
        measurement = body_mass_from_form({"mass_kg": "80"}, 200, NOW)
        assert measurement.mass_kg == Rational(80)
        assert measurement.bmi == Rational(20)

    def test_without_height(self):
        measurement = body_mass_from_form({"mass_kg": "80.25"}, None, NOW)
        assert measurement.mass_kg == Rational(321, 4)
        assert measurement.bmi is None

    def test_malformed(self):
        with pytest.raises(InvalidRationalError) as exc_info:
            body_mass_from_form({"mass_kg": "80,5"}, None, NOW)
        assert exc_info.value.key == "mass_kg"
        assert exc_info.value.value == "80,5"

    def test_negative(self):
        with pytest.raises(NegativeValueError):
            body_mass_from_form({"mass_kg": "-80"}, None, NOW)

    def test_zero_height_is_rejected_as_input_error(self):
        with pytest.raises(ClientError):
            body_mass_from_form({"mass_kg": "80"}, 0, NOW)


class TestTemperatureForm:
    """Tests for temperature_from_form."""

    def test_valid(self):
        measurement = temperature_from_form({"location": "1", "temperature_celsius": "36.6"}, NOW)
        assert measurement.location_id == 1
        assert measurement.temperature_celsius == Rational(183, 5)

    def test_negative_celsius_allowed(self):
        measurement = temperature_from_form({"location": "1", "temperature_celsius": "-5"}, NOW)
        assert measurement.temperature_celsius == Rational(-5)

    def test_below_absolute_zero(self):
        with pytest.raises(ValueTooLowError) as exc_info:
            temperature_from_form({"location": "1", "temperature_celsius": "-273.16"}, NOW)
        assert exc_info.value.minimum == "-273.15"

    def test_absolute_zero_accepted(self):
        measurement = temperature_from_form({"location": "1", "temperature_celsius": "-273.15"}, NOW)
        assert measurement.temperature_celsius == Rational(-27315, 100)

    def test_missing_location(self):
        with pytest.raises(MissingValueError):
            temperature_from_form({"temperature_celsius": "36.6"}, NOW)


class TestBloodSugarForm:
    """Tests for blood_sugar_from_form."""

    def test_mg_per_dl(self):
        measurement = blood_sugar_from_form({"sugar_unit_key": "mg-per-dl", "sugar_value": "90"}, NOW)
        assert measurement.sugar_mmol_per_l == Rational(5)

    def test_mmol_per_l(self):
        measurement = blood_sugar_from_form(
            {"sugar_unit_key": "mmol-per-l", "sugar_value": "5.4"}, NOW
        )
        assert measurement.sugar_mmol_per_l == Rational(27, 5)

    def test_unit_checked_before_value(self):
        with pytest.raises(InvalidOptionError):
            blood_sugar_from_form({"sugar_unit_key": "percent"}, NOW)

    def test_missing_unit(self):
        with pytest.raises(MissingValueError) as exc_info:
            blood_sugar_from_form({"sugar_value": "5"}, NOW)
        assert exc_info.value.key == "sugar_unit_key"

    def test_missing_value(self):
        with pytest.raises(MissingValueError) as exc_info:
            blood_sugar_from_form({"sugar_unit_key": "mg-per-dl"}, NOW)
        assert exc_info.value.key == "sugar_value"

    def test_error_report(self):
        with pytest.raises(ClientError) as exc_info:
            blood_sugar_from_form({"sugar_unit_key": "mg-per-dl", "sugar_value": "1..2"}, NOW)
        report = exc_info.value.to_dict()
        assert report["error"] == "InvalidRationalError"
        assert report["context"] == {"key": "sugar_value", "value": "1..2"}
