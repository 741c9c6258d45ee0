"""Turn submitted key/value input into validated measurements.

Input values arrive as strings (form fields, CLI arguments). Every rejection is a
ClientError naming the key and the raw value; nothing is silently defaulted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime

from vitaltrack.errors import (
    ClientError,
    InvalidIntegerError,
    InvalidRationalError,
    MissingValueError,
    NegativeValueError,
    NumericError,
    ValueTooHighError,
    ValueTooLowError,
)
from vitaltrack.models import (
    BloodPressureMeasurement,
    BloodSugarMeasurement,
    BodyMassMeasurement,
    BodyTemperatureMeasurement,
)
from vitaltrack.numerism import ZERO, Rational
from vitaltrack.units import ABSOLUTE_ZERO_CELSIUS, SUGAR_UNIT_KEY, SugarUnit, body_mass_index

logger = logging.getLogger(__name__)

Form = Mapping[str, str]

SPO2_MAX_PERCENT = 100


def _raw(form: Form, key: str) -> str | None:
    value = form.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _reject(error: ClientError) -> ClientError:
    logger.warning(f"Rejected input: {error.detail}")
    return error


def get_int(form: Form, key: str, non_negative: bool = False) -> int | None:
    """Optional integer value; None if absent or blank."""
    raw = _raw(form, key)
    if raw is None:
        return None
    # int() alone would accept "1_000" and non-ASCII digits
    digits = raw[1:] if raw[0] in "+-" else raw
    if not (digits.isascii() and digits.isdigit()):
        raise _reject(InvalidIntegerError(key, raw))
    value = int(raw)
    if non_negative and value < 0:
        raise _reject(NegativeValueError(key, value))
    return value


def require_int(form: Form, key: str, non_negative: bool = False) -> int:
    value = get_int(form, key, non_negative)
    if value is None:
        raise _reject(MissingValueError(key))
    return value


def get_rational(form: Form, key: str, non_negative: bool = False) -> Rational | None:
    """Optional exact decimal value; None if absent or blank."""
    raw = _raw(form, key)
    if raw is None:
        return None
    try:
        value = Rational.parse(raw)
    except NumericError as e:
        raise _reject(InvalidRationalError(key, raw, getattr(e, "reason", e.detail))) from e
    if non_negative and value < ZERO:
        raise _reject(NegativeValueError(key, value))
    return value


def require_rational(form: Form, key: str, non_negative: bool = False) -> Rational:
    value = get_rational(form, key, non_negative)
    if value is None:
        raise _reject(MissingValueError(key))
    return value


def _now(now: datetime | None) -> datetime:
    """Offset-aware timestamp; naive values are taken as local time."""
    if now is None:
        return datetime.now().astimezone()
    if now.tzinfo is None or now.utcoffset() is None:
        return now.astimezone()
    return now


# ============== MEASUREMENT FORMS ==============


def blood_pressure_from_form(form: Form, now: datetime | None = None) -> BloodPressureMeasurement:
    """Build a blood pressure measurement from submitted input.

    Args:
        form: Keys systolic, diastolic, pulse and optional spo2
        now: Timestamp to record (defaults to the current local time)

    Returns:
        Unsaved measurement
    """
    systolic = require_int(form, "systolic", non_negative=True)
    diastolic = require_int(form, "diastolic", non_negative=True)
    pulse = require_int(form, "pulse", non_negative=True)
    spo2 = get_int(form, "spo2", non_negative=True)

    if spo2 is not None and spo2 > SPO2_MAX_PERCENT:
        raise _reject(ValueTooHighError("spo2", spo2, SPO2_MAX_PERCENT))

    return BloodPressureMeasurement(
        timestamp=_now(now),
        systolic=systolic,
        diastolic=diastolic,
        pulse=pulse,
        spo2=spo2,
    )


def body_mass_from_form(
    form: Form, height_cm: int | None, now: datetime | None = None
) -> BodyMassMeasurement:
    """Build a body mass measurement, deriving BMI from the configured height."""
    mass_kg = require_rational(form, "mass_kg", non_negative=True)
    try:
        bmi = body_mass_index(mass_kg, height_cm)
    except NumericError as e:
        raise _reject(InvalidRationalError("mass_kg", form["mass_kg"], e.detail)) from e

    return BodyMassMeasurement(timestamp=_now(now), mass_kg=mass_kg, bmi=bmi)


def temperature_from_form(form: Form, now: datetime | None = None) -> BodyTemperatureMeasurement:
    """Build a body temperature measurement; rejects values below absolute zero."""
    location_id = require_int(form, "location")
    temperature_celsius = require_rational(form, "temperature_celsius")

    if temperature_celsius < ABSOLUTE_ZERO_CELSIUS:
        raise _reject(
            ValueTooLowError(
                "temperature_celsius",
                temperature_celsius.to_decimal_string(),
                ABSOLUTE_ZERO_CELSIUS.to_decimal_string(),
            )
        )

    return BodyTemperatureMeasurement(
        timestamp=_now(now),
        location_id=location_id,
        temperature_celsius=temperature_celsius,
    )


def blood_sugar_from_form(form: Form, now: datetime | None = None) -> BloodSugarMeasurement:
    """Build a blood sugar measurement canonicalized to mmol/L.

    The unit key is checked before the value so an unknown unit is reported
    even when the value is also missing.
    """
    unit_key = _raw(form, SUGAR_UNIT_KEY)
    if unit_key is None:
        raise _reject(MissingValueError(SUGAR_UNIT_KEY))
    try:
        unit = SugarUnit.from_key(unit_key)
    except ClientError as e:
        raise _reject(e) from None

    sugar_value = require_rational(form, "sugar_value", non_negative=True)
    try:
        sugar_mmol_per_l = sugar_value * unit.factor_to_mmol_per_l
    except NumericError as e:
        raise _reject(InvalidRationalError("sugar_value", form["sugar_value"], e.detail)) from e

    return BloodSugarMeasurement(timestamp=_now(now), sugar_mmol_per_l=sugar_mmol_per_l)
