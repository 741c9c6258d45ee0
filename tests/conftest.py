"""Shared pytest fixtures for vitaltrack tests."""

from datetime import datetime, timedelta, timezone

import pytest

from vitaltrack.config import DayHours
from vitaltrack.models import (
    BloodPressureMeasurement,
    BloodSugarMeasurement,
    BodyMassMeasurement,
)
from vitaltrack.numerism import Rational

CET = timezone(timedelta(hours=1))


@pytest.fixture
def hours() -> DayHours:
    """Day boundaries with the morning starting at 06:00."""
    return DayHours(morning_start=6, morning_end=11, midday_start=11, midday_end=16, evening_start=18)


@pytest.fixture
def sample_reading() -> BloodPressureMeasurement:
    """Create a sample blood pressure reading for testing."""
    return BloodPressureMeasurement(
        timestamp=datetime(2025, 1, 15, 10, 30, 0, tzinfo=CET),
        systolic=120,
        diastolic=80,
        pulse=72,
    )


@pytest.fixture
def multiple_readings() -> list[BloodPressureMeasurement]:
    """Create multiple readings for testing (SpO2 missing on one)."""
    return [
        BloodPressureMeasurement(
            timestamp=datetime(2025, 1, 15, 8, 0, 0, tzinfo=CET),
            systolic=118,
            diastolic=84,
            pulse=70,
            spo2=97,
        ),
        BloodPressureMeasurement(
            timestamp=datetime(2025, 1, 15, 12, 0, 0, tzinfo=CET),
            systolic=131,
            diastolic=78,
            pulse=74,
        ),
        BloodPressureMeasurement(
            timestamp=datetime(2025, 1, 15, 20, 0, 0, tzinfo=CET),
            systolic=125,
            diastolic=80,
            pulse=68,
            spo2=99,
        ),
    ]


@pytest.fixture
def mass_readings() -> list[BodyMassMeasurement]:
    """Body mass readings, BMI present on two of three."""
    return [
        BodyMassMeasurement(
            timestamp=datetime(2025, 1, 10, 7, 0, tzinfo=CET),
            mass_kg=Rational.parse("80.5"),
            bmi=Rational.parse("24.8"),
        ),
        BodyMassMeasurement(
            timestamp=datetime(2025, 1, 11, 7, 0, tzinfo=CET),
            mass_kg=Rational.parse("80.1"),
        ),
        BodyMassMeasurement(
            timestamp=datetime(2025, 1, 12, 7, 0, tzinfo=CET),
            mass_kg=Rational.parse("79.9"),
            bmi=Rational.parse("24.6"),
        ),
    ]


@pytest.fixture
def sugar_reading() -> BloodSugarMeasurement:
    return BloodSugarMeasurement(
        timestamp=datetime(2025, 1, 15, 9, 0, tzinfo=CET),
        sugar_mmol_per_l=Rational(50, 9),
    )


@pytest.fixture
def db_path(tmp_path) -> str:
    """Create a temporary database path for testing."""
    return str(tmp_path / "test_vitaltrack.db")
