"""Plain structured values handed to the presentation layer.

Each builder returns a dictionary of measurements, composite summaries and
(for blood pressure) daily buckets. Summary keys are only present when there is
at least one measurement, so templates can test for them directly.
"""

from __future__ import annotations

from collections.abc import Sequence

from vitaltrack.bucketing import bucket_by_day
from vitaltrack.config import DayHours
from vitaltrack.models import (
    BloodPressureMeasurement,
    BodyTemperatureLocation,
    BodyTemperatureMeasurement,
    Measurement,
)
from vitaltrack.statistics import summarize


def _add_summary(overview: dict, measurements: Sequence[Measurement]) -> dict:
    summary = summarize(measurements)
    if summary is not None:
        overview.update(
            {
                "max_measurement": summary.maximum,
                "quasi_q3_measurement": summary.quasi_q3,
                "avg_measurement": summary.average,
                "quasi_q2_measurement": summary.quasi_q2,
                "quasi_q1_measurement": summary.quasi_q1,
                "min_measurement": summary.minimum,
            }
        )
    return overview


def blood_pressure_overview(
    measurements: Sequence[BloodPressureMeasurement], hours: DayHours
) -> dict:
    """Values for the blood pressure page.

    Args:
        measurements: Recent blood pressure measurements
        hours: Day-boundary snapshot for bucketing

    Returns:
        Dictionary with measurements (oldest first), measurements_with_spo2,
        days_and_measurements (most recent day first) and the summary records
    """
    ordered = sorted(measurements, key=lambda m: m.timestamp)
    overview = {
        "measurements": ordered,
        "measurements_with_spo2": [m for m in ordered if m.spo2 is not None],
        "days_and_measurements": bucket_by_day(ordered, hours),
    }
    return _add_summary(overview, ordered)


def measurement_overview(measurements: Sequence[Measurement]) -> dict:
    """Values for the body mass and blood sugar pages (most recent first)."""
    ordered = sorted(measurements, key=lambda m: m.timestamp, reverse=True)
    return _add_summary({"measurements": ordered}, ordered)


def temperature_overview(
    measurements: Sequence[BodyTemperatureMeasurement],
    locations: Sequence[BodyTemperatureLocation],
    default_location_id: int | None = None,
) -> dict:
    """Values for the body temperature page, including the location names."""
    overview = measurement_overview(measurements)
    overview.update(
        {
            "temperature_locations": list(locations),
            "temperature_location_id_to_name": {loc.id: loc.name for loc in locations},
            "default_temperature_location_id": default_location_id,
        }
    )
    return overview
