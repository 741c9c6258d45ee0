"""Group measurements into per-day buckets with named slots.

A day has a morning, a midday and an evening slot. Readings taken after
midnight but before the morning starts belong to the previous day's evening
("last night"). A reading whose slot is already taken, or that falls in none of
the configured windows, goes to the bucket's overflow list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from vitaltrack.config import DayHours
from vitaltrack.models import Measurement

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


@dataclass
class DailyBucket:
    """Measurements attributed to one calendar day."""

    date: str
    morning: Measurement | None = None
    midday: Measurement | None = None
    evening: Measurement | None = None
    other: list[Measurement] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date,
            "morning": self.morning.to_dict() if self.morning else None,
            "midday": self.midday.to_dict() if self.midday else None,
            "evening": self.evening.to_dict() if self.evening else None,
            "other": [m.to_dict() for m in self.other],
        }


def attributed_date(measurement: Measurement, morning_start: int) -> date:
    """Calendar day a measurement counts towards.

    Before ``morning_start`` the reading belongs to the previous day. With
    ``morning_start == 0`` this never happens.
    """
    day = measurement.timestamp.date()
    if measurement.timestamp.hour < morning_start:
        day -= timedelta(days=1)
    return day


def bucket_by_day(measurements: Iterable[Measurement], hours: DayHours) -> list[DailyBucket]:
    """Assign measurements to daily buckets.

    Args:
        measurements: Measurements of one kind; processed in timestamp order
        hours: Day-boundary snapshot, read once for the whole pass

    Returns:
        Buckets ordered by date, most recent first
    """
    morning_start = hours.morning_start
    morning_end = hours.morning_end
    midday_start = hours.midday_start
    midday_end = hours.midday_end
    evening_start = hours.evening_start

    buckets: dict[str, DailyBucket] = {}
    count = 0
    for measurement in sorted(measurements, key=lambda m: m.timestamp):
        count += 1
        date_string = attributed_date(measurement, morning_start).strftime(DATE_FORMAT)
        bucket = buckets.get(date_string)
        if bucket is None:
            bucket = buckets[date_string] = DailyBucket(date=date_string)

        hour = measurement.timestamp.hour
        if hour < morning_start and bucket.evening is None:
            # night, counted as the previous day's evening
            bucket.evening = measurement
        elif morning_start <= hour < morning_end and bucket.morning is None:
            bucket.morning = measurement
        elif midday_start <= hour < midday_end and bucket.midday is None:
            bucket.midday = measurement
        elif hour >= evening_start and bucket.evening is None:
            bucket.evening = measurement
        else:
            bucket.other.append(measurement)

    logger.debug(f"Bucketed {count} measurements into {len(buckets)} days")
    return [buckets[key] for key in sorted(buckets, reverse=True)]
