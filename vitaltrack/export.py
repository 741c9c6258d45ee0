"""JSON export of measurements and summaries.

Exact values are written as ``[numerator, denominator]`` pairs. Floats never
appear in the output.
"""

import json
from collections.abc import Iterable

from vitaltrack.bucketing import DailyBucket
from vitaltrack.models import Measurement
from vitaltrack.statistics import StatisticsSummary


def measurements_to_list(measurements: Iterable[Measurement]) -> list[dict]:
    """Serialize measurements oldest first."""
    return [m.to_dict() for m in sorted(measurements, key=lambda m: m.timestamp)]


def export_measurements(measurements: Iterable[Measurement], indent: int | None = None) -> str:
    """Serialize measurements to JSON text, oldest first."""
    return json.dumps(measurements_to_list(measurements), indent=indent, ensure_ascii=False)


def export_summary(summary: StatisticsSummary | None, indent: int | None = None) -> str:
    """Serialize the summary records; ``null`` if there were no measurements."""
    return json.dumps(summary.to_dict() if summary else None, indent=indent)


def export_buckets(buckets: Iterable[DailyBucket], indent: int | None = None) -> str:
    """Serialize daily buckets in the order given."""
    return json.dumps([bucket.to_dict() for bucket in buckets], indent=indent, ensure_ascii=False)
