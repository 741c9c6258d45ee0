"""Field-wise aggregate statistics over measurement sequences.

Summaries are composites: every numeric field is reduced on its own, so the
"maximum" record pairs the highest systolic ever seen with the highest diastolic
ever seen even if they come from different readings. Records missing a field
(no SpO2, no BMI) are left out of that field's reduction only.

All functions require a non-empty sequence of a single measurement kind;
``summarize`` is the guarded entry point that returns None for no data.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from functools import reduce

from vitaltrack.models import FieldValue, Measurement, serialize_value
from vitaltrack.numerism import ZERO


@dataclass(frozen=True)
class CompositeRecord:
    """Synthetic record built from independently reduced fields.

    Unlike a Measurement it has no identity or timestamp and must never be
    presented as a real observation.
    """

    kind: str
    values: Mapping[str, FieldValue]

    @classmethod
    def from_measurement(cls, measurement: Measurement) -> CompositeRecord:
        return cls(
            kind=measurement.kind,
            values={name: measurement.field_value(name) for name in measurement.statistic_fields},
        )

    def get(self, name: str) -> FieldValue:
        return self.values.get(name)

    def __getitem__(self, name: str) -> FieldValue:
        return self.values[name]

    def combine(
        self,
        measurement: Measurement,
        pick: Callable[[FieldValue, FieldValue], FieldValue],
    ) -> CompositeRecord:
        """Fold one more measurement into this composite, field by field.

        Args:
            measurement: Next measurement of the same kind
            pick: Chooses between the running value and the measurement's value

        Returns:
            New composite; this one is left unchanged
        """
        values: dict[str, FieldValue] = {}
        for name, current in self.values.items():
            candidate = measurement.field_value(name)
            if current is None:
                values[name] = candidate
            elif candidate is None:
                values[name] = current
            else:
                values[name] = pick(current, candidate)
        return CompositeRecord(kind=self.kind, values=values)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "composite": True,
            **{name: serialize_value(value) for name, value in self.values.items()},
        }


def _require_measurements(measurements: Iterable[Measurement], operation: str) -> list[Measurement]:
    items = list(measurements)
    if not items:
        raise ValueError(f"{operation} requires at least one measurement")
    kinds = {item.kind for item in items}
    if len(kinds) > 1:
        raise ValueError(f"{operation} requires a single measurement kind, got {sorted(kinds)}")
    return items


def _present_values(measurements: list[Measurement], name: str) -> list:
    return [value for value in (m.field_value(name) for m in measurements) if value is not None]


def minimum(measurements: Iterable[Measurement]) -> CompositeRecord:
    """Field-wise minimum."""
    items = _require_measurements(measurements, "minimum")
    return reduce(
        lambda composite, measurement: composite.combine(measurement, min),
        items[1:],
        CompositeRecord.from_measurement(items[0]),
    )


def maximum(measurements: Iterable[Measurement]) -> CompositeRecord:
    """Field-wise maximum."""
    items = _require_measurements(measurements, "maximum")
    return reduce(
        lambda composite, measurement: composite.combine(measurement, max),
        items[1:],
        CompositeRecord.from_measurement(items[0]),
    )


def average(measurements: Iterable[Measurement]) -> CompositeRecord:
    """Field-wise exact average.

    Each field is divided by the number of records where it is present, so the
    result is an exact fraction (e.g. 361/3), never a rounded decimal.
    """
    items = _require_measurements(measurements, "average")
    values: dict[str, FieldValue] = {}
    for name in items[0].statistic_fields:
        present = _present_values(items, name)
        if present:
            values[name] = sum(present, ZERO) / len(present)
        else:
            values[name] = None
    return CompositeRecord(kind=items[0].kind, values=values)


def quasi_n_tile(
    measurements: Iterable[Measurement], numerator: int, denominator: int
) -> CompositeRecord:
    """Field-wise nearest-rank selection without interpolation.

    For each field, the present values are sorted ascending and the element at
    index ``(count - 1) * numerator // denominator`` is taken.

    Args:
        measurements: Non-empty sequence of one measurement kind
        numerator: Numerator of the fraction (e.g. 1 for the first quartile)
        denominator: Denominator of the fraction (e.g. 4 for quartiles)

    Returns:
        Composite record of the selected values
    """
    if denominator <= 0 or not 0 <= numerator <= denominator:
        raise ValueError(f"invalid n-tile fraction {numerator}/{denominator}")

    items = _require_measurements(measurements, "quasi_n_tile")
    values: dict[str, FieldValue] = {}
    for name in items[0].statistic_fields:
        present = sorted(_present_values(items, name))
        if present:
            values[name] = present[(len(present) - 1) * numerator // denominator]
        else:
            values[name] = None
    return CompositeRecord(kind=items[0].kind, values=values)


@dataclass(frozen=True)
class StatisticsSummary:
    """The six composite records shown above a measurement list."""

    maximum: CompositeRecord
    quasi_q3: CompositeRecord
    average: CompositeRecord
    quasi_q2: CompositeRecord
    quasi_q1: CompositeRecord
    minimum: CompositeRecord

    def to_dict(self) -> dict:
        return {
            "max_measurement": self.maximum.to_dict(),
            "quasi_q3_measurement": self.quasi_q3.to_dict(),
            "avg_measurement": self.average.to_dict(),
            "quasi_q2_measurement": self.quasi_q2.to_dict(),
            "quasi_q1_measurement": self.quasi_q1.to_dict(),
            "min_measurement": self.minimum.to_dict(),
        }


def summarize(measurements: Iterable[Measurement]) -> StatisticsSummary | None:
    """Compute all summary records, or None if there are no measurements."""
    items = list(measurements)
    if not items:
        return None
    return StatisticsSummary(
        maximum=maximum(items),
        quasi_q3=quasi_n_tile(items, 3, 4),
        average=average(items),
        quasi_q2=quasi_n_tile(items, 1, 2),
        quasi_q1=quasi_n_tile(items, 1, 4),
        minimum=minimum(items),
    )
