"""Data models for vitaltrack."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, ClassVar, Union

from vitaltrack.numerism import Rational

FieldValue = Union[int, Rational, None]


def serialize_value(value: Any) -> Any:
    """Convert a field value to a JSON-compatible value without losing precision."""
    if isinstance(value, Rational):
        return value.to_json()
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class Measurement:
    """Common behaviour of all measurement variants.

    Subclasses are dataclasses with a ``timestamp`` and an ``id`` that stays None
    until the store assigns one.
    """

    kind: ClassVar[str] = ""
    # Numeric fields reduced by the statistics module, in display order
    statistic_fields: ClassVar[tuple[str, ...]] = ()

    id: int | None
    timestamp: datetime

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def field_value(self, name: str) -> FieldValue:
        return getattr(self, name)

    def with_id(self, measurement_id: int) -> Measurement:
        """Copy of this measurement carrying the identity assigned by the store."""
        return replace(self, id=measurement_id)  # type: ignore[type-var]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            field.name: serialize_value(getattr(self, field.name))
            for field in fields(self)  # type: ignore[arg-type]
        }


@dataclass
class BloodPressureMeasurement(Measurement):
    """Blood pressure measurement, optionally with oxygen saturation."""

    kind: ClassVar[str] = "bp"
    statistic_fields: ClassVar[tuple[str, ...]] = ("systolic", "diastolic", "pulse", "spo2")

    timestamp: datetime
    systolic: int  # mmHg - systolic pressure
    diastolic: int  # mmHg - diastolic pressure
    pulse: int  # bpm - heart rate
    spo2: int | None = None  # percent - oxygen saturation
    id: int | None = None

    def __str__(self) -> str:
        """Human-readable representation."""
        text = f"BP: {self.systolic}/{self.diastolic} mmHg, Pulse: {self.pulse} bpm"
        if self.spo2 is not None:
            text += f", SpO2: {self.spo2}%"
        return text


@dataclass
class BodyMassMeasurement(Measurement):
    """Body mass measurement with the body mass index derived from the configured height."""

    kind: ClassVar[str] = "mass"
    statistic_fields: ClassVar[tuple[str, ...]] = ("mass_kg", "bmi")

    timestamp: datetime
    mass_kg: Rational
    bmi: Rational | None = None
    id: int | None = None

    def __str__(self) -> str:
        text = f"Mass: {self.mass_kg.to_decimal_string(2)} kg"
        if self.bmi is not None:
            text += f", BMI: {self.bmi.to_decimal_string(1)}"
        return text


@dataclass
class BodyTemperatureLocation:
    """Named place on the body where temperature is taken."""

    name: str
    id: int | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class BodyTemperatureMeasurement(Measurement):
    """Body temperature measurement taken at a stored location."""

    kind: ClassVar[str] = "temperature"
    statistic_fields: ClassVar[tuple[str, ...]] = ("temperature_celsius",)

    timestamp: datetime
    location_id: int
    temperature_celsius: Rational
    id: int | None = None

    def __str__(self) -> str:
        return (
            f"Temperature: {self.temperature_celsius.to_decimal_string(2)} °C "
            f"(location {self.location_id})"
        )


@dataclass
class BloodSugarMeasurement(Measurement):
    """Blood sugar measurement, always canonicalized to mmol/L."""

    kind: ClassVar[str] = "sugar"
    statistic_fields: ClassVar[tuple[str, ...]] = ("sugar_mmol_per_l",)

    timestamp: datetime
    sugar_mmol_per_l: Rational
    id: int | None = None

    def __str__(self) -> str:
        return f"Sugar: {self.sugar_mmol_per_l.to_decimal_string(2)} mmol/L"
