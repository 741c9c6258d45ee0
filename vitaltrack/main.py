#!/usr/bin/env python3
"""Main entry point for vitaltrack.

Records physiological measurements (blood pressure, body mass, body
temperature, blood sugar) into a local SQLite database and shows exact summary
statistics and per-day groupings.

Usage:
    # Record a blood pressure reading
    python -m vitaltrack.main add-bp --systolic 121 --diastolic 79 --pulse 64

    # Record blood sugar in mg/dL (stored as mmol/L)
    python -m vitaltrack.main add-sugar --value 90 --unit mg-per-dl

    # Show summaries and daily buckets
    python -m vitaltrack.main show bp

    # Export recent measurements as JSON
    python -m vitaltrack.main export mass
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

from vitaltrack.config import SettingsHolder, TrackerSettings
from vitaltrack.errors import ClientError, VitalTrackError
from vitaltrack.export import export_measurements
from vitaltrack.forms import (
    blood_pressure_from_form,
    blood_sugar_from_form,
    body_mass_from_form,
    temperature_from_form,
)
from vitaltrack.models import BodyTemperatureLocation, Measurement
from vitaltrack.numerism import Rational
from vitaltrack.overview import blood_pressure_overview, measurement_overview, temperature_overview
from vitaltrack.statistics import CompositeRecord
from vitaltrack.store import MeasurementStore

logger = logging.getLogger(__name__)

KINDS = ("bp", "mass", "temperature", "sugar")

SUMMARY_ROWS = (
    ("Maximum", "max_measurement"),
    ("Quasi-Q3", "quasi_q3_measurement"),
    ("Average", "avg_measurement"),
    ("Quasi-Q2", "quasi_q2_measurement"),
    ("Quasi-Q1", "quasi_q1_measurement"),
    ("Minimum", "min_measurement"),
)


class VitalTracker:
    """Ties together settings, input validation, storage and the analytics."""

    def __init__(self, settings: SettingsHolder):
        """Initialize the tracker.

        Args:
            settings: Holder of the current configuration snapshot
        """
        self.settings = settings
        db_path = settings.config.get("database", {}).get("path", "./data/vitaltrack.db")
        self.store = MeasurementStore(db_path)

    @staticmethod
    def _since(settings: TrackerSettings, now: datetime | None = None) -> datetime:
        now = now if now is not None else datetime.now().astimezone()
        return now - timedelta(days=settings.recent_days)

    # ============== RECORDING ==============

    def record_blood_pressure(self, form: dict, now: datetime | None = None) -> Measurement:
        measurement = blood_pressure_from_form(form, now)
        return measurement.with_id(self.store.add_blood_pressure(measurement))

    def record_mass(self, form: dict, now: datetime | None = None) -> Measurement:
        measurement = body_mass_from_form(form, self.settings.snapshot().height_cm, now)
        return measurement.with_id(self.store.add_mass(measurement))

    def record_temperature(self, form: dict, now: datetime | None = None) -> Measurement:
        measurement = temperature_from_form(form, now)
        return measurement.with_id(self.store.add_temperature(measurement))

    def record_sugar(self, form: dict, now: datetime | None = None) -> Measurement:
        measurement = blood_sugar_from_form(form, now)
        return measurement.with_id(self.store.add_sugar(measurement))

    def add_location(self, name: str) -> BodyTemperatureLocation:
        location = BodyTemperatureLocation(name=name)
        location.id = self.store.add_temperature_location(location)
        return location

    def remove(self, kind: str, measurement_id: int) -> bool:
        removers = {
            "bp": self.store.remove_blood_pressure,
            "mass": self.store.remove_mass,
            "temperature": self.store.remove_temperature,
            "sugar": self.store.remove_sugar,
        }
        return removers[kind](measurement_id)

    # ============== READING ==============

    def recent(
        self,
        kind: str,
        now: datetime | None = None,
        settings: TrackerSettings | None = None,
    ) -> list[Measurement]:
        """Recent measurements of one kind, oldest first.

        Args:
            kind: One of KINDS
            now: End of the recent window (defaults to the current local time)
            settings: Snapshot to use; a fresh one is taken if omitted
        """
        settings = settings if settings is not None else self.settings.snapshot()
        since = self._since(settings, now)
        if kind == "bp":
            return list(self.store.get_recent_blood_pressure(since))
        if kind == "mass":
            return list(self.store.get_recent_mass(since, height_cm=settings.height_cm))
        if kind == "temperature":
            return list(self.store.get_recent_temperature(since))
        if kind == "sugar":
            return list(self.store.get_recent_sugar(since))
        raise ValueError(f"unknown measurement kind: {kind}")

    def overview(self, kind: str, now: datetime | None = None) -> dict:
        """Presentation values for one kind of measurement."""
        settings = self.settings.snapshot()
        measurements = self.recent(kind, now, settings)
        if kind == "bp":
            return blood_pressure_overview(measurements, settings.hours)  # type: ignore[arg-type]
        if kind == "temperature":
            return temperature_overview(
                measurements,  # type: ignore[arg-type]
                self.store.get_temperature_locations(),
                settings.default_temperature_location_id,
            )
        return measurement_overview(measurements)

    def export(self, kind: str, now: datetime | None = None) -> str:
        return export_measurements(self.recent(kind, now), indent=2)


def setup_logging(config: dict) -> None:
    """Setup logging based on configuration.

    Args:
        config: Configuration dictionary
    """
    log_config = config.get("logging", {})
    level = getattr(logging, log_config.get("level", "INFO").upper())
    format_str = log_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_file = log_config.get("file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=format_str, handlers=handlers)


# ============== OUTPUT ==============


def format_value(value: Rational | int | None, places: int = 2) -> str:
    if value is None:
        return "-"
    if isinstance(value, Rational):
        return value.to_decimal_string(places)
    return str(value)


def format_composite(record: CompositeRecord) -> str:
    return ", ".join(f"{name}={format_value(value)}" for name, value in record.values.items())


def print_overview(kind: str, overview: dict) -> None:
    print(f"\n{'=' * 60}")
    print(f"{kind} overview: {len(overview['measurements'])} measurements")
    print(f"{'=' * 60}")

    if "max_measurement" not in overview:
        print("No measurements.")
    else:
        for label, key in SUMMARY_ROWS:
            print(f"{label + ':':<10} {format_composite(overview[key])}")

    for bucket in overview.get("days_and_measurements", []):
        print(f"\n{bucket.date}")
        for slot in ("morning", "midday", "evening"):
            measurement = getattr(bucket, slot)
            print(f"  {slot:<8} {measurement if measurement else '-'}")
        for measurement in bucket.other:
            print(f"  {'other':<8} {measurement}")
    print(f"{'=' * 60}\n")


# ============== COMMANDS ==============


def cmd_add(args: argparse.Namespace, tracker: VitalTracker) -> int:
    """Handle the add-* commands.

    Args:
        args: Parsed command line arguments
        tracker: Tracker instance

    Returns:
        Exit code
    """
    if args.command == "add-bp":
        form = {"systolic": args.systolic, "diastolic": args.diastolic, "pulse": args.pulse}
        if args.spo2 is not None:
            form["spo2"] = args.spo2
        measurement = tracker.record_blood_pressure(form)
    elif args.command == "add-mass":
        measurement = tracker.record_mass({"mass_kg": args.mass_kg})
    elif args.command == "add-temperature":
        measurement = tracker.record_temperature(
            {"location": args.location, "temperature_celsius": args.celsius}
        )
    else:
        measurement = tracker.record_sugar({"sugar_value": args.value, "sugar_unit_key": args.unit})

    print(f"Recorded #{measurement.id}: {measurement}")
    return 0


def cmd_add_location(args: argparse.Namespace, tracker: VitalTracker) -> int:
    location = tracker.add_location(args.name)
    print(f"Added location #{location.id}: {location.name}")
    return 0


def cmd_remove(args: argparse.Namespace, tracker: VitalTracker) -> int:
    if tracker.remove(args.kind, args.id):
        print(f"Removed {args.kind} measurement #{args.id}")
        return 0
    print(f"No {args.kind} measurement #{args.id}")
    return 1


def cmd_show(args: argparse.Namespace, tracker: VitalTracker) -> int:
    print_overview(args.kind, tracker.overview(args.kind))
    return 0


def cmd_export(args: argparse.Namespace, tracker: VitalTracker) -> int:
    print(tracker.export(args.kind))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Personal tracker for blood pressure, body mass, temperature and blood sugar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config/config.yaml",
        help="Path to config file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Values stay strings so that validation and exact parsing happen in one place
    bp_parser = subparsers.add_parser("add-bp", help="Record a blood pressure reading")
    bp_parser.add_argument("--systolic", required=True, help="Systolic pressure (mmHg)")
    bp_parser.add_argument("--diastolic", required=True, help="Diastolic pressure (mmHg)")
    bp_parser.add_argument("--pulse", required=True, help="Pulse (bpm)")
    bp_parser.add_argument("--spo2", help="Oxygen saturation (percent)")

    mass_parser = subparsers.add_parser("add-mass", help="Record body mass")
    mass_parser.add_argument("--mass-kg", required=True, help="Body mass (kg)")

    temperature_parser = subparsers.add_parser("add-temperature", help="Record body temperature")
    temperature_parser.add_argument("--location", required=True, help="Location id")
    temperature_parser.add_argument("--celsius", required=True, help="Temperature (°C)")

    sugar_parser = subparsers.add_parser("add-sugar", help="Record blood sugar")
    sugar_parser.add_argument("--value", required=True, help="Blood sugar value")
    sugar_parser.add_argument(
        "--unit", default="mmol-per-l", help="Unit key: mmol-per-l or mg-per-dl"
    )

    location_parser = subparsers.add_parser("add-location", help="Add a temperature location")
    location_parser.add_argument("name", help="Location name")

    remove_parser = subparsers.add_parser("remove", help="Remove a measurement")
    remove_parser.add_argument("kind", choices=KINDS)
    remove_parser.add_argument("id", type=int)

    show_parser = subparsers.add_parser("show", help="Show summaries of recent measurements")
    show_parser.add_argument("kind", choices=KINDS)

    export_parser = subparsers.add_parser("export", help="Export recent measurements as JSON")
    export_parser.add_argument("kind", choices=KINDS)

    return parser


COMMANDS = {
    "add-bp": cmd_add,
    "add-mass": cmd_add,
    "add-temperature": cmd_add,
    "add-sugar": cmd_add,
    "add-location": cmd_add_location,
    "remove": cmd_remove,
    "show": cmd_show,
    "export": cmd_export,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = SettingsHolder(args.config)
    except VitalTrackError as e:
        print(f"Configuration error: {e.detail}", file=sys.stderr)
        return 1

    if args.debug:
        settings.config["logging"]["level"] = "DEBUG"
    setup_logging(settings.config)

    try:
        tracker = VitalTracker(settings)
        return COMMANDS[args.command](args, tracker)
    except ClientError as e:
        print(f"Invalid input: {e.detail}", file=sys.stderr)
        return 2
    except VitalTrackError as e:
        logger.error(f"Fatal error: {e.detail}")
        if args.debug:
            raise
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
