"""SQLite storage for measurements and temperature locations.

Exact values are stored as text in their exact form ("617/50", "5") and read
back through the rational parser, so the database never rounds them. Each row
keeps the local timestamp with its UTC offset plus a fixed-width UTC copy used
for ordering and "since" filtering.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from vitaltrack.errors import (
    CorruptedDataError,
    NumericError,
    ReferenceInUseError,
    UnknownReferenceError,
)
from vitaltrack.models import (
    BloodPressureMeasurement,
    BloodSugarMeasurement,
    BodyMassMeasurement,
    BodyTemperatureLocation,
    BodyTemperatureMeasurement,
)
from vitaltrack.numerism import Rational
from vitaltrack.units import squared_height_m2

logger = logging.getLogger(__name__)

BLOOD_PRESSURE_TABLE = "blood_pressure_measurements"
MASS_TABLE = "mass_measurements"
TEMPERATURE_TABLE = "temperature_measurements"
TEMPERATURE_LOCATION_TABLE = "temperature_locations"
SUGAR_TABLE = "sugar_measurements"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {BLOOD_PRESSURE_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    timestamp_utc TEXT NOT NULL,
    systolic INTEGER NOT NULL,
    diastolic INTEGER NOT NULL,
    pulse INTEGER NOT NULL,
    spo2 INTEGER
);
CREATE TABLE IF NOT EXISTS {MASS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    timestamp_utc TEXT NOT NULL,
    mass_kg TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS {TEMPERATURE_LOCATION_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS {TEMPERATURE_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    timestamp_utc TEXT NOT NULL,
    location_id INTEGER NOT NULL REFERENCES {TEMPERATURE_LOCATION_TABLE}(id),
    temperature_celsius TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS {SUGAR_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    timestamp_utc TEXT NOT NULL,
    sugar_mmol_per_l TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_bp_timestamp ON {BLOOD_PRESSURE_TABLE}(timestamp_utc);
CREATE INDEX IF NOT EXISTS idx_mass_timestamp ON {MASS_TABLE}(timestamp_utc);
CREATE INDEX IF NOT EXISTS idx_temperature_timestamp ON {TEMPERATURE_TABLE}(timestamp_utc);
CREATE INDEX IF NOT EXISTS idx_sugar_timestamp ON {SUGAR_TABLE}(timestamp_utc);
"""


def _utc_key(timestamp: datetime) -> str:
    """Fixed-width UTC string that sorts chronologically (naive means local time)."""
    return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")


def _parse_exact(text: str, table: str, column: str, row_id: int) -> Rational:
    try:
        return Rational.from_string(text)
    except NumericError as e:
        logger.error(f"Unparseable {column} {text!r} in {table} row {row_id}: {e}")
        raise CorruptedDataError(
            f"stored {column} of {table} row {row_id} is not an exact value",
            table=table,
            row_id=row_id,
            value=text,
        ) from e


class MeasurementStore:
    """Persist measurements in a local SQLite database."""

    def __init__(self, db_path: str = "data/vitaltrack.db"):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript(_SCHEMA)
            conn.commit()
            logger.debug(f"Database initialized at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    # ============== GENERIC HELPERS ==============

    def _insert(self, table: str, values: dict) -> int:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",  # nosec B608
                tuple(values.values()),
            )
            conn.commit()
            row_id = cursor.lastrowid
        logger.debug(f"Inserted row {row_id} into {table}")
        return row_id

    def _update(self, table: str, row_id: int | None, values: dict) -> bool:
        if row_id is None:
            raise ValueError(f"cannot update {table} row without an id")
        assignments = ", ".join(f"{column} = ?" for column in values)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",  # nosec B608
                (*values.values(), row_id),
            )
            conn.commit()
            updated = cursor.rowcount > 0
        if not updated:
            logger.warning(f"No row {row_id} in {table} to update")
        return updated

    def _remove(self, table: str, row_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))  # nosec B608
            conn.commit()
            removed = cursor.rowcount > 0
        if removed:
            logger.info(f"Removed row {row_id} from {table}")
        return removed

    def _select_since(self, table: str, since: datetime | None) -> list[sqlite3.Row]:
        query = f"SELECT * FROM {table}"  # nosec B608
        params: list = []
        if since is not None:
            query += " WHERE timestamp_utc >= ?"
            params.append(_utc_key(since))
        query += " ORDER BY timestamp_utc ASC, id ASC"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        logger.debug(f"Read {len(rows)} rows from {table}")
        return rows

    @staticmethod
    def _timestamps(timestamp: datetime) -> dict:
        if timestamp.utcoffset() is None:
            # naive means local time; store it with the local offset
            timestamp = timestamp.astimezone()
        return {"timestamp": timestamp.isoformat(), "timestamp_utc": _utc_key(timestamp)}

    # ============== BLOOD PRESSURE ==============

    @staticmethod
    def _blood_pressure_values(measurement: BloodPressureMeasurement) -> dict:
        return {
            **MeasurementStore._timestamps(measurement.timestamp),
            "systolic": measurement.systolic,
            "diastolic": measurement.diastolic,
            "pulse": measurement.pulse,
            "spo2": measurement.spo2,
        }

    def add_blood_pressure(self, measurement: BloodPressureMeasurement) -> int:
        """Insert a blood pressure measurement.

        Returns:
            Assigned measurement id
        """
        return self._insert(BLOOD_PRESSURE_TABLE, self._blood_pressure_values(measurement))

    def update_blood_pressure(self, measurement: BloodPressureMeasurement) -> bool:
        return self._update(
            BLOOD_PRESSURE_TABLE, measurement.id, self._blood_pressure_values(measurement)
        )

    def remove_blood_pressure(self, measurement_id: int) -> bool:
        return self._remove(BLOOD_PRESSURE_TABLE, measurement_id)

    def get_recent_blood_pressure(
        self, since: datetime | None = None
    ) -> list[BloodPressureMeasurement]:
        """Get blood pressure measurements taken at or after ``since``, oldest first."""
        return [
            BloodPressureMeasurement(
                id=row["id"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                systolic=row["systolic"],
                diastolic=row["diastolic"],
                pulse=row["pulse"],
                spo2=row["spo2"],
            )
            for row in self._select_since(BLOOD_PRESSURE_TABLE, since)
        ]

    # ============== BODY MASS ==============

    @staticmethod
    def _mass_values(measurement: BodyMassMeasurement) -> dict:
        return {
            **MeasurementStore._timestamps(measurement.timestamp),
            "mass_kg": str(measurement.mass_kg),
        }

    def add_mass(self, measurement: BodyMassMeasurement) -> int:
        """Insert a body mass measurement. BMI is not stored; it is derived on read."""
        return self._insert(MASS_TABLE, self._mass_values(measurement))

    def update_mass(self, measurement: BodyMassMeasurement) -> bool:
        return self._update(MASS_TABLE, measurement.id, self._mass_values(measurement))

    def remove_mass(self, measurement_id: int) -> bool:
        return self._remove(MASS_TABLE, measurement_id)

    def get_recent_mass(
        self, since: datetime | None = None, height_cm: int | None = None
    ) -> list[BodyMassMeasurement]:
        """Get body mass measurements, oldest first.

        Args:
            since: Only measurements taken at or after this instant
            height_cm: Configured height; BMI is None without it
        """
        square_height_m2 = squared_height_m2(height_cm)
        measurements = []
        for row in self._select_since(MASS_TABLE, since):
            mass_kg = _parse_exact(row["mass_kg"], MASS_TABLE, "mass_kg", row["id"])
            measurements.append(
                BodyMassMeasurement(
                    id=row["id"],
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                    mass_kg=mass_kg,
                    bmi=mass_kg / square_height_m2 if square_height_m2 is not None else None,
                )
            )
        return measurements

    # ============== TEMPERATURE LOCATIONS ==============

    def add_temperature_location(self, location: BodyTemperatureLocation) -> int:
        return self._insert(TEMPERATURE_LOCATION_TABLE, {"name": location.name})

    def update_temperature_location(self, location: BodyTemperatureLocation) -> bool:
        return self._update(TEMPERATURE_LOCATION_TABLE, location.id, {"name": location.name})

    def remove_temperature_location(self, location_id: int) -> bool:
        """Remove a location.

        Raises:
            ReferenceInUseError: If temperature measurements still use the location
        """
        try:
            return self._remove(TEMPERATURE_LOCATION_TABLE, location_id)
        except sqlite3.IntegrityError as e:
            logger.warning(f"Location {location_id} is still in use: {e}")
            raise ReferenceInUseError("location", location_id) from e

    def get_temperature_locations(self) -> list[BodyTemperatureLocation]:
        """Get all temperature locations ordered by name."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT id, name FROM {TEMPERATURE_LOCATION_TABLE} ORDER BY name"  # nosec B608
            ).fetchall()
        return [BodyTemperatureLocation(id=row["id"], name=row["name"]) for row in rows]

    # ============== BODY TEMPERATURE ==============

    @staticmethod
    def _temperature_values(measurement: BodyTemperatureMeasurement) -> dict:
        return {
            **MeasurementStore._timestamps(measurement.timestamp),
            "location_id": measurement.location_id,
            "temperature_celsius": str(measurement.temperature_celsius),
        }

    def add_temperature(self, measurement: BodyTemperatureMeasurement) -> int:
        """Insert a body temperature measurement.

        Raises:
            UnknownReferenceError: If the location does not exist
        """
        try:
            return self._insert(TEMPERATURE_TABLE, self._temperature_values(measurement))
        except sqlite3.IntegrityError as e:
            raise self._unknown_location(measurement, e) from e

    def update_temperature(self, measurement: BodyTemperatureMeasurement) -> bool:
        try:
            return self._update(
                TEMPERATURE_TABLE, measurement.id, self._temperature_values(measurement)
            )
        except sqlite3.IntegrityError as e:
            raise self._unknown_location(measurement, e) from e

    @staticmethod
    def _unknown_location(
        measurement: BodyTemperatureMeasurement, error: sqlite3.IntegrityError
    ) -> UnknownReferenceError:
        logger.warning(f"Rejected temperature for location {measurement.location_id}: {error}")
        return UnknownReferenceError("location", measurement.location_id)

    def remove_temperature(self, measurement_id: int) -> bool:
        return self._remove(TEMPERATURE_TABLE, measurement_id)

    def get_recent_temperature(
        self, since: datetime | None = None
    ) -> list[BodyTemperatureMeasurement]:
        return [
            BodyTemperatureMeasurement(
                id=row["id"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                location_id=row["location_id"],
                temperature_celsius=_parse_exact(
                    row["temperature_celsius"], TEMPERATURE_TABLE, "temperature_celsius", row["id"]
                ),
            )
            for row in self._select_since(TEMPERATURE_TABLE, since)
        ]

    # ============== BLOOD SUGAR ==============

    @staticmethod
    def _sugar_values(measurement: BloodSugarMeasurement) -> dict:
        return {
            **MeasurementStore._timestamps(measurement.timestamp),
            "sugar_mmol_per_l": str(measurement.sugar_mmol_per_l),
        }

    def add_sugar(self, measurement: BloodSugarMeasurement) -> int:
        return self._insert(SUGAR_TABLE, self._sugar_values(measurement))

    def update_sugar(self, measurement: BloodSugarMeasurement) -> bool:
        return self._update(SUGAR_TABLE, measurement.id, self._sugar_values(measurement))

    def remove_sugar(self, measurement_id: int) -> bool:
        return self._remove(SUGAR_TABLE, measurement_id)

    def get_recent_sugar(self, since: datetime | None = None) -> list[BloodSugarMeasurement]:
        return [
            BloodSugarMeasurement(
                id=row["id"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                sugar_mmol_per_l=_parse_exact(
                    row["sugar_mmol_per_l"], SUGAR_TABLE, "sugar_mmol_per_l", row["id"]
                ),
            )
            for row in self._select_since(SUGAR_TABLE, since)
        ]
