"""Tests for the presentation and export hand-off."""

import json

from vitaltrack.export import export_buckets, export_measurements, export_summary
from vitaltrack.models import BodyTemperatureLocation
from vitaltrack.overview import blood_pressure_overview, measurement_overview, temperature_overview
from vitaltrack.statistics import CompositeRecord, summarize


class TestBloodPressureOverview:
    """Tests for blood_pressure_overview."""

    def test_contents(self, multiple_readings, hours):
        overview = blood_pressure_overview(list(reversed(multiple_readings)), hours)

        assert overview["measurements"] == multiple_readings
        assert len(overview["measurements_with_spo2"]) == 2
        assert len(overview["days_and_measurements"]) == 1
        assert isinstance(overview["max_measurement"], CompositeRecord)
        assert overview["quasi_q2_measurement"]["systolic"] == 125

    def test_empty_has_no_summary(self, hours):
        overview = blood_pressure_overview([], hours)
        assert overview["days_and_measurements"] == []
        assert "max_measurement" not in overview
        assert "avg_measurement" not in overview


class TestMeasurementOverview:
    """Tests for the mass/sugar/temperature pages."""

    def test_most_recent_first(self, mass_readings):
        overview = measurement_overview(mass_readings)
        assert overview["measurements"] == list(reversed(mass_readings))
        assert overview["min_measurement"]["mass_kg"] == mass_readings[2].mass_kg

    def test_temperature_locations(self):
        locations = [BodyTemperatureLocation(name="ear", id=2), BodyTemperatureLocation(name="mouth", id=1)]
        overview = temperature_overview([], locations, default_location_id=1)
        assert overview["temperature_location_id_to_name"] == {2: "ear", 1: "mouth"}
        assert overview["default_temperature_location_id"] == 1
        assert "min_measurement" not in overview


class TestExport:
    """Tests for JSON export."""

    def test_export_measurements_oldest_first(self, mass_readings):
        data = json.loads(export_measurements(reversed(mass_readings)))
        assert [item["mass_kg"] for item in data] == [[161, 2], [801, 10], [799, 10]]
        assert data[1]["bmi"] is None

    def test_export_has_no_floats(self, mass_readings):
        data = json.loads(export_summary(summarize(mass_readings)))

        def walk(value):
            assert not isinstance(value, float)
            if isinstance(value, dict):
                for item in value.values():
                    walk(item)
            elif isinstance(value, list):
                for item in value:
                    walk(item)

        walk(data)
        assert data["avg_measurement"]["mass_kg"] == [481, 6]

    def test_export_empty_summary(self):
        assert export_summary(None) == "null"

    def test_export_buckets(self, multiple_readings, hours):
        overview = blood_pressure_overview(multiple_readings, hours)
        data = json.loads(export_buckets(overview["days_and_measurements"]))
        assert data[0]["date"] == "2025-01-15"
        assert data[0]["evening"]["spo2"] == 99
