"""Unit tests for reports, dashboard, search and CSV export."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import csv
import io
import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from app.exceptions import ValidationError
from app.services.entry_service import checkout, create_entry
from app.services.report_service import (
    CSV_HEADERS, build_dashboard, build_summary, export_csv, period_bounds, search_entries,
)
from app.services.reservation_service import check_in_reservation, create_reservation
from app.services.settings_service import update_settings

NOW = datetime(2026, 3, 4, 18, 0)      # a Wednesday


@pytest.fixture
def busy_lot(db):
    update_settings(db, 10, "10")
    day = datetime(2026, 3, 4)
    create_entry(db, "CAR-1", "Car", "Ahmed Ali", now=day + timedelta(hours=8))
    create_entry(db, "BIKE-1", "Bike", "Sara", now=day + timedelta(hours=8, minutes=30))
    create_entry(db, "CAR-2", "Car", "Omar", now=day + timedelta(hours=14))
    checkout(db, "CAR-1", now=day + timedelta(hours=9, minutes=1))       # 2 h → 20
    checkout(db, "BIKE-1", now=day + timedelta(hours=9))                 # 1 h → 10
    r = create_reservation(db, day + timedelta(hours=15), now=day + timedelta(hours=10))
    check_in_reservation(db, r.id, "RES-1", "Car", "Lina", now=day + timedelta(hours=15))
    create_entry(db, "OLD-1", "Car", "Ahmed", now=day - timedelta(days=3))   # Sunday, same week
    return db


class TestPeriodBounds:
    def test_daily(self):
        assert period_bounds("daily", NOW) == (datetime(2026, 3, 4), datetime(2026, 3, 5))

    def test_weekly_starts_sunday(self):
        assert period_bounds("weekly", NOW) == (datetime(2026, 3, 1), datetime(2026, 3, 8))

    def test_weekly_on_sunday(self):
        assert period_bounds("weekly", datetime(2026, 3, 1, 12))[0] == datetime(2026, 3, 1)

    def test_monthly(self):
        assert period_bounds("monthly", datetime(2026, 12, 31, 23)) == (datetime(2026, 12, 1), datetime(2027, 1, 1))

    def test_unknown_period(self):
        with pytest.raises(ValidationError):
            period_bounds("yearly", NOW)


class TestSummary:
    def test_daily_summary(self, busy_lot):
        s = build_summary(busy_lot, "daily", NOW)
        assert s["total_vehicles"] == 4
        assert s["exited_vehicles"] == 2
        assert s["total_revenue"] == Decimal("30.00")
        assert s["reserved_count"] == 1
        assert s["walkin_count"] == 3
        assert s["vehicle_types"] == {"Bike": 1, "Car": 3}
        assert s["hourly"] == [{"hour": "8:00", "vehicles": 2}, {"hour": "14:00", "vehicles": 1},
                               {"hour": "15:00", "vehicles": 1}]

    def test_weekly_includes_sunday(self, busy_lot):
        assert build_summary(busy_lot, "weekly", NOW)["total_vehicles"] == 5


class TestExport:
    def test_only_exited_rows_all_quoted(self, busy_lot):
        text = export_csv(busy_lot, "daily", NOW)
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == CSV_HEADERS
        assert sorted(r[0] for r in rows[1:]) == ["BIKE-1", "CAR-1"]
        car = next(r for r in rows[1:] if r[0] == "CAR-1")
        assert car == ["CAR-1", "Ahmed Ali", "Car", "2026-03-04 08:00", "2026-03-04 09:01", "2", "20.00"]
        assert text.splitlines()[0].startswith('"Vehicle Number"')

    def test_empty_period_has_header_only(self, busy_lot):
        text = export_csv(busy_lot, "daily", NOW + timedelta(days=10))
        assert text.strip().count("\n") == 0


class TestDashboard:
    def test_dashboard(self, busy_lot):
        d = build_dashboard(busy_lot, NOW)
        assert d["today_entries"] == 4
        assert d["today_revenue"] == Decimal("30.00")
        assert d["availability"].occupied == 3
        assert [e.vehicle_number for e in d["recent_parked"]] == ["RES-1", "CAR-2", "OLD-1"]


class TestSearch:
    def test_partial_case_insensitive_vehicle(self, busy_lot):
        assert {e.vehicle_number for e in search_entries(busy_lot, vehicle_number="car")} == {"CAR-1", "CAR-2"}

    def test_owner_substring(self, busy_lot):
        assert {e.vehicle_number for e in search_entries(busy_lot, owner_name="ahmed")} == {"CAR-1", "OLD-1"}

    def test_slot_exact(self, busy_lot):
        results = search_entries(busy_lot, slot_number=1)
        assert all(e.slot_number == 1 for e in results)
        assert results

    def test_date_to_is_inclusive(self, busy_lot):
        found = search_entries(busy_lot, date_from=date(2026, 3, 1), date_to=date(2026, 3, 1))
        assert [e.vehicle_number for e in found] == ["OLD-1"]

    def test_no_filters_returns_newest_first(self, busy_lot):
        results = search_entries(busy_lot)
        assert [e.entry_time for e in results] == sorted((e.entry_time for e in results), reverse=True)

    def test_percent_and_underscore_match_literally(self, db):
        update_settings(db, 5, "10")
        create_entry(db, "AB_1", "Car", "100% Motors", now=NOW)
        create_entry(db, "ABX1", "Car", "1000 Motors", now=NOW)
        assert [e.vehicle_number for e in search_entries(db, vehicle_number="b_1")] == ["AB_1"]
        assert [e.vehicle_number for e in search_entries(db, owner_name="100%")] == ["AB_1"]
