"""Unit tests for the alert service."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from datetime import datetime, timedelta
from app.exceptions import AlertNotFound, LedgerIntegrityError
from app.models.alert import Alert
from app.services.alert_service import (
    create_alert, has_recent_alert, list_alerts, report_integrity_error, resolve_alert,
)
from app.utils.clock import utcnow


class TestAlertService:
    def test_create_alert_commits(self):
        db = MagicMock()
        alert = create_alert(db, "occupancy_full", "Lot at 100% capacity")

        db.add.assert_called_once_with(alert)
        db.commit.assert_called_once()
        assert alert.is_resolved == 0
        assert alert.alert_type == "occupancy_full"

    def test_report_integrity_error_rolls_back_first(self):
        db = MagicMock()
        exc = report_integrity_error(db, "Slot 3 claimed twice", slot_number=3)

        assert isinstance(exc, LedgerIntegrityError)
        assert exc.message == "Slot 3 claimed twice"
        names = [c[0] for c in db.method_calls]
        assert names.index("rollback") < names.index("add") < names.index("commit")
        saved = db.add.call_args[0][0]
        assert saved.alert_type == "integrity_error"
        assert saved.slot_number == 3

    def test_recent_alert_found(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = MagicMock()
        assert has_recent_alert(db, "occupancy_full") is True

    def test_no_recent_alert(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        assert has_recent_alert(db, "occupancy_full") is False


class TestCooldown:
    def test_resolved_or_old_alerts_do_not_suppress(self, db):
        now = utcnow()
        db.add_all([
            Alert(alert_type="occupancy_full", description="old", is_resolved=0,
                  triggered_at=now - timedelta(hours=1)),
            Alert(alert_type="occupancy_full", description="resolved", is_resolved=1, triggered_at=now),
        ])
        db.commit()
        assert has_recent_alert(db, "occupancy_full", now=now) is False

        db.add(Alert(alert_type="occupancy_full", description="fresh", is_resolved=0, triggered_at=now))
        db.commit()
        assert has_recent_alert(db, "occupancy_full", now=now) is True


class TestResolve:
    def test_resolve_once(self, db):
        alert = create_alert(db, "occupancy_full", "full")
        first = resolve_alert(db, alert.id, now=datetime(2026, 3, 2, 10, 0))
        again = resolve_alert(db, alert.id, now=datetime(2026, 3, 2, 11, 0))
        assert again.is_resolved == 1
        assert again.resolved_at == first.resolved_at == datetime(2026, 3, 2, 10, 0)
        assert list_alerts(db, is_resolved=0) == []

    def test_unknown_alert(self, db):
        with pytest.raises(AlertNotFound):
            resolve_alert(db, 404)
