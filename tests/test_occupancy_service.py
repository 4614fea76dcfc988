"""Unit tests for the occupancy ledger and atomic slot claims."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import patch
from datetime import datetime
from decimal import Decimal
from app.config import settings
from app.exceptions import LedgerIntegrityError, SettingsMissing, SlotUnavailable
from app.models.alert import Alert
from app.models.parking_entry import ParkingEntry, EntryStatus, ReservationFlag, VehicleType
from app.models.reservation import Reservation, ReservationStatus
from app.services import occupancy_service
from app.services.occupancy_service import (
    active_claims, available_count, claim_slot, get_availability, occupied_slots, reserved_slots,
)
from app.services.settings_service import ParkingConfiguration

T0 = datetime(2026, 3, 2, 9, 0)


def make_entry(slot, status=EntryStatus.PARKED, number=None):
    return ParkingEntry(vehicle_number=number or f"CAR-{slot}", owner_name="Owner",
                        vehicle_type=VehicleType.CAR, entry_time=T0, slot_number=slot,
                        status=status, reservation_flag=ReservationFlag.NO)


def make_reservation(slot, status=ReservationStatus.RESERVED):
    return Reservation(slot_number=slot, reservation_datetime=T0, status=status, created_at=T0)


class TestLedger:
    def test_empty_ledger(self, two_slot_lot):
        assert active_claims(two_slot_lot) == set()
        a = get_availability(two_slot_lot)
        assert (a.total, a.occupied, a.reserved, a.available) == (2, 0, 0, 2)

    def test_only_parked_and_reserved_count(self, db):
        db.add_all([
            make_entry(1), make_entry(2, status=EntryStatus.EXITED), make_entry(3),
            make_reservation(4), make_reservation(5, status=ReservationStatus.CANCELLED),
        ])
        db.commit()
        assert occupied_slots(db) == {1, 3}
        assert reserved_slots(db) == {4}
        assert active_claims(db) == {1, 3, 4}

    def test_availability_counts(self, db):
        from app.services.settings_service import update_settings
        update_settings(db, 10, "5")
        db.add_all([make_entry(1), make_entry(2), make_reservation(3)])
        db.commit()
        a = get_availability(db)
        assert (a.total, a.occupied, a.reserved, a.available) == (10, 2, 1, 7)
        assert a.occupancy_percent == 20.0

    def test_available_count_saturates_at_zero(self, db):
        db.add_all([make_entry(1), make_entry(2), make_entry(3)])
        db.commit()
        assert available_count(db, ParkingConfiguration(total_slots=2, rate_per_hour=10)) == 0

    def test_availability_requires_settings(self, db):
        with pytest.raises(SettingsMissing):
            get_availability(db)

    def test_database_rejects_second_parked_claim_on_slot(self, db):
        from sqlalchemy.exc import IntegrityError
        db.add(make_entry(1))
        db.commit()
        db.add(make_entry(1, number="OTHER"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_exited_entries_do_not_block_slot(self, db):
        db.add_all([make_entry(1, status=EntryStatus.EXITED), make_entry(1, status=EntryStatus.EXITED, number="B")])
        db.add(make_entry(1, number="C"))
        db.commit()
        assert occupied_slots(db) == {1}


class TestClaimSlot:
    def test_stale_claims_retry_to_next_slot(self, two_slot_lot):
        two_slot_lot.add(make_entry(1))
        two_slot_lot.commit()

        # First read misses slot 1; the unique index catches it and the retry re-reads
        real = occupancy_service.active_claims
        calls = []

        def stale_then_real(db):
            calls.append(db)
            return set() if len(calls) == 1 else real(db)

        with patch("app.services.occupancy_service.active_claims", side_effect=stale_then_real):
            entry = claim_slot(two_slot_lot, lambda slot, config: make_entry(slot, number="NEW"))
        assert entry.slot_number == 2

    def test_persistent_conflict_is_integrity_error(self, two_slot_lot):
        two_slot_lot.add(make_entry(1))
        two_slot_lot.commit()

        with patch("app.services.occupancy_service.active_claims", return_value=set()), \
                patch.object(settings, "ALLOCATION_MAX_RETRIES", 2):
            with pytest.raises(LedgerIntegrityError):
                claim_slot(two_slot_lot, lambda slot, config: make_entry(slot, number="NEW"))

        assert two_slot_lot.query(Alert).filter(Alert.alert_type == "integrity_error").count() == 1
        assert two_slot_lot.query(ParkingEntry).count() == 1

    def test_requested_slot_conflict_is_unavailable(self, two_slot_lot):
        two_slot_lot.add(make_reservation(2))
        two_slot_lot.commit()

        with patch("app.services.occupancy_service.active_claims", return_value=set()):
            with pytest.raises(SlotUnavailable):
                claim_slot(two_slot_lot, lambda slot, config: make_reservation(slot), requested_slot=2)

    def test_builder_sees_locked_configuration(self, two_slot_lot):
        seen = []

        def build(slot, config):
            seen.append(config)
            return make_entry(slot)

        claim_slot(two_slot_lot, build)
        assert seen == [ParkingConfiguration(total_slots=2, rate_per_hour=Decimal("10"))]
