"""
Domain errors raised by the services.
Each carries the HTTP status and error kind used by the handler in app.main.
"""


class ParkingError(Exception):
    """Base class for every error the parking services raise on purpose."""

    status_code = 400
    error = "parking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ParkingError):
    """Missing or non-positive settings, missing entry fields."""
    status_code = 422
    error = "validation_error"


class SettingsMissing(ParkingError):
    status_code = 409
    error = "settings_missing"

    def __init__(self, message: str = "Parking settings are not configured"):
        super().__init__(message)


class ParkingFull(ParkingError):
    """No free slot. The caller must not create a record."""
    status_code = 409
    error = "parking_full"

    def __init__(self, message: str = "Parking is full, no slots available"):
        super().__init__(message)


class SlotUnavailable(ParkingError):
    status_code = 409
    error = "slot_unavailable"


class VehicleAlreadyParked(ParkingError):
    status_code = 409
    error = "vehicle_already_parked"


class EntryNotFound(ParkingError):
    status_code = 404
    error = "not_found"


class AlreadyExited(ParkingError):
    """Checkout attempted on an entry that is already Exited."""
    status_code = 409
    error = "already_exited"


class ReservationNotFound(ParkingError):
    status_code = 404
    error = "not_found"


class ReservationClosed(ParkingError):
    """Transition attempted out of a terminal reservation state."""
    status_code = 409
    error = "reservation_closed"


class LedgerIntegrityError(ParkingError):
    """
    A ledger invariant is broken: duplicate slot claim, duplicate parked
    vehicle, negative stay. Signals a concurrency or allocator bug and is
    reported, never corrected.
    """
    status_code = 500
    error = "integrity_error"


class AlertNotFound(ParkingError):
    status_code = 404
    error = "not_found"
