"""
Slot allocation: lowest free slot number wins.

Pure functions over a claim set. Callers hold claim_guard (occupancy_service)
while they read claims, allocate, and persist the new record.
"""

from typing import AbstractSet

from app.exceptions import ParkingFull, SlotUnavailable, ValidationError


def allocate(claims: AbstractSet[int], total_slots: int) -> int:
    """Return the lowest slot in 1..total_slots not present in claims."""
    if total_slots <= 0:
        raise ValidationError("Total slots must be greater than 0")
    if len(claims) >= total_slots:
        raise ParkingFull()

    for slot in range(1, total_slots + 1):
        if slot not in claims:
            return slot
    raise ParkingFull()


def allocate_specific(claims: AbstractSet[int], total_slots: int, slot_number: int) -> int:
    """Validate a caller-chosen slot against the lot size and current claims."""
    if slot_number < 1 or slot_number > total_slots:
        raise SlotUnavailable(f"Slot {slot_number} is outside 1..{total_slots}")
    if slot_number in claims:
        raise SlotUnavailable(f"Slot {slot_number} is already taken")
    return slot_number
