"""Ledger Rules — pure preconditions and transitions of the session state machine.

Invariants:
    - Rules never mutate: they raise a typed error or return the next status
    - active -> completed (exit or payment); active -> exited -> completed only
      under SettlementMode.SEPARATE; completed is terminal
    - At most one active session per location
    - Plates and locations are normalized before any comparison

Design Decisions:
    - Separated from the ledger service: the shell loads rows and applies the
      mutation, rules decide whether it is allowed
"""

import re
from datetime import datetime
from uuid import UUID

from parkledger.core.domain_types import SessionStatus, SettlementMode
from parkledger.core.errors import (
    ConflictError, ErrorContext, NotFoundError, ValidationError,
)
from parkledger.core.repository_protocols import SessionLike


MAX_PLATE_LENGTH: int = 20
MAX_LOCATION_LENGTH: int = 50

_WHITESPACE = re.compile(r"\s+")


def coerce_id(value, resource_type: str) -> UUID:
    """Parse an opaque id; malformed ids are reported as not found."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundError(resource_type, str(value))


def normalize_plate(license_plate: str | None) -> str:
    """Trim, collapse inner whitespace, upper-case. Raises on empty."""
    plate = _WHITESPACE.sub(" ", (license_plate or "").strip()).upper()
    if not plate:
        raise ValidationError("license_plate cannot be empty", field="license_plate")
    if len(plate) > MAX_PLATE_LENGTH:
        raise ValidationError(
            f"license_plate exceeds {MAX_PLATE_LENGTH} characters",
            field="license_plate",
        )
    return plate


def normalize_location(location: str | None) -> str:
    """Trim and upper-case a slot identifier such as "a-23" -> "A-23"."""
    slot = (location or "").strip().upper()
    if not slot:
        raise ValidationError("location cannot be empty", field="location")
    if len(slot) > MAX_LOCATION_LENGTH:
        raise ValidationError(
            f"location exceeds {MAX_LOCATION_LENGTH} characters", field="location",
        )
    return slot


def check_slot_free(occupant: SessionLike | None, location: str) -> None:
    """Entry precondition: no active session at the location."""
    if occupant is not None:
        raise ConflictError(
            f"slot occupied: {location}", "SLOT_OCCUPIED",
            ErrorContext(session_id=str(occupant.id), location=location),
        )


def check_can_exit(session: SessionLike) -> None:
    """Only an active session can be exited."""
    if session.status != SessionStatus.ACTIVE:
        raise ConflictError(
            f"Session is {session.status}, not active", "SESSION_NOT_ACTIVE",
            ErrorContext(session_id=str(session.id), location=session.location),
        )


def check_can_settle(session: SessionLike) -> None:
    """Settling a completed session is an error, not a silent success."""
    if session.status == SessionStatus.COMPLETED:
        raise ConflictError(
            "Session is already settled", "ALREADY_SETTLED",
            ErrorContext(session_id=str(session.id), location=session.location),
        )


def status_after_exit(mode: SettlementMode) -> SessionStatus:
    """Exit completes the session unless payment is a separate step."""
    if mode == SettlementMode.SEPARATE:
        return SessionStatus.EXITED
    return SessionStatus.COMPLETED


def check_vehicle_deletable(vehicle_id: str, active_sessions: int) -> None:
    """A vehicle that is currently parked cannot be deleted."""
    if active_sessions > 0:
        raise ConflictError(
            "Vehicle has an active parking session", "VEHICLE_PARKED",
            ErrorContext(vehicle_id=vehicle_id),
        )


def check_vehicle_live(vehicle_id: str, deleted_at: datetime | None) -> None:
    """A deleted vehicle cannot be deleted again."""
    if deleted_at is not None:
        raise ConflictError(
            "Vehicle is already deleted", "VEHICLE_ALREADY_DELETED",
            ErrorContext(vehicle_id=vehicle_id),
        )
