"""Mapping of tedee lock state onto the exposed lock model."""

from dataclasses import dataclass

from models.lock import Battery, LockCurrentState, LockTargetState
from models.tedee import LockRecord, LockStateCode, LockSync
from utils.errors import StaleDataError

_U = LockCurrentState.UNSECURED
_S = LockCurrentState.SECURED
_J = LockCurrentState.JAMMED
_TU = LockTargetState.UNSECURED
_TS = LockTargetState.SECURED


@dataclass(frozen=True)
class StateMapping:
    """New values for the lock and latch endpoints. ``None`` leaves a value unchanged."""

    lock_current: LockCurrentState | None = None
    lock_target: LockTargetState | None = None
    latch_current: LockCurrentState | None = None
    latch_target: LockTargetState | None = None


UNCHANGED = StateMapping()

# state code -> (lock current, lock target, latch current, latch target)
STATE_TABLE: dict[int, StateMapping] = {
    LockStateCode.UNCALIBRATED: StateMapping(_J, None, _J, None),
    LockStateCode.CALIBRATING: StateMapping(_J, None, _J, None),
    LockStateCode.UNLOCKED: StateMapping(_U, _TU, _S, _TS),
    LockStateCode.SEMI_LOCKED: StateMapping(_U, _TU, _S, _TS),
    LockStateCode.UNLOCKING: StateMapping(None, _TU, None, _TS),
    LockStateCode.LOCKING: StateMapping(None, _TS, None, _TS),
    LockStateCode.LOCKED: StateMapping(_S, _TS, _S, _TS),
    LockStateCode.PULLED: StateMapping(_U, _TU, _U, _TU),
    LockStateCode.PULLING: StateMapping(None, _TU, None, _TU),
}


def map_lock_state(code: int | None) -> StateMapping:
    """Translate a tedee state code into lock and latch values.

    Unknown codes map to no change at all.
    """
    if code is None:
        return UNCHANGED
    return STATE_TABLE.get(code, UNCHANGED)


def map_battery(sync: LockSync) -> Battery | None:
    """Build the battery state from a sync payload, if it reports a level."""
    if sync.properties is None or sync.properties.battery_level is None:
        return None
    return Battery(
        level=sync.properties.battery_level,
        charging=bool(sync.properties.is_charging),
    )


def require_properties(sync: LockSync) -> None:
    """Raise StaleDataError if a sync payload carries no lock properties."""
    if sync.properties is None:
        raise StaleDataError(sync.id, "lockProperties")


def supports_pull_spring(record: LockRecord | None) -> bool:
    """Whether the lock can pull its spring. Missing settings count as unsupported."""
    if record is None or record.settings is None:
        return False
    return bool(record.settings.pull_spring_enabled)


def is_half_open(record: LockRecord | None) -> bool:
    """Whether the door is half-open (semi-locked); such a door cannot be unlatched."""
    return record is not None and record.state == LockStateCode.SEMI_LOCKED
