"""Lock models exposed to the smart-home host.

A physical tedee lock is exposed as a lock mechanism, an optional latch
mechanism and a battery. The host reads ``current`` and writes ``target``.
"""

from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any

LOW_BATTERY_THRESHOLD = 10


class LockCurrentState(IntEnum):
    """Current state of a lock mechanism."""

    UNSECURED = 0
    SECURED = 1
    JAMMED = 2
    UNKNOWN = 3


class LockTargetState(IntEnum):
    """Requested state of a lock mechanism."""

    UNSECURED = 0
    SECURED = 1


@dataclass
class LockMechanism:
    """A lock mechanism endpoint (the lock itself or its latch)."""

    name: str
    current: LockCurrentState = LockCurrentState.UNKNOWN
    target: LockTargetState = LockTargetState.SECURED

    @property
    def is_secured(self) -> bool:
        return self.current == LockCurrentState.SECURED

    def secure(self) -> None:
        """Show the mechanism as secured."""
        self.current = LockCurrentState.SECURED
        self.target = LockTargetState.SECURED

    def to_state_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "current": self.current.name.lower(),
            "target": self.target.name.lower(),
        }


@dataclass
class Battery:
    """Battery of a lock."""

    level: int | None = None
    charging: bool = False

    @property
    def low(self) -> bool:
        return self.level is not None and self.level < LOW_BATTERY_THRESHOLD

    def to_state_dict(self) -> dict[str, Any]:
        return {"level": self.level, "charging": self.charging, "low": self.low}


@dataclass
class AccessoryInformation:
    """Static information about the physical lock."""

    serial_number: str = ""
    firmware_revision: str | None = None
    hardware_revision: str | None = None
    manufacturer: str = "tedee"
    model: str = "Smart Lock"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class LockAccessory:
    """Everything the host exposes for one physical lock."""

    name: str
    information: AccessoryInformation = field(default_factory=AccessoryInformation)
    lock: LockMechanism = field(default_factory=lambda: LockMechanism("Lock"))
    latch: LockMechanism | None = None
    battery: Battery = field(default_factory=Battery)

    def to_state_dict(self) -> dict[str, Any]:
        """Return current state as dict."""
        return {
            "name": self.name,
            "lock": self.lock.to_state_dict(),
            "latch": self.latch.to_state_dict() if self.latch else None,
            "battery": self.battery.to_state_dict(),
        }
