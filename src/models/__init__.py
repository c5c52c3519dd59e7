"""Data models for tedee-bridge."""

from models.lock import (
    AccessoryInformation,
    Battery,
    LockAccessory,
    LockCurrentState,
    LockMechanism,
    LockTargetState,
)
from models.tedee import (
    DeviceSettings,
    LockProperties,
    LockRecord,
    LockStateCode,
    LockSync,
    OperationHandle,
    SoftwareVersion,
)

__all__ = [
    "AccessoryInformation",
    "Battery",
    "DeviceSettings",
    "LockAccessory",
    "LockCurrentState",
    "LockMechanism",
    "LockProperties",
    "LockRecord",
    "LockStateCode",
    "LockSync",
    "LockTargetState",
    "OperationHandle",
    "SoftwareVersion",
]
