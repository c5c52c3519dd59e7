"""Lock controllers for tedee-bridge."""

from devices.manager import LockManager
from devices.mapper import StateMapping, map_battery, map_lock_state, supports_pull_spring
from devices.tedee import TedeeLockController

__all__ = [
    "LockManager",
    "StateMapping",
    "TedeeLockController",
    "map_battery",
    "map_lock_state",
    "supports_pull_spring",
]
