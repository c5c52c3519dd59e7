"""Models for payloads of the tedee cloud API.

The API uses camelCase field names; the models expose snake_case attributes
and accept either form on input.
"""

from enum import IntEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TedeeModel(BaseModel):
    """Base model for tedee API payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LockStateCode(IntEnum):
    """Lock state codes reported by the tedee API."""

    UNCALIBRATED = 0
    CALIBRATING = 1
    UNLOCKED = 2
    SEMI_LOCKED = 3
    UNLOCKING = 4
    LOCKING = 5
    LOCKED = 6
    PULLED = 7
    PULLING = 8


class SoftwareVersion(TedeeModel):
    """Software version of a lock component."""

    software_type: int = 0
    version: str = ""


class DeviceSettings(TedeeModel):
    """Lock settings relevant to the bridge."""

    pull_spring_enabled: bool = False
    auto_pull_spring_enabled: bool = False


class LockProperties(TedeeModel):
    """Mutable lock properties (state and battery)."""

    state: int | None = None
    battery_level: int | None = None
    is_charging: bool = False


class LockSync(TedeeModel):
    """Sync information for a single lock."""

    id: int
    properties: LockProperties | None = Field(
        default=None,
        validation_alias=AliasChoices("lockProperties", "properties"),
    )

    @property
    def state(self) -> int | None:
        """The lock state code, if the payload carries one."""
        if self.properties is None:
            return None
        return self.properties.state


class LockRecord(LockSync):
    """A lock from the account inventory."""

    name: str = ""
    serial_number: str = ""
    device_revision: int | None = None
    software_versions: list[SoftwareVersion] = Field(default_factory=list)
    settings: DeviceSettings | None = Field(
        default=None,
        validation_alias=AliasChoices("deviceSettings", "settings"),
    )

    @property
    def firmware_version(self) -> str | None:
        """Version of the main firmware (software type 0)."""
        for software in self.software_versions:
            if software.software_type == 0:
                return software.version
        return None

    def with_sync(self, sync: LockSync) -> "LockRecord":
        """Return a copy of this record with the properties of a sync payload."""
        return self.model_copy(update={"properties": sync.properties})


class OperationHandle(TedeeModel):
    """A vendor-side asynchronous operation created by a command."""

    operation_id: str | int | None = None
    status: str | None = None

    @property
    def is_completed(self) -> bool:
        return str(self.status or "").upper() == "COMPLETED"


def unwrap_result(payload: Any) -> Any:
    """Return the ``result`` member of an API response envelope."""
    if isinstance(payload, dict) and "result" in payload:
        return payload["result"]
    raise ValueError(f"Unexpected API response: {payload!r}")
