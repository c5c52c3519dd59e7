"""Configuration loading for tedee-bridge."""

from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, Field, field_validator

TEDEE_CLIENT_ID = "02106b82-0524-4fd3-ac57-af774f340979"
DEFAULT_TOKEN_URI = (
    "https://tedee.b2clogin.com/tedee.onmicrosoft.com/oauth2/v2.0/token"
    "?p=B2C_1_SignIn_Ropc"
)
DEFAULT_API_URI = "https://api.tedee.com/api/v1.18"

# The vendor asks clients not to poll more often than every 10 seconds
MIN_UPDATE_INTERVAL = 10
DEFAULT_UPDATE_INTERVAL = 15


class ApiConfig(BaseModel):
    """Endpoints and retry policy for the tedee cloud API."""

    token_uri: str = DEFAULT_TOKEN_URI
    api_uri: str = DEFAULT_API_URI
    client_id: str = TEDEE_CLIENT_ID
    maximum_token_retry: int = Field(default=3, ge=1)
    token_retry_interval: float = Field(default=2.0, ge=0)
    maximum_api_retry: int = Field(default=3, ge=1)
    api_retry_interval: float = Field(default=5.0, ge=0)
    operation_poll_interval: float = Field(default=1.0, ge=0)
    timeout: float = Field(default=10.0, gt=0)


class TimingConfig(BaseModel):
    """Delays used by lock controllers after a command."""

    settle_delay: float = Field(default=5.0, ge=0)
    refresh_delays: list[float] = Field(default_factory=lambda: [5.0, 10.0, 15.0])
    revert_delay: float = Field(default=0.5, ge=0)


class DeviceConfig(BaseModel):
    """Lock configuration from config file.

    ``name`` must match the lock name in the tedee account.
    """

    name: str = ""
    unlatch_lock: bool = False
    default_lock_name: str = "Lock"
    default_latch_name: str = "Latch"
    disable_unlock: bool = False
    unlatch_from_locked_to_unlocked: bool = False
    unlatch_from_unlocked_to_unlocked: bool = False
    unlatch_lock_prevent_unlatch_if_locked: bool = True


class BridgeConfig(BaseModel):
    """Contents of config.yaml."""

    update_interval: int = DEFAULT_UPDATE_INTERVAL
    api: ApiConfig = Field(default_factory=ApiConfig)
    timings: TimingConfig = Field(default_factory=TimingConfig)
    devices: list[DeviceConfig] = Field(default_factory=list)

    @field_validator("update_interval", mode="before")
    @classmethod
    def _clamp_update_interval(cls, value: Any) -> int:
        if value is None or value == 0:
            return DEFAULT_UPDATE_INTERVAL
        return max(MIN_UPDATE_INTERVAL, int(value))


class SecretsConfig(BaseModel):
    """Contents of secrets.yaml (tedee account credentials)."""

    tedee: dict[str, str] = Field(default_factory=dict)

    @property
    def email_address(self) -> str:
        return self.tedee.get("email_address", "")

    @property
    def password(self) -> str:
        return self.tedee.get("password", "")


def find_config_dir() -> Path:
    """Return the first existing config directory.

    Candidates, in order: ``./config``, ``../config`` and
    ``~/.config/tedee-bridge``. Falls back to ``./config``.
    """
    cwd = Path.cwd()
    candidates = [
        cwd / "config",
        cwd.parent / "config",
        Path.home() / ".config" / "tedee-bridge",
    ]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return candidates[0]


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping; a missing or empty file gives ``{}``."""
    if not path.is_file():
        return {}
    return yaml.safe_load(path.read_text()) or {}


ModelT = TypeVar("ModelT", bound=BaseModel)


def _load(model: type[ModelT], filename: str, config_dir: Path | None) -> ModelT:
    base = config_dir if config_dir is not None else find_config_dir()
    return model.model_validate(load_yaml(base / filename))


def load_config(config_dir: Path | None = None) -> BridgeConfig:
    """Load ``config.yaml`` from the config directory."""
    return _load(BridgeConfig, "config.yaml", config_dir)


def load_secrets(config_dir: Path | None = None) -> SecretsConfig:
    """Load ``secrets.yaml`` from the config directory."""
    return _load(SecretsConfig, "secrets.yaml", config_dir)
