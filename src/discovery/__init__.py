"""Discovery and setup helpers for tedee-bridge."""

from discovery.config_utils import init_config, validate_config
from discovery.tedee import discover_locks, list_account_locks

__all__ = [
    "discover_locks",
    "init_config",
    "list_account_locks",
    "validate_config",
]
