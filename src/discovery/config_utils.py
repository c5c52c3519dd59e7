"""Configuration utilities for tedee-bridge."""

from pathlib import Path

EXAMPLE_CONFIG = """\
# tedee-bridge configuration

# Seconds between syncs with the tedee cloud (minimum 10)
update_interval: 15

# Locks are matched by the name they have in the tedee app
# Run 'tedee discover locks' to list the locks of your account
devices: []
  # - name: Front Door
  #   unlatch_lock: true
  #   unlatch_from_locked_to_unlocked: false
  #   unlatch_from_unlocked_to_unlocked: false
  #   unlatch_lock_prevent_unlatch_if_locked: true
  #   disable_unlock: false
"""

EXAMPLE_SECRETS = """\
# tedee-bridge secrets
# Keep this file out of version control

# tedee account credentials
tedee: {}
  # email_address: "email@example.com"
  # password: "xxxxx"
"""

EXAMPLE_FILES = {
    "config.yaml": EXAMPLE_CONFIG,
    "secrets.yaml": EXAMPLE_SECRETS,
}


def _check_devices(cfg_path: Path, errors: list[str], warnings: list[str]) -> None:
    """Check config.yaml and the device entries in it."""
    from config import load_config

    config = load_config(cfg_path)
    print("✓ config.yaml parsed")
    print(f"  Sync interval: {config.update_interval}s")
    print(f"  Locks configured: {len(config.devices)}")

    if not config.devices:
        warnings.append("No locks configured - run 'tedee discover locks' to list them")

    seen: set[str] = set()
    for position, device in enumerate(config.devices, start=1):
        if not device.name:
            errors.append(f"Lock #{position} has no name")
            continue
        if device.name in seen:
            errors.append(f"Lock name '{device.name}' is used more than once")
        seen.add(device.name)

        if device.unlatch_from_locked_to_unlocked and not device.unlatch_lock:
            warnings.append(
                f"Lock '{device.name}' unlatches from locked, "
                "but has no latch (unlatch_lock: false)"
            )


def _check_credentials(cfg_path: Path, errors: list[str]) -> None:
    """Check that secrets.yaml holds a tedee account."""
    from config import load_secrets

    secrets = load_secrets(cfg_path)
    print("✓ secrets.yaml parsed")

    if secrets.email_address and secrets.password:
        print(f"  tedee account: {secrets.email_address}")
    else:
        errors.append("tedee email_address and password are required in secrets.yaml")


def validate_config(config_dir: str | None = None) -> bool:
    """Validate the config and secrets files.

    Args:
        config_dir: Path to config directory

    Returns:
        True if no errors were found
    """
    from config import find_config_dir

    cfg_path = Path(config_dir) if config_dir else find_config_dir()
    print(f"Checking configuration in: {cfg_path}")
    print()

    errors: list[str] = []
    warnings: list[str] = []

    checks = [
        ("config.yaml", lambda: _check_devices(cfg_path, errors, warnings)),
        ("secrets.yaml", lambda: _check_credentials(cfg_path, errors)),
    ]
    for filename, check in checks:
        path = cfg_path / filename
        if not path.exists():
            errors.append(f"{filename} not found at {path}")
            continue
        try:
            check()
        except Exception as e:
            errors.append(f"{filename} is invalid: {e}")
        print()

    for title, marker, issues in (("Errors", "✗", errors), ("Warnings", "⚠", warnings)):
        if issues:
            print(f"{title}:")
            for issue in issues:
                print(f"  {marker} {issue}")
            print()

    if errors:
        print("✗ Configuration has errors")
        return False

    print("✓ Configuration is valid")
    return True


def init_config(config_dir: str = "./config") -> None:
    """Write example config and secrets files, keeping files that already exist.

    Args:
        config_dir: Path to config directory
    """
    cfg_path = Path(config_dir)
    print(f"Writing example configuration to: {cfg_path}")
    print()

    cfg_path.mkdir(parents=True, exist_ok=True)

    for filename, content in EXAMPLE_FILES.items():
        path = cfg_path / filename
        if path.exists():
            print(f"⚠ {filename} exists, leaving it unchanged")
            continue
        path.write_text(content)
        print(f"✓ Created {filename}")

    print()
    print("Next steps:")
    print("  1. Add your tedee account to secrets.yaml")
    print("  2. Run 'tedee discover locks' to list your locks")
    print("  3. Add the locks to config.yaml")
    print("  4. Run 'tedee config validate' to check your config")
