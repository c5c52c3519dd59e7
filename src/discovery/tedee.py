"""tedee lock discovery helper."""

from typing import Any

import yaml

from config import BridgeConfig, SecretsConfig
from services.tedee import create_api_client


async def list_account_locks(config: BridgeConfig, secrets: SecretsConfig) -> list[dict[str, Any]]:
    """List all locks associated with the tedee account.

    Returns:
        List of lock info dicts
    """
    client = create_api_client(config, secrets)
    try:
        locks = await client.list_locks()
    finally:
        await client.aclose()

    return [
        {
            "id": lock.id,
            "name": lock.name,
            "serial_number": lock.serial_number,
            "firmware": lock.firmware_version,
            "pull_spring": bool(lock.settings and lock.settings.pull_spring_enabled),
            "state": lock.state,
        }
        for lock in locks
    ]


async def discover_locks(config: BridgeConfig, secrets: SecretsConfig) -> None:
    """Print the locks of the account and a config snippet for them."""
    if not secrets.email_address or not secrets.password:
        print("No tedee credentials found.")
        print()
        print("Add them to secrets.yaml:")
        print("  tedee:")
        print('    email_address: "email@example.com"')
        print('    password: "xxxxx"')
        return

    print("=" * 60)
    print("tedee Lock Discovery")
    print("=" * 60)
    print()

    try:
        locks = await list_account_locks(config, secrets)
    except Exception as e:
        print(f"✗ Failed to get locks: {e}")
        return

    if not locks:
        print("No locks found in your account.")
        return

    for lock in locks:
        pull_spring = "yes" if lock["pull_spring"] else "no"
        print(f"✓ {lock['name']} (ID {lock['id']}, serial {lock['serial_number']})")
        print(f"    firmware: {lock['firmware'] or 'unknown'}, pull spring: {pull_spring}")

    print()
    print("Add to config.yaml:")
    print()
    snippet = {
        "devices": [
            {"name": lock["name"], "unlatch_lock": lock["pull_spring"]}
            for lock in locks
        ]
    }
    print(yaml.safe_dump(snippet, sort_keys=False))
