"""Command line interface for tedee-bridge."""

import argparse
import asyncio
import sys
from pathlib import Path


def _add_config_dir(parser: argparse.ArgumentParser, default: str | None = None) -> None:
    help_text = "Path to config directory"
    if default:
        help_text += f" (default: {default})"
    parser.add_argument("--config-dir", type=str, default=default, help=help_text)


def build_parser() -> argparse.ArgumentParser:
    """Build the ``tedee`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="tedee",
        description="tedee-bridge - tedee smart locks for your smart home",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", help="Available commands")

    _add_config_dir(commands.add_parser("serve", help="Run the bridge until interrupted"))

    discover = commands.add_parser("discover", help="Look up devices in your account")
    discover_types = discover.add_subparsers(dest="discover_type", help="What to discover")
    _add_config_dir(discover_types.add_parser("locks", help="List the locks of your tedee account"))

    lock = commands.add_parser("lock", help="Send a command to a configured lock")
    lock.add_argument("name", type=str, help="Lock name as configured")
    lock.add_argument("action", choices=["open", "close", "unlatch"], help="Command to send")
    _add_config_dir(lock)

    config = commands.add_parser("config", help="Configuration utilities")
    config_actions = config.add_subparsers(dest="config_action", help="Config action")
    _add_config_dir(config_actions.add_parser("validate", help="Check config and secrets files"))
    _add_config_dir(
        config_actions.add_parser("init", help="Write example config files"),
        default="./config",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point of the ``tedee`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Commands with subcommands print their own help when none is given
    missing_subcommand = {
        "discover": getattr(args, "discover_type", None),
        "config": getattr(args, "config_action", None),
    }
    if args.command is None or (
        args.command in missing_subcommand and missing_subcommand[args.command] is None
    ):
        parser.print_help()
        sys.exit(1)

    from main import setup_logging

    setup_logging(verbose=args.verbose)

    ok = True
    if args.command == "serve":
        from main import main as run_bridge

        asyncio.run(run_bridge(_config_dir(args)))
    elif args.command == "discover":
        asyncio.run(run_discovery(args))
    elif args.command == "lock":
        ok = asyncio.run(run_lock(args))
    elif args.command == "config":
        ok = run_config_command(args)

    if not ok:
        sys.exit(1)


def _config_dir(args: argparse.Namespace) -> Path | None:
    return Path(args.config_dir) if args.config_dir else None


async def run_discovery(args: argparse.Namespace) -> None:
    """List the locks of the configured account."""
    from config import load_config, load_secrets
    from discovery.tedee import discover_locks

    if args.discover_type == "locks":
        config_dir = _config_dir(args)
        await discover_locks(load_config(config_dir), load_secrets(config_dir))


async def run_lock(args: argparse.Namespace) -> bool:
    """Send a command to a lock."""
    from main import run_lock_command
    from utils.errors import DeviceNotFoundError

    try:
        return await run_lock_command(args.name, args.action, _config_dir(args))
    except DeviceNotFoundError as e:
        print(f"✗ {e}. Check the device names in config.yaml.")
        return False


def run_config_command(args: argparse.Namespace) -> bool:
    """Run ``config validate`` or ``config init``."""
    from discovery.config_utils import init_config, validate_config

    if args.config_action == "validate":
        return validate_config(args.config_dir)
    if args.config_action == "init":
        init_config(args.config_dir)
        return True
    return False


if __name__ == "__main__":
    main()
