"""Main entry point for tedee-bridge."""

import asyncio
import logging
import signal
import sys
from pathlib import Path

from config import load_config, load_secrets
from devices.manager import LockManager
from models.lock import LockTargetState
from services.tedee import create_api_client

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def main(config_dir: Path | None = None) -> None:
    """Run the bridge until interrupted."""
    logger.info("Starting tedee-bridge...")

    try:
        config = load_config(config_dir)
        secrets = load_secrets(config_dir)
        logger.info(f"Loaded config with {len(config.devices)} device(s)")
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    client = create_api_client(config, secrets)
    manager = LockManager(config, client)

    try:
        await manager.initialize()
        logger.info(f"Initialized {len(manager.get_controllers())} lock(s)")
        logger.debug(f"Lock summary: {manager.get_summary()}")
    except Exception as e:
        logger.error(f"Failed to initialize locks: {e}")
        await client.aclose()
        sys.exit(1)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Not supported on Windows event loops
            pass

    await manager.start()

    try:
        logger.info("tedee-bridge running...")
        await stop_event.wait()
        logger.info("Shutting down...")
    finally:
        await manager.shutdown()
        await client.aclose()
        logger.info("Shutdown complete")


async def run_lock_command(name: str, action: str, config_dir: Path | None = None) -> bool:
    """Run a single command on a configured lock, as if the user had asked from the host.

    Args:
        name: Lock name from config
        action: "open", "close" or "unlatch"

    Returns:
        True if a command was sent to the lock and completed
    """
    config = load_config(config_dir)
    secrets = load_secrets(config_dir)
    client = create_api_client(config, secrets)
    manager = LockManager(config, client)

    try:
        await manager.initialize()
        controller = manager.get_controller(name)

        if action == "close":
            completed = await controller.on_lock_target_changed(LockTargetState.SECURED)
        elif action == "open":
            completed = await controller.on_lock_target_changed(LockTargetState.UNSECURED)
        elif action == "unlatch":
            completed = await controller.on_latch_target_changed(LockTargetState.UNSECURED)
        else:
            raise ValueError(f"Unknown action: {action}")

        print(controller.to_state_dict())
        if completed:
            print(f"✓ {action} completed for {name}")
        else:
            print(f"✗ {action} was not completed for {name}, see the log for details")
        return completed
    finally:
        await manager.shutdown()
        await client.aclose()


def run() -> None:
    """Synchronous entry point."""
    setup_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
