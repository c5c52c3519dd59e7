"""Lock manager for tedee-bridge.

Creates one controller per configured lock and keeps them in sync with the
tedee cloud by polling it on a fixed interval.
"""

import asyncio
import logging
from typing import Any

from config import BridgeConfig, DeviceConfig
from devices.tedee import TedeeLockController
from models.tedee import LockRecord
from services.tedee import TedeeApiClient
from utils.errors import DeviceNotFoundError, describe_exception

logger = logging.getLogger(__name__)


class LockManager:
    """Manages all lock controllers and the background sync loop."""

    def __init__(self, config: BridgeConfig, client: TedeeApiClient):
        self.config = config
        self.client = client
        self.update_interval = float(config.update_interval)
        self._locks: list[LockRecord] = []
        self._controllers: dict[str, TedeeLockController] = {}
        self._running = False
        self._task: asyncio.Task | None = None

    async def initialize(self) -> None:
        """Fetch the lock inventory and create controllers from config."""
        self._locks = await self.client.list_locks()
        logger.info(f"Found {len(self._locks)} lock(s) in the account")

        if not self.config.devices:
            logger.warning("No devices configured.")
            return

        for device_config in self.config.devices:
            self._create_controller(device_config)

    def _create_controller(self, device_config: DeviceConfig) -> TedeeLockController | None:
        """Create a controller for a configured device."""
        if not device_config.name:
            logger.warning("Device name missing in the configuration.")
            return None

        record = self._find_lock(device_config.name)
        if record is None:
            logger.warning(f"No device with name '{device_config.name}' found in your account.")
            return None

        controller = TedeeLockController(
            self.client,
            device_config,
            record,
            request_refresh=self.update_all,
            timings=self.config.timings,
        )
        self._controllers[controller.name] = controller
        logger.info(f"Created lock: {controller.name} ({controller.id})")
        return controller

    def _find_lock(self, name: str) -> LockRecord | None:
        for lock in self._locks:
            if lock.name == name:
                return lock
        return None

    async def update_all(self) -> None:
        """Sync all locks from the API and push the results into the controllers.

        Errors are logged and swallowed; the next tick tries again.
        """
        try:
            logger.debug("Syncing locks from the API...")
            lock_syncs = await self.client.sync_all()
        except Exception as e:
            logger.warning(f"Failed to sync locks from API: {describe_exception(e)}")
            return

        syncs_by_id = {sync.id: sync for sync in lock_syncs}
        for controller in self._controllers.values():
            lock = self._find_lock(controller.name)
            if lock is None:
                continue

            lock_sync = syncs_by_id.get(lock.id)
            if lock_sync is not None:
                controller.update(lock_sync)

        logger.debug("Locks synced from the API.")

    async def start(self) -> None:
        """Start the background sync loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._sync_loop())
        logger.info(f"Sync loop started (interval: {self.update_interval}s)")

    async def stop(self) -> None:
        """Stop the background sync loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Sync loop stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _sync_loop(self) -> None:
        """Main sync loop."""
        while self._running:
            try:
                await asyncio.sleep(self.update_interval)
                await self.update_all()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Sync loop error: {e}")

    async def shutdown(self) -> None:
        """Stop syncing and cancel pending controller timers."""
        await self.stop()
        for controller in self._controllers.values():
            await controller.close()
        logger.info("Shut down lock controllers")

    # Controller getters
    def get_controller(self, name: str) -> TedeeLockController:
        """Get a controller by lock name.

        Raises:
            DeviceNotFoundError: If no controller has that name
        """
        controller = self._controllers.get(name)
        if controller is None:
            raise DeviceNotFoundError(name)
        return controller

    def get_controllers(self) -> list[TedeeLockController]:
        """Get all controllers."""
        return list(self._controllers.values())

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of all locks."""
        return {
            "total_locks": len(self._locks),
            "controllers": {
                name: controller.to_state_dict()
                for name, controller in self._controllers.items()
            },
        }
