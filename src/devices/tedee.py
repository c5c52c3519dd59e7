"""tedee lock controller.

One controller represents one physical lock on the host: a lock mechanism,
an optional latch mechanism and a battery. It reconciles state reported by
the periodic sync with commands the user starts from the host.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine

from config import DeviceConfig, TimingConfig
from devices.mapper import (
    StateMapping,
    is_half_open,
    map_battery,
    map_lock_state,
    require_properties,
    supports_pull_spring,
)
from models.lock import (
    AccessoryInformation,
    Battery,
    LockAccessory,
    LockMechanism,
    LockTargetState,
)
from models.tedee import LockRecord, LockSync
from services.tedee import TedeeApiClient
from utils.errors import StaleDataError, describe_exception

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[Any]]


class TedeeLockController:
    """Controller for a single tedee lock.

    While a command is in flight (``is_operating``) sync updates are dropped,
    so the optimistic state set for the command stays visible until the
    settle delay after the command has passed. Follow-up refreshes after
    the command bring the display back in line with the server.
    """

    def __init__(
        self,
        client: TedeeApiClient,
        device_config: DeviceConfig,
        record: LockRecord,
        request_refresh: RefreshCallback,
        timings: TimingConfig | None = None,
    ):
        logger.info(f"[{device_config.name}] Initializing...")

        self.id = record.id
        self.name = device_config.name
        self.config = device_config
        self.is_operating = False

        self._client = client
        self._record = record
        self._request_refresh = request_refresh
        self._timings = timings or TimingConfig()
        self._follow_up_tasks: set[asyncio.Task] = set()
        self._revert_tasks: set[asyncio.Task] = set()
        # Commands still awaiting the API, and the number of the latest one
        self._in_flight = 0
        self._generation = 0

        self.accessory = LockAccessory(
            name=device_config.name,
            information=AccessoryInformation(
                serial_number=record.serial_number,
                firmware_revision=record.firmware_version,
                hardware_revision=(
                    str(record.device_revision) if record.device_revision is not None else None
                ),
            ),
            lock=LockMechanism(device_config.default_lock_name),
        )
        if device_config.unlatch_lock:
            logger.info(f"[{self.name}] Adding latch")
            self.accessory.latch = LockMechanism(device_config.default_latch_name)

        self.update(record)

    @property
    def record(self) -> LockRecord:
        return self._record

    @property
    def lock(self) -> LockMechanism:
        return self.accessory.lock

    @property
    def latch(self) -> LockMechanism | None:
        return self.accessory.latch

    @property
    def battery(self) -> Battery:
        return self.accessory.battery

    def update(self, lock: LockSync) -> bool:
        """Apply state reported by the server.

        Returns:
            True if the update was applied, False if it was skipped
        """
        if self.is_operating:
            logger.debug(f"[{self.name}] Operation in progress, skipping update.")
            return False

        try:
            require_properties(lock)
        except StaleDataError as e:
            logger.debug(f"[{self.name}] Skipping update: {e}")
            return False

        if isinstance(lock, LockRecord):
            self._record = lock
        else:
            self._record = self._record.with_sync(lock)

        self._apply_mapping(map_lock_state(lock.state))

        battery = map_battery(lock)
        if battery is not None:
            self.accessory.battery = battery

        return True

    def _apply_mapping(self, mapping: StateMapping) -> None:
        if mapping.lock_current is not None:
            self.lock.current = mapping.lock_current
        if mapping.lock_target is not None:
            self.lock.target = mapping.lock_target

        if self.latch is None:
            return
        if mapping.latch_current is not None:
            self.latch.current = mapping.latch_current
        if mapping.latch_target is not None:
            self.latch.target = mapping.latch_target

    async def on_lock_target_changed(self, value: LockTargetState | int) -> bool:
        """Handle a new target state for the lock set by the user.

        Returns:
            True if a command was sent and completed
        """
        value = LockTargetState(value)
        self.lock.target = value

        if value == LockTargetState.SECURED:
            logger.info(f"[{self.name}] Lock requested.")
            return await self._run_command(self._client.close, "lock")

        if self.lock.is_secured:
            if self.config.disable_unlock:
                logger.info(f"[{self.name}] Unlock requested, but unlocking is disabled.")
                self._schedule_revert(self.lock)
                return False

            if (
                self.config.unlatch_from_locked_to_unlocked
                and self.latch is not None
                and supports_pull_spring(self._record)
            ):
                # Both endpoints should be displayed as open
                self.latch.target = LockTargetState.UNSECURED
                logger.info(f"[{self.name}] Unlatch (from locked) requested.")
                return await self._run_command(self._client.pull_spring, "unlatch (from locked)")

            logger.info(f"[{self.name}] Unlock requested.")
            return await self._run_command(self._client.open, "unlock")

        # Already unlocked: only unlatch if configured to do so
        if not self.config.unlatch_from_unlocked_to_unlocked:
            logger.debug(f"[{self.name}] Already unlocked, ignoring request.")
            return False
        if not supports_pull_spring(self._record):
            logger.debug(f"[{self.name}] Pull spring not enabled, ignoring request.")
            return False

        if is_half_open(self._record):
            logger.info(f"[{self.name}] Unlock (door half-open) requested.")
            return await self._run_command(self._client.open, "unlock")

        if self.latch is not None:
            self.latch.target = LockTargetState.UNSECURED
        logger.info(f"[{self.name}] Unlatch (from unlocked) requested.")
        return await self._run_command(self._client.pull_spring, "unlatch (from unlocked)")

    async def on_latch_target_changed(self, value: LockTargetState | int) -> bool:
        """Handle a new target state for the latch set by the user.

        Returns:
            True if a command was sent and completed
        """
        if self.latch is None:
            logger.warning(f"[{self.name}] Latch is not exposed, ignoring request.")
            return False

        value = LockTargetState(value)
        self.latch.target = value

        # The latch cannot be secured, only pulled
        if value != LockTargetState.UNSECURED:
            return False

        reason = None
        if not supports_pull_spring(self._record):
            reason = "pull spring is not enabled for this lock"
        elif self.config.disable_unlock:
            reason = "unlocking is disabled"
        elif self.lock.is_secured and self.config.unlatch_lock_prevent_unlatch_if_locked:
            reason = "the lock is locked"

        if reason:
            logger.info(f"[{self.name}] Unlatch rejected, {reason}.")
            self._schedule_revert(self.latch)
            return False

        # Both endpoints should be displayed as open
        self.lock.target = LockTargetState.UNSECURED

        if is_half_open(self._record):
            logger.info(f"[{self.name}] Unlatch requested, door is half-open, unlocking instead.")
            return await self._run_command(self._client.open, "unlock")

        logger.info(f"[{self.name}] Unlatch (from latch) requested.")
        return await self._run_command(self._client.pull_spring, "unlatch (from latch)")

    async def _run_command(
        self,
        command: Callable[[int], Awaitable[None]],
        description: str,
    ) -> bool:
        """Run a command against the API while holding the operating guard.

        The guard stays set until every overlapping command has returned;
        only the last one to return schedules the settle and refresh timers.

        Returns:
            True if the command completed
        """
        self._begin_operation()
        try:
            await command(self.id)
            return True
        except Exception as e:
            logger.warning(f"[{self.name}] Failed to {description}: {describe_exception(e)}")
            return False
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._schedule_follow_ups(self._generation)

    def _begin_operation(self) -> None:
        # A newer command owns the guard; drop timers left by an earlier one
        self._cancel_tasks(self._follow_up_tasks)
        self._generation += 1
        self._in_flight += 1
        self.is_operating = True

    def _end_operation(self, generation: int) -> None:
        if self._in_flight or generation != self._generation:
            return
        if self.is_operating:
            logger.debug(f"[{self.name}] Operation settled.")
        self.is_operating = False

    def _schedule_follow_ups(self, generation: int) -> None:
        settle_delay = self._timings.settle_delay
        self._spawn(self._follow_up_tasks, self._settle(settle_delay, generation))
        for delay in self._timings.refresh_delays:
            settles = delay >= settle_delay
            self._spawn(self._follow_up_tasks, self._refresh_later(delay, generation, settles))

    async def _settle(self, delay: float, generation: int) -> None:
        await asyncio.sleep(delay)
        self._end_operation(generation)

    async def _refresh_later(self, delay: float, generation: int, settles: bool) -> None:
        await asyncio.sleep(delay)
        if settles:
            self._end_operation(generation)
        try:
            await self._request_refresh()
        except Exception as e:
            logger.warning(f"[{self.name}] Refresh after command failed: {describe_exception(e)}")

    def _schedule_revert(self, mechanism: LockMechanism) -> None:
        self._spawn(self._revert_tasks, self._revert_later(mechanism))

    async def _revert_later(self, mechanism: LockMechanism) -> None:
        await asyncio.sleep(self._timings.revert_delay)
        mechanism.secure()

    def _spawn(self, tasks: set[asyncio.Task], coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    @staticmethod
    def _cancel_tasks(tasks: set[asyncio.Task]) -> None:
        for task in list(tasks):
            task.cancel()
        tasks.clear()

    async def close(self) -> None:
        """Cancel all delayed work owned by this controller."""
        tasks = list(self._follow_up_tasks) + list(self._revert_tasks)
        self._cancel_tasks(self._follow_up_tasks)
        self._cancel_tasks(self._revert_tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def to_state_dict(self) -> dict[str, Any]:
        """Return current state as dict."""
        state = self.accessory.to_state_dict()
        state["id"] = self.id
        state["state_code"] = self._record.state
        state["is_operating"] = self.is_operating
        return state
