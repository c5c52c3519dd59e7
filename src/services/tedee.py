"""tedee cloud API client.

Wraps the parts of the tedee HTTP API needed to control locks: inventory,
state sync and the open/close/pull-spring operations. Commands create a
vendor-side operation and poll it until the lock reports completion.
API docs: https://api.tedee.com
"""

import asyncio
import logging
from typing import Any, Callable

import httpx

from config import BridgeConfig, SecretsConfig
from models.tedee import LockRecord, LockSync, OperationHandle, unwrap_result
from services.credentials import CredentialCache
from utils.retry import retry_async

logger = logging.getLogger(__name__)


class TedeeApiClient:
    """Client for the tedee cloud API.

    Every public call runs with a bounded retry: on an HTTP or network error
    the whole call is repeated from the top (token check included) after a
    fixed delay, and the last error is raised once the attempts run out.
    """

    def __init__(
        self,
        credentials: CredentialCache,
        api_uri: str,
        http_client: httpx.AsyncClient,
        max_attempts: int = 3,
        retry_interval: float = 5.0,
        poll_interval: float = 1.0,
        owns_client: bool = False,
    ):
        self._credentials = credentials
        self._api_uri = api_uri.rstrip("/")
        self._client = http_client
        self._owns_client = owns_client
        self.max_attempts = max_attempts
        self.retry_interval = retry_interval
        self.poll_interval = poll_interval
        self._locks: dict[int, LockRecord] = {}

    @property
    def locks(self) -> list[LockRecord]:
        """Locks returned by the last inventory fetch."""
        return list(self._locks.values())

    def get_lock(self, lock_id: int) -> LockRecord | None:
        return self._locks.get(lock_id)

    async def _with_retry(self, func: Callable[..., Any], *args: Any, description: str) -> Any:
        return await retry_async(
            func,
            *args,
            max_attempts=self.max_attempts,
            delay=self.retry_interval,
            retryable_exceptions=(httpx.HTTPError,),
            description=description,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated API request and return the ``result`` member."""
        token = await self._credentials.get_token()
        response = await self._client.request(
            method,
            f"{self._api_uri}{path}",
            headers={"Authorization": f"Bearer {token}"},
            json=json_data,
        )

        if response.status_code == 401:
            # The token was rejected, authenticate again on the next attempt
            self._credentials.invalidate()

        response.raise_for_status()
        payload = response.json()
        logger.debug(f"{method} {path}: {payload}")
        return unwrap_result(payload)

    async def list_locks(self) -> list[LockRecord]:
        """Get all locks of the account and remember them."""
        logger.debug("Getting locks from API...")

        async def fetch() -> list[LockRecord]:
            result = await self._request("GET", "/my/lock")
            return [LockRecord.model_validate(item) for item in result]

        locks = await self._with_retry(fetch, description="Getting locks from API")
        self._locks = {lock.id: lock for lock in locks}
        logger.debug(f"{len(locks)} lock(s) received from API.")
        return locks

    async def sync_all(self) -> list[LockSync]:
        """Get recent state changes of all locks."""
        logger.debug("Syncing locks from API...")

        async def fetch() -> list[LockSync]:
            result = await self._request("GET", "/my/lock/sync")
            return [LockSync.model_validate(item) for item in result]

        return await self._with_retry(fetch, description="Syncing locks from API")

    async def sync_one(self, lock_id: int) -> LockSync:
        """Get recent state changes of a single lock."""
        logger.debug(f"Syncing lock with ID {lock_id} from API...")

        async def fetch() -> LockSync:
            result = await self._request("GET", f"/my/lock/{lock_id}/sync")
            return LockSync.model_validate(result)

        return await self._with_retry(fetch, description=f"Syncing lock with ID {lock_id}")

    async def open(self, lock_id: int) -> None:
        """Unlock the lock."""
        await self._run_operation(lock_id, "/my/lock/open", "open")

    async def close(self, lock_id: int) -> None:
        """Lock the lock."""
        await self._run_operation(lock_id, "/my/lock/close", "close")

    async def pull_spring(self, lock_id: int) -> None:
        """Pull the spring to unlatch the door."""
        await self._run_operation(lock_id, "/my/lock/pull-spring", "pull spring")

    async def _run_operation(self, lock_id: int, path: str, action: str) -> None:
        lock = self._locks.get(lock_id)
        if lock is None:
            logger.warning(f"Lock with ID {lock_id} not found, cannot {action}.")
            return

        logger.debug(f"[{lock.name}] Sending {action} via API...")
        await self._with_retry(
            self._execute_operation,
            lock,
            path,
            action,
            description=f"[{lock.name}] {action.capitalize()} via API",
        )
        logger.info(f"[{lock.name}] {action.capitalize()} completed via API.")

    async def _execute_operation(self, lock: LockRecord, path: str, action: str) -> None:
        """Create an operation and wait until the vendor reports it completed."""
        result = await self._request("POST", path, json_data={"deviceId": lock.id})
        handle = OperationHandle.model_validate(result)
        operation_id = handle.operation_id

        while not handle.is_completed:
            if operation_id is None:
                raise ValueError(f"{action} operation for {lock.name} has no operation ID")

            await asyncio.sleep(self.poll_interval)
            result = await self._request("GET", f"/my/device/operation/{operation_id}")
            handle = OperationHandle.model_validate(result)
            logger.info(f"[{lock.name}] Waiting for {action} operation to be completed.")

    async def aclose(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_client:
            await self._client.aclose()


def create_api_client(config: BridgeConfig, secrets: SecretsConfig) -> TedeeApiClient:
    """Factory function to create an API client from config."""
    if not secrets.email_address or not secrets.password:
        logger.warning("No tedee credentials found in secrets.yaml")

    http_client = httpx.AsyncClient(timeout=config.api.timeout)
    credentials = CredentialCache(
        http_client,
        config.api.token_uri,
        secrets.email_address,
        secrets.password,
        client_id=config.api.client_id,
        max_attempts=config.api.maximum_token_retry,
        retry_interval=config.api.token_retry_interval,
    )
    return TedeeApiClient(
        credentials,
        config.api.api_uri,
        http_client,
        max_attempts=config.api.maximum_api_retry,
        retry_interval=config.api.api_retry_interval,
        poll_interval=config.api.operation_poll_interval,
        owns_client=True,
    )
