"""Pytest configuration and fixtures for tedee-bridge tests."""

import sys
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import BridgeConfig, DeviceConfig, TimingConfig
from models.tedee import LockRecord
from services.credentials import CredentialCache
from services.tedee import TedeeApiClient

TOKEN_URI = "https://login.example.com/token"
API_URI = "https://api.example.com/api/v1.18"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_lock_payload(
    lock_id: int = 1,
    name: str = "Front Door",
    state: int | None = 6,
    battery_level: int | None = 80,
    is_charging: int = 0,
    pull_spring_enabled: bool | None = True,
) -> dict[str, Any]:
    """Build a lock payload the way the tedee API returns it."""
    payload: dict[str, Any] = {
        "id": lock_id,
        "name": name,
        "serialNumber": f"SN-{lock_id:04d}",
        "deviceRevision": 2,
        "softwareVersions": [
            {"softwareType": 0, "version": "2.2.12345"},
            {"softwareType": 1, "version": "1.0.0"},
        ],
    }
    if state is not None:
        payload["lockProperties"] = {
            "state": state,
            "batteryLevel": battery_level,
            "isCharging": is_charging,
        }
    if pull_spring_enabled is not None:
        payload["deviceSettings"] = {
            "pullSpringEnabled": pull_spring_enabled,
            "autoPullSpringEnabled": False,
        }
    return payload


def make_lock(**kwargs: Any) -> LockRecord:
    return LockRecord.model_validate(make_lock_payload(**kwargs))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_timings() -> TimingConfig:
    """Controller timings short enough to run in tests."""
    return TimingConfig(settle_delay=0.01, refresh_delays=[0.01, 0.02, 0.03], revert_delay=0.01)


@pytest.fixture
def device_config() -> DeviceConfig:
    return DeviceConfig(name="Front Door", unlatch_lock=True)


@pytest.fixture
def sample_config(fast_timings: TimingConfig) -> BridgeConfig:
    """Create a sample configuration for testing."""
    return BridgeConfig(
        update_interval=15,
        timings=fast_timings,
        devices=[
            DeviceConfig(name="Front Door", unlatch_lock=True),
            DeviceConfig(name="Back Door"),
            DeviceConfig(name="Garage"),
        ],
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """An API client whose calls are all AsyncMocks."""
    client = MagicMock(spec=TedeeApiClient)
    client.list_locks = AsyncMock(return_value=[])
    client.sync_all = AsyncMock(return_value=[])
    client.sync_one = AsyncMock()
    client.open = AsyncMock()
    client.close = AsyncMock()
    client.pull_spring = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def api_factory(clock: FakeClock) -> Callable[..., tuple[TedeeApiClient, list[httpx.Request]]]:
    """Build an API client backed by an httpx.MockTransport.

    ``handler(request)`` answers API requests; token requests are answered
    with a fresh token unless ``token_handler`` is given. Returns the client
    and the list of all requests seen by the transport.
    """

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        token_handler: Callable[[httpx.Request], httpx.Response] | None = None,
        max_attempts: int = 3,
        poll_interval: float = 0.0,
    ) -> tuple[TedeeApiClient, list[httpx.Request]]:
        requests: list[httpx.Request] = []
        token_count = 0

        def default_token_handler(request: httpx.Request) -> httpx.Response:
            nonlocal token_count
            token_count += 1
            return httpx.Response(
                200, json={"access_token": f"token-{token_count}", "expires_in": 3600}
            )

        def route(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if str(request.url) == TOKEN_URI:
                return (token_handler or default_token_handler)(request)
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(route))
        credentials = CredentialCache(
            http_client,
            TOKEN_URI,
            "user@example.com",
            "secret",
            max_attempts=max_attempts,
            retry_interval=0.0,
            clock=clock,
        )
        client = TedeeApiClient(
            credentials,
            API_URI,
            http_client,
            max_attempts=max_attempts,
            retry_interval=0.0,
            poll_interval=poll_interval,
            owns_client=True,
        )
        return client, requests

    return factory
