"""Tests for the tedee cloud API client."""

import json
from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from config import BridgeConfig, SecretsConfig
from services.tedee import create_api_client
from utils.errors import AuthenticationError

from conftest import API_URI, TOKEN_URI, make_lock_payload


def ok(result) -> httpx.Response:
    return httpx.Response(200, json={"result": result, "success": True})


def api_path(request: httpx.Request) -> str:
    return str(request.url)[len(API_URI):]


def api_requests(requests: list[httpx.Request]) -> list[httpx.Request]:
    return [r for r in requests if str(r.url) != TOKEN_URI]


def inventory_handler(*locks, operations=None):
    """Answer inventory requests and replay operation statuses."""
    operations = list(operations or [])

    def handler(request: httpx.Request) -> httpx.Response:
        path = api_path(request)
        if path == "/my/lock":
            return ok(list(locks))
        if path in ("/my/lock/open", "/my/lock/close", "/my/lock/pull-spring"):
            return ok({"operationId": "op-1", "status": operations.pop(0)})
        if path == "/my/device/operation/op-1":
            return ok({"operationId": "op-1", "status": operations.pop(0)})
        return httpx.Response(404)

    return handler


class TestInventoryAndSync:
    """Tests for inventory and sync calls."""

    @pytest.mark.asyncio
    async def test_list_locks(self, api_factory):
        client, requests = api_factory(
            inventory_handler(make_lock_payload(1, "Front Door"), make_lock_payload(2, "Garage"))
        )

        locks = await client.list_locks()

        assert [lock.name for lock in locks] == ["Front Door", "Garage"]
        assert client.get_lock(2).serial_number == "SN-0002"
        assert client.get_lock(99) is None
        assert len(client.locks) == 2

        request = api_requests(requests)[0]
        assert request.method == "GET"
        assert request.headers["Authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_sync_all(self, api_factory):
        def handler(request):
            assert api_path(request) == "/my/lock/sync"
            return ok([{"id": 1, "lockProperties": {"state": 2, "batteryLevel": 55}}])

        client, _ = api_factory(handler)

        syncs = await client.sync_all()

        assert len(syncs) == 1
        assert syncs[0].id == 1
        assert syncs[0].state == 2

    @pytest.mark.asyncio
    async def test_sync_one(self, api_factory):
        def handler(request):
            assert api_path(request) == "/my/lock/5/sync"
            return ok({"id": 5, "lockProperties": {"state": 7}})

        client, _ = api_factory(handler)

        sync = await client.sync_one(5)

        assert sync.id == 5
        assert sync.state == 7

    @pytest.mark.asyncio
    async def test_token_shared_across_calls(self, api_factory):
        client, requests = api_factory(inventory_handler(make_lock_payload()))

        await client.list_locks()
        await client.list_locks()

        token_requests = [r for r in requests if str(r.url) == TOKEN_URI]
        assert len(token_requests) == 1


class TestOperations:
    """Tests for the open/close/pull-spring operations."""

    @pytest.mark.asyncio
    async def test_open_completed_immediately(self, api_factory):
        client, requests = api_factory(
            inventory_handler(make_lock_payload(), operations=["COMPLETED"])
        )
        await client.list_locks()

        await client.open(1)

        post = api_requests(requests)[-1]
        assert post.method == "POST"
        assert api_path(post) == "/my/lock/open"
        assert json.loads(post.content) == {"deviceId": 1}

    @pytest.mark.asyncio
    async def test_polls_until_completed(self, api_factory):
        client, requests = api_factory(
            inventory_handler(
                make_lock_payload(), operations=["PENDING", "PENDING", "PENDING", "COMPLETED"]
            ),
            poll_interval=1.0,
        )
        await client.list_locks()

        with patch("services.tedee.asyncio.sleep", new=AsyncMock()) as sleep:
            await client.pull_spring(1)

        # One poll per second for each non-terminal status
        assert sleep.await_args_list == [call(1.0)] * 3
        paths = [api_path(r) for r in api_requests(requests)]
        assert paths == [
            "/my/lock",
            "/my/lock/pull-spring",
            "/my/device/operation/op-1",
            "/my/device/operation/op-1",
            "/my/device/operation/op-1",
        ]

    @pytest.mark.asyncio
    async def test_close(self, api_factory):
        client, requests = api_factory(
            inventory_handler(make_lock_payload(), operations=["PENDING", "Completed"])
        )
        await client.list_locks()

        await client.close(1)

        paths = [api_path(r) for r in api_requests(requests)]
        assert paths[-2:] == ["/my/lock/close", "/my/device/operation/op-1"]

    @pytest.mark.asyncio
    async def test_unknown_lock_is_noop(self, api_factory, caplog):
        client, requests = api_factory(inventory_handler(make_lock_payload()))
        await client.list_locks()

        await client.open(42)
        await client.close(42)
        await client.pull_spring(42)

        assert len(api_requests(requests)) == 1
        assert "Lock with ID 42 not found, cannot open." in caplog.text

    @pytest.mark.asyncio
    async def test_operation_without_id(self, api_factory):
        def handler(request):
            if api_path(request) == "/my/lock":
                return ok([make_lock_payload()])
            return ok({"status": "PENDING"})

        client, _ = api_factory(handler)
        await client.list_locks()

        with pytest.raises(ValueError):
            await client.open(1)


class TestRetry:
    """Tests for retry behavior of API calls."""

    @pytest.mark.asyncio
    async def test_retry_then_success(self, api_factory):
        responses = iter([httpx.Response(500), httpx.Response(503), ok([make_lock_payload()])])
        client, requests = api_factory(lambda request: next(responses))

        locks = await client.list_locks()

        assert len(locks) == 1
        assert len(api_requests(requests)) == 3

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self, api_factory):
        client, requests = api_factory(lambda request: httpx.Response(502))

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.sync_all()

        assert exc_info.value.response.status_code == 502
        assert len(api_requests(requests)) == 3

    @pytest.mark.asyncio
    async def test_network_error_retried(self, api_factory):
        attempts = 0

        def handler(request):
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return ok([])

        client, _ = api_factory(handler)

        assert await client.sync_all() == []
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_rejected_token_reauthenticates(self, api_factory):
        responses = iter([httpx.Response(401), ok([])])
        client, requests = api_factory(lambda request: next(responses))

        await client.sync_all()

        authorizations = [r.headers["Authorization"] for r in api_requests(requests)]
        assert authorizations == ["Bearer token-1", "Bearer token-2"]

    @pytest.mark.asyncio
    async def test_authentication_failure_not_retried(self, api_factory):
        client, requests = api_factory(
            lambda request: ok([]),
            token_handler=lambda request: httpx.Response(400),
        )

        with pytest.raises(AuthenticationError):
            await client.sync_all()

        # Only the token endpoint was tried, once per token attempt
        assert api_requests(requests) == []
        assert len(requests) == 3


class TestFactory:
    """Tests for building a client from config."""

    @pytest.mark.asyncio
    async def test_create_api_client(self):
        config = BridgeConfig.model_validate(
            {"api": {"maximum_api_retry": 5, "api_retry_interval": 1.5}}
        )
        secrets = SecretsConfig(tedee={"email_address": "a@b.c", "password": "pw"})

        client = create_api_client(config, secrets)
        try:
            assert client.max_attempts == 5
            assert client.retry_interval == 1.5
            assert client.poll_interval == 1.0
        finally:
            await client.aclose()
