"""Tests for the aiohttp routes, with the executor mocked."""
from unittest.mock import AsyncMock, MagicMock

import jenkins
import pytest
import pytest_asyncio
from aiohttp import test_utils

from app import create_app
from executor.breaker import BreakerStats
from executor.exceptions import (
    CircuitOpenError,
    CommandTimeoutError,
    NoBuildStartedError,
    ValidationError,
)


@pytest.fixture
def executor():
    executor = MagicMock()
    executor.start = AsyncMock(return_value=None)
    executor.stop = AsyncMock(return_value=None)
    executor.stats.return_value = BreakerStats(total_requests=3, successes=3)
    return executor


@pytest_asyncio.fixture
async def client(executor):
    test_client = test_utils.TestClient(test_utils.TestServer(create_app(executor)))
    await test_client.start_server()
    yield test_client
    await test_client.close()


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status == 200
    assert (await resp.json())["status"] == "ok"


@pytest.mark.asyncio
async def test_start_build(client, executor):
    body = {"buildId": 1993, "container": "node:4", "token": "abcdefg"}

    resp = await client.post("/api/builds/start", json=body)

    assert resp.status == 200
    assert await resp.json() == {"status": "started", "buildId": 1993}
    executor.start.assert_awaited_once_with(body)


@pytest.mark.asyncio
async def test_stop_build(client, executor):
    resp = await client.post("/api/builds/stop", json={"buildId": 1993})

    assert resp.status == 200
    assert await resp.json() == {"status": "stopped", "buildId": 1993}
    executor.stop.assert_awaited_once_with({"buildId": 1993})


@pytest.mark.asyncio
@pytest.mark.parametrize("error, status", [
    (ValidationError("stop", ["buildId"]), 400),
    (NoBuildStartedError(), 409),
    (CircuitOpenError(12.0), 503),
    (RuntimeError("jenkins unreachable"), 502),
])
async def test_stop_errors(client, executor, error, status):
    executor.stop.side_effect = error

    resp = await client.post("/api/builds/stop", json={"buildId": 1993})

    assert resp.status == status
    assert await resp.json() == {"status": "error", "message": str(error)}


@pytest.mark.asyncio
async def test_rejects_non_json(client, executor):
    resp = await client.post("/api/builds/start", data="buildId=1")

    assert resp.status == 415
    executor.start.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["{not json", "[1, 2]"])
async def test_rejects_bad_json_body(client, executor, body):
    resp = await client.post(
        "/api/builds/start", data=body, headers={"Content-Type": "application/json"}
    )

    assert resp.status == 400
    payload = await resp.json()
    assert payload["status"] == "error"
    executor.start.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("error, status", [
    (ValidationError("start", ["token"]), 400),
    (CircuitOpenError(3.0), 503),
    (CommandTimeoutError("job.build", 10.0), 504),
    (FileNotFoundError(2, "No such file or directory", "/etc/sd/job.xml"), 500),
    (jenkins.JenkinsException("job[SD-1993] already exists"), 502),
    (ConnectionRefusedError(111, "Connection refused"), 502),
])
async def test_start_errors(client, executor, error, status):
    executor.start.side_effect = error

    resp = await client.post(
        "/api/builds/start", json={"buildId": 1993, "container": "node:4", "token": "t"}
    )

    assert resp.status == status
    assert await resp.json() == {"status": "error", "message": str(error)}


@pytest.mark.asyncio
async def test_stats(client):
    resp = await client.get("/stats")

    body = await resp.json()
    assert body["total_requests"] == 3
    assert body["state"] == "closed"
