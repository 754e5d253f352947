"""Tests for the log API HTTP client."""

import asyncio
from datetime import date, datetime, timezone

import httpx
import pytest

from logdash.log_api import LogApiClient, LogApiError
from logdash.models import Environment


def _client(handler) -> LogApiClient:
    return LogApiClient("http://logs.test/", transport=httpx.MockTransport(handler))


def test_list_buckets():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/config/buckets"
        return httpx.Response(200, json=["b1", "b2"])

    async def scenario():
        async with _client(handler) as client:
            assert await client.list_buckets() == ["b1", "b2"]

    asyncio.run(scenario())


def test_list_log_files_sends_scope_and_parses_entries():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        assert request.url.path == "/api/logs"
        return httpx.Response(
            200,
            json=[
                {
                    "key": "DEV/app1/10.0.0.5/2024-01-01/app1-2.log",
                    "fileName": "app1-2.log",
                    "lastModified": "2024-01-01T12:00:00Z",
                    "size": 200,
                    "sequence": 2,
                },
                {
                    "key": "DEV/app1/10.0.0.5/2024-01-01/app1-1.log",
                    "fileName": "app1-1.log",
                    "lastModified": "2024-01-01T11:00:00Z",
                    "size": 100,
                    "sequence": 1,
                },
            ],
        )

    async def scenario():
        async with _client(handler) as client:
            return await client.list_log_files("b1", Environment.DEV, "app1", date(2024, 1, 1))

    entries = asyncio.run(scenario())
    assert seen == {"bucket": "b1", "env": "DEV", "appName": "app1", "date": "2024-01-01"}
    # service order is kept
    assert [e.file_name for e in entries] == ["app1-2.log", "app1-1.log"]
    assert entries[0].last_modified == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert entries[0].size == 200


def test_get_log_content_returns_raw_text():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["bucket"] == "b1"
        assert request.url.params["key"] == "a/b.log"
        return httpx.Response(200, text="line 1\nline 2\n")

    async def scenario():
        async with _client(handler) as client:
            return await client.get_log_content("b1", "a/b.log")

    assert asyncio.run(scenario()) == "line 1\nline 2\n"


def test_search_logs_sends_query():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/search"
        assert request.url.params["query"] == "ERROR 42"
        assert request.url.params["env"] == "PROD"
        return httpx.Response(200, json=["a.log"])

    async def scenario():
        async with _client(handler) as client:
            return await client.search_logs(
                "b1", Environment.PROD, "app1", date(2024, 1, 1), "ERROR 42"
            )

    assert asyncio.run(scenario()) == ["a.log"]


def test_non_2xx_raises_with_status_and_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="disk unavailable")

    async def scenario():
        async with _client(handler) as client:
            await client.list_log_files("b1", "DEV", "app1", date(2024, 1, 1))

    with pytest.raises(LogApiError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "disk unavailable"
    assert str(exc_info.value) == "500 disk unavailable"


def test_transport_failure_raises_without_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        async with _client(handler) as client:
            await client.list_buckets()

    with pytest.raises(LogApiError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.status_code is None
    assert str(exc_info.value) == "connection refused"


def test_malformed_payload_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"buckets": ["b1"]})

    async def scenario():
        async with _client(handler) as client:
            await client.list_buckets()

    with pytest.raises(LogApiError, match="Malformed response"):
        asyncio.run(scenario())
