"""Async HTTP client for the remote log API."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from logdash.models import Environment, LogFileEntry

logger = logging.getLogger(__name__)

BUCKETS_PATH = "/api/config/buckets"
LOGS_PATH = "/api/logs"
LOG_CONTENT_PATH = "/api/log-content"
SEARCH_PATH = "/api/search"

_ENTRIES = TypeAdapter(list[LogFileEntry])
_STRINGS = TypeAdapter(list[str])


class LogApiError(Exception):
    """Transport or server failure from the log API.

    status_code is None when the request never got an HTTP response.
    """

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.status_code is None:
            return self.detail
        return f"{self.status_code} {self.detail}".rstrip()


def _env_value(environment: Environment | str) -> str:
    return environment.value if isinstance(environment, Environment) else str(environment)


def _scope_params(
    bucket: str, environment: Environment | str, app_name: str, day: date
) -> dict[str, str]:
    return {
        "bucket": bucket,
        "env": _env_value(environment),
        "appName": app_name,
        "date": day.isoformat(),
    }


class LogApiClient:
    """
    Narrow request/response client for the log service.

    Every method either returns the decoded payload or raises LogApiError.
    Pass transport to route requests somewhere other than the network
    (httpx.MockTransport, httpx.ASGITransport).
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> LogApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        logger.debug("GET %s", path, extra={"params": params or {}})
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Log API request failed: %s %s", path, e, exc_info=True)
            raise LogApiError(None, str(e) or type(e).__name__) from e
        if response.is_error:
            logger.warning(
                "Log API returned %s for %s",
                response.status_code,
                path,
                extra={"body": response.text[:500]},
            )
            raise LogApiError(response.status_code, response.text)
        return response

    @staticmethod
    def _decode(response: httpx.Response, adapter: TypeAdapter) -> Any:
        try:
            return adapter.validate_json(response.content)
        except ValidationError as e:
            raise LogApiError(response.status_code, f"Malformed response: {e}") from e

    async def list_buckets(self) -> list[str]:
        """Return configured bucket names in service order."""
        response = await self._get(BUCKETS_PATH)
        return self._decode(response, _STRINGS)

    async def list_log_files(
        self,
        bucket: str,
        environment: Environment | str,
        app_name: str,
        day: date,
    ) -> list[LogFileEntry]:
        """Return the log files for one app and day; order is preserved."""
        response = await self._get(LOGS_PATH, _scope_params(bucket, environment, app_name, day))
        return self._decode(response, _ENTRIES)

    async def get_log_content(self, bucket: str, key: str) -> str:
        """Return the full text body of one log file."""
        response = await self._get(LOG_CONTENT_PATH, {"bucket": bucket, "key": key})
        return response.text

    async def search_logs(
        self,
        bucket: str,
        environment: Environment | str,
        app_name: str,
        day: date,
        query: str,
    ) -> list[str]:
        """Return names of files in scope whose content contains query."""
        params = _scope_params(bucket, environment, app_name, day)
        params["query"] = query
        response = await self._get(SEARCH_PATH, params)
        return self._decode(response, _STRINGS)
