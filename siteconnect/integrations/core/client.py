import asyncio
import json
import logging
from types import TracebackType
from typing import Self

import aiohttp

from siteconnect.integrations.core.exceptions import (
    ApiRequestError,
    UpstreamTimeoutError,
)
from siteconnect.integrations.core.types import (
    ApiResponse,
    AuthContext,
    RequestDefinition,
)

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, timeout: float = 20.0):
        self._timeout_seconds = timeout
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._client: aiohttp.ClientSession | None = None
        logger.debug("ApiClient initialized with timeout=%s", timeout)

    async def __aenter__(self) -> Self:
        self._client = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _get_client(self) -> aiohttp.ClientSession:
        if self._client is None or self._client.closed:
            logger.debug("Creating new aiohttp ClientSession")
            self._client = aiohttp.ClientSession(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.closed:
            await self._client.close()
            self._client = None

    async def execute(
        self,
        request: RequestDefinition,
        auth_context: AuthContext | None = None,
    ) -> ApiResponse:
        headers = self._build_headers(request, auth_context)
        client = await self._get_client()
        try:
            async with client.request(
                request.method.value,
                request.url,
                params=request.params or None,
                headers=headers,
                data=request.form,
                json=request.body,
            ) as response:
                try:
                    text = await response.text()
                except UnicodeDecodeError as e:
                    logger.warning(
                        "Upstream call %s returned an undecodable body", request.operation
                    )
                    raise ApiRequestError(
                        response.status,
                        f"Upstream call '{request.operation}' returned an undecodable body",
                    ) from e
                data = self._parse_body(response, text)
                logger.debug(
                    "%s %s -> %d", request.method.value, request.operation, response.status
                )
                return ApiResponse(status_code=response.status, data=data, text=text)
        except asyncio.TimeoutError as e:
            logger.warning(
                "Upstream call %s timed out after %ss",
                request.operation,
                self._timeout_seconds,
            )
            raise UpstreamTimeoutError(request.operation, self._timeout_seconds) from e
        except aiohttp.ClientError as e:
            logger.warning("Upstream call %s failed: %s", request.operation, e)
            raise ApiRequestError(
                0, f"Upstream call '{request.operation}' failed: {e}"
            ) from e

    def _build_headers(
        self, request: RequestDefinition, auth_context: AuthContext | None
    ) -> dict[str, str]:
        headers = {"Accept": "application/json", **request.headers}
        if auth_context is not None:
            headers["Authorization"] = auth_context.authorization_header
        return headers

    def _parse_body(self, response: aiohttp.ClientResponse, text: str) -> object:
        if not text:
            return None
        if "json" not in (response.content_type or ""):
            return None
        try:
            return json.loads(text)
        except ValueError:
            logger.debug("Response body for %s is not valid JSON", response.url)
            return None
