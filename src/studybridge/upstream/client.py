"""HTTP client for the upstream content service.

One pooled ``httpx.AsyncClient`` is kept per credential scope:

- content: CONTENT API token, used by the catalog and study-tracking routes
- user: USER API token, used by the account routes

UpstreamPool builds both once at application start; routes receive it via
dependency injection and never construct clients themselves.
"""

from __future__ import annotations

import time
from typing import Any, Literal

import httpx
import structlog

from studybridge.config.app_config import UpstreamConfig

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

Scope = Literal["content", "user"]

SCOPES: tuple[Scope, ...] = ("content", "user")

DEFAULT_ERROR_MESSAGE = "Internal Server Error"


# =============================================================================
# ERRORS
# =============================================================================


class UpstreamError(Exception):
    """A call to the content service failed.

    ``status_code`` and ``message`` come from the upstream response when it
    carried them, otherwise they fall back to 500 and a fixed message.
    """

    def __init__(
        self,
        status_code: int = 500,
        message: str = DEFAULT_ERROR_MESSAGE,
        payload: Any = None,
    ):
        self.status_code = status_code
        self.message = message
        self.payload = payload
        super().__init__(f"{status_code}: {message}")


class UpstreamTimeoutError(UpstreamError):
    """The content service did not answer within the configured timeout."""


class UpstreamConnectionError(UpstreamError):
    """The content service could not be reached."""


def extract_error_message(payload: Any) -> str:
    """Pull ``error.message`` out of an upstream error body."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return DEFAULT_ERROR_MESSAGE


def _decode(response: httpx.Response) -> Any:
    """Decode a response body, tolerating empty and non-JSON bodies."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


# =============================================================================
# CLIENT
# =============================================================================


class UpstreamClient:
    """Authenticated client bound to a single credential scope."""

    def __init__(
        self,
        scope: Scope,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.scope = scope
        self.base_url = config.base_url

        headers = {"Content-Type": "application/json"}
        token = config.token_for(scope)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        # pool=None: requests beyond the connection cap wait for a slot
        self.timeout = httpx.Timeout(config.timeout, pool=None)
        self.limits = httpx.Limits(
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=self.timeout,
            limits=self.limits,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        auth: bool = True,
        headers: dict[str, str] | None = None,
        expect_missing: bool = False,
    ) -> Any:
        """Send one request and return the decoded body.

        Args:
            method: HTTP verb
            path: Upstream path, e.g. ``/api/profiles``
            params: Query parameters (see StrapiQuery)
            json: JSON body
            auth: If False the scope's bearer token is not sent
            headers: Extra headers; an ``Authorization`` here replaces the token
            expect_missing: A 404 is an anticipated outcome and logged quietly

        Returns:
            Decoded JSON body, raw text for non-JSON bodies, or None when empty

        Raises:
            UpstreamTimeoutError: If the call timed out
            UpstreamConnectionError: If the service could not be reached
            UpstreamError: If the service answered with an error status
        """
        request = self._client.build_request(
            method, path, params=params, json=json, headers=headers
        )
        if not auth:
            request.headers.pop("Authorization", None)

        log = logger.bind(scope=self.scope, method=method, path=path)
        log.debug("upstream_request")
        start_time = time.time()

        try:
            response = await self._client.send(request)
        except httpx.TimeoutException as e:
            log.error("upstream_timeout", error=str(e))
            raise UpstreamTimeoutError() from e
        except httpx.HTTPError as e:
            log.error("upstream_connection_failed", error=str(e))
            raise UpstreamConnectionError() from e

        latency_ms = int((time.time() - start_time) * 1000)
        payload = _decode(response)

        if response.is_error:
            if expect_missing and response.status_code == 404:
                log.debug("upstream_not_found", latency_ms=latency_ms)
            else:
                log.warning(
                    "upstream_error",
                    status=response.status_code,
                    latency_ms=latency_ms,
                    body=payload,
                )
            raise UpstreamError(
                status_code=response.status_code,
                message=extract_error_message(payload),
                payload=payload,
            )

        log.info("upstream_response", status=response.status_code, latency_ms=latency_ms)
        return payload

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


class UpstreamPool:
    """The process-wide pair of scoped clients.

    Created once at startup, reused for the life of the process and closed
    at shutdown.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._clients: dict[Scope, UpstreamClient] = {
            scope: UpstreamClient(scope, config, transport=transport) for scope in SCOPES
        }
        logger.info(
            "upstream_pool_initialized",
            base_url=config.base_url,
            max_connections=config.max_connections,
            timeout=config.timeout,
        )

    @property
    def content(self) -> UpstreamClient:
        return self._clients["content"]

    @property
    def user(self) -> UpstreamClient:
        return self._clients["user"]

    def scope(self, name: Scope) -> UpstreamClient:
        """Get the client for a credential scope."""
        try:
            return self._clients[name]
        except KeyError:
            raise ValueError(f"Unknown credential scope: {name!r}") from None

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
