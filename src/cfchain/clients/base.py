from __future__ import annotations

from typing import Any

import httpx
import structlog
from circuitbreaker import CircuitBreakerError, circuit
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cfchain.core.errors import ClientV2Error, RetryableHTTPError

logger = structlog.get_logger()

READ_CIRCUIT = "cfchain_api_read"


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 502, 503, 504)


def error_from_response(response: httpx.Response) -> ClientV2Error:
    """Translate a v2 error body into a ``ClientV2Error``."""
    try:
        body = response.json() if response.content else {}
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return ClientV2Error(
        status_code=response.status_code,
        error_code=body.get("error_code") or f"HTTP-{response.status_code}",
        code=body.get("code"),
        description=body.get("description") or response.text or response.reason_phrase,
    )


class BaseHTTPClient:
    """
    Base HTTP client over a shared ``httpx.AsyncClient``.

    Reads are retried on transient failures behind a circuit breaker.
    Mutations are sent exactly once; retrying them is the caller's decision.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        """Override to provide custom headers."""
        return {"Accept": "application/json"}

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BaseHTTPClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Execute a single HTTP request and translate failures."""
        try:
            response = await self._http().request(
                method,
                path,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=self._headers(),
            )
        except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as exc:
            logger.warning("http_network_error", method=method, path=path, error=str(exc))
            raise RetryableHTTPError(str(exc)) from exc

        if is_retryable_status(response.status_code):
            logger.warning(
                "http_retryable_error",
                status=response.status_code,
                method=method,
                path=path,
            )
            raise RetryableHTTPError(f"HTTP {response.status_code}: {response.text}")

        if response.is_error:
            error = error_from_response(response)
            logger.error(
                "http_permanent_error",
                status=response.status_code,
                method=method,
                path=path,
                error=str(error),
            )
            raise error

        return response

    @circuit(
        failure_threshold=5,
        recovery_timeout=60,
        expected_exception=RetryableHTTPError,
        name=READ_CIRCUIT,
    )
    @retry(
        retry=retry_if_exception_type(RetryableHTTPError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=15),
        reraise=True,
    )
    async def _read(self, path: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        """GET with retry and circuit breaker; reads never mutate server state."""
        return await self._send("GET", path, params=params)

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        return response.json() if response.content else {}

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute GET request; an open circuit fails without sending it."""
        try:
            response = await self._read(path, params=params)
        except CircuitBreakerError as exc:
            logger.warning("http_circuit_open", method="GET", path=path)
            raise RetryableHTTPError(f"GET {path} not sent: {exc}") from exc
        return self._decode(response)

    async def post(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute POST request."""
        return self._decode(await self._send("POST", path, json=json, params=params))

    async def put(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute PUT request."""
        return self._decode(
            await self._send("PUT", path, json=json, params=params, data=data, files=files)
        )

    async def delete(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute DELETE request."""
        return self._decode(await self._send("DELETE", path, params=params))
