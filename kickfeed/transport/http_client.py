"""
HTTP transport layer for the remote news API.

Provides:
- RetryConfig: retry budget and fixed delays for the two retryable causes
- TransportClient: async client that builds requests against a base URL,
  classifies responses into the TransportError taxonomy and decodes
  successful bodies into typed models

The retry budget is per logical call and shared between rate-limited
responses (429) and transport-level failures (DNS, reset, timeout).
"""

import asyncio
import json
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from kickfeed.config.settings import get_settings
from kickfeed.observability.metrics import get_metrics
from kickfeed.transport.errors import (
    AuthError,
    DecodingError,
    InvalidRequestError,
    NetworkError,
    RateLimitError,
    ServerError,
    TransportError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

TokenProvider = Callable[[], Awaitable[str | None]]
UnauthorizedHook = Callable[[], Awaitable[None]]


class HTTPMethod(str, Enum):
    """Supported HTTP methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass
class RetryConfig:
    """
    Retry policy for remote API calls.

    - 429 responses are retried after a fixed ``rate_limit_delay``
    - transport failures are retried immediately, or after
      ``connectivity_wait`` when waiting for the network is enabled
    - everything else fails on the first attempt
    """

    max_retries: int = 3
    rate_limit_delay: float = 1.0
    connectivity_wait: float = 0.0

    def is_retryable_status(self, status_code: int) -> bool:
        """Only 429 Too Many Requests is retried at the status level."""
        return status_code == 429

    def is_retryable_exception(self, exc: BaseException) -> bool:
        """
        Check if an exception should trigger a retry.

        Retryable exceptions are httpx transport failures (connect, read,
        timeouts, protocol resets) and the total-resource timeout. Malformed
        URLs are programmer errors and never retried.
        """
        if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
            return False
        return isinstance(exc, (httpx.TransportError, TimeoutError))


@lru_cache(maxsize=None)
def _adapter_for(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _endpoint_label(path: str) -> str:
    """Collapse a request path to its first segment for metric labels."""
    head = path.strip("/").split("/", 1)[0]
    return f"/{head}"


class TransportClient:
    """
    Async client for the remote news API.

    Features:
    - Per-attempt timeout plus a total per-attempt resource timeout
    - Shared connection pool (one httpx.AsyncClient per TransportClient)
    - Fixed-delay retry on 429, immediate retry on transport failures
    - Typed decoding of JSON bodies through pydantic
    - Optional bearer-token provider and 401 hook

    Example:
        async with TransportClient() as client:
            page = await client.request("/news", Page, params={"limit": 20})
    """

    def __init__(
        self,
        base_url: str | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float | None = None,
        resource_timeout: float | None = None,
        token_provider: TokenProvider | None = None,
        on_unauthorized: UnauthorizedHook | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize transport client.

        Args:
            base_url: API root; paths passed to request() are appended to it.
            retry_config: Retry behaviour. Built from settings if None.
            timeout: Per-attempt connect/read/write timeout in seconds.
            resource_timeout: Upper bound for a whole attempt in seconds.
            token_provider: Coroutine returning a bearer token (or None).
            on_unauthorized: Coroutine invoked on 401 before AuthError is raised.
            transport: Optional httpx transport (used to inject mocks).
        """
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.retry_config = retry_config or RetryConfig(
            max_retries=settings.max_http_retries,
            rate_limit_delay=settings.rate_limit_retry_delay_seconds,
            connectivity_wait=settings.connectivity_wait_seconds,
        )
        self.timeout = settings.request_timeout_seconds if timeout is None else timeout
        self.resource_timeout = (
            settings.resource_timeout_seconds if resource_timeout is None else resource_timeout
        )
        if self.timeout <= 0 or self.resource_timeout <= 0:
            raise ValueError("timeouts must be positive")
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TransportClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        path: str,
        response_type: type[T] | Any,
        params: dict[str, Any] | None = None,
        max_retries: int | None = None,
    ) -> T:
        """Perform a GET request and decode the body into ``response_type``."""
        return await self.request(
            path,
            response_type,
            method=HTTPMethod.GET,
            params=params,
            max_retries=max_retries,
        )

    async def request(
        self,
        path: str,
        response_type: type[T] | Any,
        method: HTTPMethod = HTTPMethod.GET,
        params: dict[str, Any] | None = None,
        max_retries: int | None = None,
    ) -> T:
        """
        Execute a request with the retry policy and decode the response.

        For GET, ``params`` become the query string; for other methods they
        are sent as a JSON body.

        Args:
            path: Path relative to the base URL, starting with "/"
            response_type: Type the JSON body is validated into
            method: HTTP method
            params: Query parameters or JSON body
            max_retries: Override of the configured retry budget

        Returns:
            Decoded response body

        Raises:
            InvalidRequestError: If the request cannot be built
            AuthError: On 401
            RateLimitError: On 429 after retries exhausted
            ServerError: On any other non-2xx status
            NetworkError: On transport failures after retries exhausted
            DecodingError: If the body does not match ``response_type``
        """
        endpoint = _endpoint_label(path)
        started = time.monotonic()
        metrics = get_metrics()

        try:
            result = await self._request_with_retry(
                path,
                response_type,
                method,
                params,
                self.retry_config.max_retries if max_retries is None else max_retries,
            )
        except TransportError as e:
            metrics.record_request(endpoint, type(e).__name__, time.monotonic() - started)
            raise

        metrics.record_request(endpoint, "success", time.monotonic() - started)
        return result

    def _build_request(
        self,
        path: str,
        method: HTTPMethod,
        params: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """Validate inputs and build keyword arguments for httpx."""
        if not isinstance(path, str) or not path.startswith("/"):
            logger.error("Invalid request path", path=path)
            raise InvalidRequestError(f"Invalid request path: {path!r}")

        try:
            method = HTTPMethod(method)
        except ValueError as e:
            logger.error("Unsupported HTTP method", method=method)
            raise InvalidRequestError(f"Unsupported HTTP method: {method}") from e

        kwargs: dict[str, Any] = {"method": method.value, "url": path}
        if method is HTTPMethod.GET:
            if params:
                kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        elif params is not None:
            try:
                kwargs["content"] = json.dumps(params).encode("utf-8")
            except (TypeError, ValueError) as e:
                logger.error("Request body is not JSON serialisable", path=path)
                raise InvalidRequestError(f"Invalid request body for {path}: {e}") from e
        return kwargs

    async def _request_with_retry(
        self,
        path: str,
        response_type: Any,
        method: HTTPMethod,
        params: dict[str, Any] | None,
        max_retries: int,
    ) -> Any:
        request_kwargs = self._build_request(path, method, params)
        client = self._ensure_client()
        metrics = get_metrics()
        attempt = 0

        while True:
            headers = {}
            if self._token_provider is not None:
                token = await self._token_provider()
                if token:
                    headers["Authorization"] = f"Bearer {token}"

            try:
                response = await asyncio.wait_for(
                    client.request(**request_kwargs, headers=headers or None),
                    timeout=self.resource_timeout,
                )
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
                logger.error("Malformed request URL", path=path, error=str(e))
                raise InvalidRequestError(f"Malformed URL for {path}: {e}") from e
            except (httpx.TransportError, TimeoutError) as e:
                if self.retry_config.is_retryable_exception(e) and attempt < max_retries:
                    attempt += 1
                    metrics.record_retry("network")
                    logger.warning(
                        "Retryable transport error",
                        path=path,
                        error=type(e).__name__,
                        attempt=f"{attempt}/{max_retries}",
                    )
                    if self.retry_config.connectivity_wait > 0:
                        await asyncio.sleep(self.retry_config.connectivity_wait)
                    continue

                raise NetworkError(
                    f"Request to {path} failed after {attempt + 1} attempts: "
                    f"{type(e).__name__}: {e}"
                ) from e

            status = response.status_code

            if 200 <= status < 300:
                return self._decode(path, response, response_type)

            if status == 401:
                if self._on_unauthorized is not None:
                    await self._on_unauthorized()
                raise AuthError(
                    f"Unauthorized request to {path}",
                    status_code=status,
                    response_body=response.text,
                )

            if self.retry_config.is_retryable_status(status):
                if attempt < max_retries:
                    attempt += 1
                    metrics.record_retry("rate_limited")
                    logger.warning(
                        "Rate limited, retrying",
                        path=path,
                        attempt=f"{attempt}/{max_retries}",
                        delay=self.retry_config.rate_limit_delay,
                    )
                    await asyncio.sleep(self.retry_config.rate_limit_delay)
                    continue

                raise RateLimitError(
                    f"Rate limit exceeded for {path} after {attempt + 1} attempts",
                    status_code=status,
                    response_body=response.text,
                )

            raise ServerError(
                f"Request to {path} failed with status {status}",
                status_code=status,
                response_body=response.text,
            )

    def _decode(self, path: str, response: httpx.Response, response_type: Any) -> Any:
        try:
            return _adapter_for(response_type).validate_json(response.content)
        except ValidationError as e:
            raise DecodingError(
                f"Response from {path} does not match {response_type}: "
                f"{e.error_count()} validation errors",
                status_code=response.status_code,
                response_body=response.text,
            ) from e
