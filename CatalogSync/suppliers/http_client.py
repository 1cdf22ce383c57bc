"""
HTTP Client for Supplier APIs

Provides the pieces every upstream integration shares:
- Session management with automatic cleanup
- Defensive JSON parsing into a standardized response wrapper
- A bounded-attempt retry combinator with an exponential backoff schedule
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

import aiohttp

from CatalogSync.exceptions import SupplierUpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class HTTPResponse:
    """Standardized HTTP response wrapper"""
    status: int
    data: Any
    headers: Dict[str, str]
    url: str
    duration_ms: int
    text: str = ""
    json_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup"""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass
class RetryConfig:
    """Configuration for retry behavior"""
    max_attempts: int = 5
    base_delay: float = 0.4  # Initial delay in seconds
    max_delay: float = 10.0  # Maximum delay in seconds
    backoff_factor: float = 2.0  # Exponential backoff multiplier

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given 1-based attempt failed."""
        exponent = max(0, attempt - 1)
        return min(self.base_delay * (self.backoff_factor ** exponent), self.max_delay)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    *,
    should_retry: Callable[[Exception], bool] = lambda e: True,
    wait_for: Optional[Callable[[Exception, int], Optional[float]]] = None,
    sleep: SleepFunc = asyncio.sleep,
    on_retry: Optional[Callable[[Exception, int, float], None]] = None,
) -> T:
    """
    Run operation until it succeeds or config.max_attempts is reached.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        config: Attempt ceiling and backoff schedule
        should_retry: Return False to re-raise an error immediately
        wait_for: Optional override of the delay for a given error and attempt
            (return None to use the backoff schedule)
        sleep: Awaitable sleep, injectable for tests
        on_retry: Called with (error, attempt, delay) before each wait

    Raises:
        The last error raised by operation once attempts are exhausted.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if attempt >= config.max_attempts or not should_retry(e):
                raise

            delay = wait_for(e, attempt) if wait_for else None
            if delay is None:
                delay = config.delay_for(attempt)

            if on_retry:
                on_retry(e, attempt, delay)
            await sleep(delay)


class SupplierHTTPClient:
    """
    HTTP client for one supplier API.

    Issues exactly one request per call; retry policy belongs to the caller so
    that status interpretation (rate limiting, error bodies) stays with the
    supplier integration. Transport failures are raised as SupplierUpstreamError.
    """

    def __init__(
        self,
        supplier_name: str,
        default_timeout: int = 30,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        self.supplier_name = supplier_name
        self.default_timeout = default_timeout
        self.default_headers = default_headers or {}

        self._session: Optional[aiohttp.ClientSession] = None

        logger.info(f"Initialized HTTP client for supplier: {supplier_name}")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session with proper configuration"""
        if not self._session or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.default_timeout, sock_connect=10)
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30, enable_cleanup_closed=True)

            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers=self.default_headers,
            )

        return self._session

    @staticmethod
    def _safe_json_parse(response_text: str) -> Tuple[Any, Optional[str]]:
        """Parse a JSON body; returns (data, error message or None)."""
        if not response_text:
            return None, "empty body"
        try:
            return json.loads(response_text), None
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            return None, str(e)

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPResponse:
        """Make a single GET request"""
        request_headers = {**self.default_headers}
        if headers:
            request_headers.update(headers)

        start_time = time.time()
        try:
            session = await self._get_session()
            async with session.get(url, params=params, headers=request_headers) as response:
                response_text = await response.text()
                duration_ms = int((time.time() - start_time) * 1000)
                data, json_error = self._safe_json_parse(response_text)

                return HTTPResponse(
                    status=response.status,
                    data=data,
                    headers=dict(response.headers),
                    url=str(response.url),
                    duration_ms=duration_ms,
                    text=response_text,
                    json_error=json_error,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            message = str(e) or type(e).__name__
            raise SupplierUpstreamError(
                f"{self.supplier_name} request failed: {message}",
                supplier_name=self.supplier_name,
            ) from e

    # ========== Cleanup ==========

    async def close(self):
        """Close HTTP session and cleanup resources"""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.info(f"Closed HTTP session for supplier: {self.supplier_name}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
