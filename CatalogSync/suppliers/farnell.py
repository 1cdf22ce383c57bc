"""
Farnell Supplier Client

Fetches one page of product search results from the Farnell (element14)
product search API, retrying transient failures and waiting out rate limits.

The response envelope is not stable: the product container sits under one of
several keys depending on the search type, and "products" may be a list, an
object wrapping a list, or an object wrapping a single product. Parsing tries
each known shape in turn; upstream schema drift is expected.
"""

import asyncio
import json
import logging
import math
from typing import Any, Dict, List, Optional

from CatalogSync.exceptions import (
    SupplierConfigurationError,
    SupplierRateLimitError,
    SupplierUpstreamError,
)
from CatalogSync.models.catalog_models import SupplierCode, SupplierProduct
from CatalogSync.suppliers.data_extraction import is_record, pick_string
from CatalogSync.suppliers.http_client import RetryConfig, SleepFunc, SupplierHTTPClient, retry_async
from CatalogSync.suppliers.search_terms import DEFAULT_RESPONSE_GROUP
from CatalogSync.utils.config import FarnellSettings

logger = logging.getLogger(__name__)

SUPPLIER_NAME = SupplierCode.FARNELL.value

CONTAINER_KEYS = (
    "keywordSearchReturn",
    "manufacturerPartNumberSearchReturn",
    "manufacturerPartNumberReturn",
    "premierFarnellPartNumberReturn",
)
SKU_FIELDS = ("sku", "id", "productCode")
NAME_FIELDS = ("displayName", "name")
ERROR_FIELDS = ("error", "errors", "message", "messages", "fault", "status")
RATE_LIMIT_PHRASES = ("rate limit", "queries per second")

RATE_LIMIT_403_MAX_WAIT = 15.0


def is_rate_limit_message(body: Optional[str]) -> bool:
    lowered = (body or "").lower()
    return any(phrase in lowered for phrase in RATE_LIMIT_PHRASES)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in seconds; HTTP-date values are not supported and yield None."""
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def _sample(value: Any, limit: int) -> str:
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = repr(value)
    return text[:limit]


def find_container(payload: Any) -> Dict[str, Any]:
    """Locate the object that holds "products"."""
    if not is_record(payload):
        raise SupplierUpstreamError(
            f"Farnell: missing container (topLevel={type(payload).__name__})",
            supplier_name=SUPPLIER_NAME,
        )

    for key in CONTAINER_KEYS:
        candidate = payload.get(key)
        if is_record(candidate):
            return candidate
    return payload


def parse_products(payload: Any, offset: int = 0, number_of_results: int = 0) -> List[SupplierProduct]:
    """
    Turn a search response into catalogue entries.

    A container without "products" is a valid zero-match response. Products
    lacking an identifier or a display name are dropped.
    """
    container = find_container(payload)

    products_raw = container.get("products")
    if products_raw is None:
        logger.warning(
            f"Farnell missing products. offset={offset} numberOfResults={number_of_results} "
            f"total={_sample(container.get('numberOfResults'), 100)} containerKeys={','.join(container.keys())}"
        )
        extra = next((container[key] for key in ERROR_FIELDS if container.get(key)), None)
        logger.warning(f"Farnell missing products extra={_sample(extra, 800) if extra else 'n/a'}")
        logger.debug(f"Farnell missing products container sample: {_sample(container, 2000)}")
        return []

    if isinstance(products_raw, list):
        items = products_raw
    elif is_record(products_raw):
        product = products_raw.get("product")
        if isinstance(product, list):
            items = product
        elif product:
            items = [product]
        else:
            items = []
    else:
        items = []

    entries = []
    for item in items:
        if not is_record(item):
            continue
        sku = pick_string(item, SKU_FIELDS)
        name = pick_string(item, NAME_FIELDS)
        if not sku or not name:
            continue
        entries.append(SupplierProduct(supplier=SupplierCode.FARNELL, supplier_sku=sku, name=name, raw=item))

    return entries


class FarnellClient:
    """
    Resilient fetcher for the Farnell product search API.

    429 responses wait for Retry-After (or the backoff delay); 403 responses
    whose body mentions rate limiting are treated the same way. Both raise
    SupplierRateLimitError once attempts run out. Other failures are retried on
    the same schedule and end in SupplierUpstreamError.
    """

    def __init__(
        self,
        settings: FarnellSettings,
        http_client: Optional[SupplierHTTPClient] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.settings = settings
        self.retry_config = retry_config or RetryConfig()
        self._http_client = http_client
        self._sleep = sleep

    def _get_http_client(self) -> SupplierHTTPClient:
        if not self._http_client:
            self._http_client = SupplierHTTPClient(
                supplier_name=SUPPLIER_NAME,
                default_timeout=self.settings.timeout_seconds,
                default_headers={"Accept": "application/json"},
            )
        return self._http_client

    def _must_get(self, value: str, env_name: str) -> str:
        value = (value or "").strip()
        if not value:
            raise SupplierConfigurationError(
                f"Missing {env_name}", supplier_name=SUPPLIER_NAME, config_field=env_name
            )
        return value

    def build_params(
        self, term: str, offset: int, number_of_results: int, response_group: str
    ) -> Dict[str, str]:
        """Query parameters for one search request"""
        store_id = self._must_get(self.settings.store_id, "SUPPLIER_FARNELL_STORE_ID")
        api_key = self._must_get(self.settings.api_key, "SUPPLIER_FARNELL_API_KEY")

        params: Dict[str, str] = {}
        version = (self.settings.version or "").strip()
        if version:
            params["versionNumber"] = version
        params["term"] = term
        params["storeInfo.id"] = store_id
        params["resultsSettings.offset"] = str(offset)
        params["resultsSettings.numberOfResults"] = str(number_of_results)
        params["resultsSettings.responseGroup"] = response_group

        result_filter = (self.settings.result_filter or "").strip()
        if result_filter:
            params["resultsSettings.refinements.filters"] = result_filter

        params["callInfo.responseDataFormat"] = "json"
        params["callInfo.omitXmlSchema"] = "true"
        params["callInfo.apiKey"] = api_key
        return params

    async def fetch_page(
        self,
        term: str,
        offset: int = 0,
        number_of_results: int = 50,
        response_group: str = DEFAULT_RESPONSE_GROUP,
    ) -> List[SupplierProduct]:
        """Fetch and parse one page of search results."""
        url = self._must_get(self.settings.base_url, "SUPPLIER_FARNELL_BASE_URL")
        params = self.build_params(term, offset, number_of_results, response_group)

        logger.debug(
            f"Farnell GET term={term!r} offset={offset} numberOfResults={number_of_results} "
            f"responseGroup={response_group}"
        )

        payload = await self._fetch_json_with_retry(url, params)
        return parse_products(payload, offset, number_of_results)

    async def _request_once(self, url: str, params: Dict[str, str]) -> Any:
        response = await self._get_http_client().get(url, params=params)

        if response.status == 429:
            raise SupplierRateLimitError(
                "Farnell HTTP 429 rate limit",
                supplier_name=SUPPLIER_NAME,
                status=429,
                retry_after=parse_retry_after(response.header("Retry-After")),
            )

        if not response.success:
            excerpt = (response.text or "")[:300]
            if response.status == 403 and is_rate_limit_message(response.text):
                raise SupplierRateLimitError(
                    f"Farnell HTTP 403. {excerpt}", supplier_name=SUPPLIER_NAME, status=403
                )
            raise SupplierUpstreamError(
                f"Farnell HTTP {response.status}. {excerpt}",
                supplier_name=SUPPLIER_NAME,
                status=response.status,
                body_excerpt=excerpt,
            )

        if response.json_error is not None:
            raise SupplierUpstreamError(
                f"Farnell returned an unreadable body: {response.json_error}",
                supplier_name=SUPPLIER_NAME,
                status=response.status,
            )

        return response.data

    def _wait_for(self, error: Exception, attempt: int) -> Optional[float]:
        if not isinstance(error, SupplierRateLimitError):
            return None
        if error.status == 403:
            return min(self.retry_config.delay_for(attempt) * 2, RATE_LIMIT_403_MAX_WAIT)
        if error.retry_after is not None:
            return error.retry_after
        return None

    def _log_retry(self, error: Exception, attempt: int, delay: float):
        max_attempts = self.retry_config.max_attempts
        if isinstance(error, SupplierRateLimitError):
            logger.warning(
                f"Farnell {error.status} rate-limit. wait={delay:.2f}s attempt={attempt}/{max_attempts}"
            )
        else:
            logger.warning(f"Farnell request failed attempt={attempt}/{max_attempts}: {error}")

    async def _fetch_json_with_retry(self, url: str, params: Dict[str, str]) -> Any:
        return await retry_async(
            lambda: self._request_once(url, params),
            self.retry_config,
            should_retry=lambda e: isinstance(e, (SupplierRateLimitError, SupplierUpstreamError)),
            wait_for=self._wait_for,
            sleep=self._sleep,
            on_retry=self._log_retry,
        )

    async def close(self):
        """Clean up HTTP client resources"""
        if self._http_client:
            await self._http_client.close()
            self._http_client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
