"""
Main Test Configuration - Isolated Database Setup

Every test gets its own in-memory SQLite catalogue and never touches the
database named by DATABASE_URL. Nothing here performs real HTTP or real sleeps.
"""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from CatalogSync.database.db import build_engine, create_db_and_tables
from CatalogSync.models.catalog_models import SupplierCode, SupplierProduct
from CatalogSync.services.catalog_store import CatalogStoreService
from CatalogSync.suppliers.http_client import HTTPResponse
from CatalogSync.utils.config import CatalogSyncSettings, FarnellSettings


@pytest.fixture(scope="function")
def memory_test_engine():
    """Create an in-memory test database engine for fast unit tests."""
    test_engine = build_engine("sqlite://")
    create_db_and_tables(test_engine)

    yield test_engine

    test_engine.dispose()


@pytest.fixture
def catalog_store(memory_test_engine):
    return CatalogStoreService(memory_test_engine)


@pytest.fixture
def farnell_settings():
    return FarnellSettings(
        base_url="https://api.example.test/catalog/products",
        api_key="test-api-key",
        store_id="uk.farnell.com",
        version="1.4",
    )


@pytest.fixture
def sync_settings(farnell_settings):
    return CatalogSyncSettings(
        database_url="sqlite://",
        farnell=farnell_settings,
        sync_term="any:raspberry pi",
        batch_size=2,
        page_size=3,
        page_delay_ms=10,
        batch_delay_ms=5,
        target_total=6,
        max_pages=5,
        max_total=6,
        pagination_mode="auto",
        sync_enabled=False,
    )


@pytest.fixture
def no_sleep():
    """Awaitable stand-in for asyncio.sleep that records requested delays"""
    return AsyncMock(return_value=None)


@pytest.fixture
def fake_fetcher():
    """Stand-in for FarnellClient; set fetch_page.return_value / side_effect per test"""
    fetcher = MagicMock()
    fetcher.fetch_page = AsyncMock(return_value=[])
    fetcher.close = AsyncMock(return_value=None)
    return fetcher


def farnell_product(sku: str, name: Optional[str] = None, **extra: Any) -> SupplierProduct:
    raw = {"sku": sku, "displayName": name or f"Product {sku}", **extra}
    return SupplierProduct(supplier=SupplierCode.FARNELL, supplier_sku=sku, name=raw["displayName"], raw=raw)


def json_response(payload: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
    text = json.dumps(payload)
    return HTTPResponse(status=status, data=payload, headers=headers or {}, url="", duration_ms=1, text=text)


def text_response(text: str, status: int, headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
    return HTTPResponse(
        status=status,
        data=None,
        headers=headers or {},
        url="",
        duration_ms=1,
        text=text,
        json_error="Expecting value: line 1 column 1 (char 0)",
    )


def keyword_payload(products: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"keywordSearchReturn": {"numberOfResults": len(products), "products": products}}


class UpstreamResponses:
    """Factories for canned upstream responses"""
    json = staticmethod(json_response)
    text = staticmethod(text_response)
    keyword_payload = staticmethod(keyword_payload)


@pytest.fixture
def make_product():
    return farnell_product


@pytest.fixture
def responses():
    return UpstreamResponses
