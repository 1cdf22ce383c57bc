import pytest

from CatalogSync.exceptions import (
    CatalogSyncException,
    PersistenceError,
    SupplierConfigurationError,
    SupplierRateLimitError,
    SupplierUpstreamError,
    get_http_status_code,
)
from CatalogSync.models.catalog_models import SupplierCode, make_supplier_key, mock_catalogue


class TestSupplierCode:

    @pytest.mark.parametrize("value, expected", [
        ("farnell", SupplierCode.FARNELL),
        (" Element14 ", SupplierCode.ELEMENT14),
        ("NEWARK", SupplierCode.NEWARK),
        ("mock", SupplierCode.MOCK),
        ("digikey", None),
        ("", None),
        (None, None),
    ])
    def test_parse(self, value, expected):
        assert SupplierCode.parse(value) is expected

    def test_supplier_key(self):
        assert make_supplier_key(SupplierCode.FARNELL, "2842174") == "farnell:2842174"
        assert make_supplier_key("mock", "M-1") == "mock:M-1"


def test_mock_catalogue_is_deterministic():
    entries = mock_catalogue(3)

    assert [e.supplier_sku for e in entries] == ["MOCK-000001", "MOCK-000002", "MOCK-000003"]
    assert entries[0].name == "Mock product #1"
    assert entries[0].supplier_key == "mock:MOCK-000001"
    assert mock_catalogue(0) == []


@pytest.mark.parametrize("exception, status", [
    (SupplierRateLimitError("slow down", supplier_name="farnell", status=429), 429),
    (SupplierUpstreamError("bad gateway", supplier_name="farnell", status=503), 502),
    (PersistenceError("rolled back", operation="upsert_many"), 500),
    (SupplierConfigurationError("Missing SUPPLIER_FARNELL_API_KEY", supplier_name="farnell"), 500),
    (CatalogSyncException("generic"), 400),
    (RuntimeError("unexpected"), 500),
])
def test_http_status_mapping(exception, status):
    assert get_http_status_code(exception) == status


def test_exception_to_dict():
    error = SupplierRateLimitError("slow down", supplier_name="farnell", status=429, retry_after=2.0)

    assert error.to_dict() == {
        "error_code": "SUPPLIER_RATE_LIMITED",
        "message": "slow down",
        "details": {"supplier_name": "farnell", "status": 429, "retry_after": 2.0},
    }
