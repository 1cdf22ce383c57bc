"""
Route tests through FastAPI's TestClient with an in-memory catalogue and a fake supplier.
"""

import pytest
from fastapi.testclient import TestClient

from CatalogSync.dependencies import build_catalog_services
from CatalogSync.exceptions import SupplierRateLimitError, SupplierUpstreamError
from CatalogSync.main import create_app
from CatalogSync.models.catalog_models import mock_catalogue


@pytest.fixture
def services(sync_settings, memory_test_engine, fake_fetcher):
    return build_catalog_services(sync_settings, engine=memory_test_engine, fetcher=fake_fetcher)


@pytest.fixture
def client(services):
    app = create_app(services, start_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client


class TestSearchRoute:

    def test_supplier_fallback_then_local(self, client, fake_fetcher, services, make_product):
        fake_fetcher.fetch_page.return_value = [make_product("2842174", "Raspberry Pi 4")]

        response = client.get("/search", params={"q": "raspberry pi", "limit": "5"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["source"] == "farnell"
        assert body["data"]["count"] == 1
        assert body["data"]["term"] == "any:raspberry pi"

        services.cache.clear()
        again = client.get("/search", params={"q": "raspberry pi", "limit": "5"}).json()

        assert again["data"]["source"] == "local"
        assert fake_fetcher.fetch_page.await_count == 1

    def test_limit_clamped(self, client, fake_fetcher):
        client.get("/search", params={"q": "pi zero", "limit": "-3"})
        client.get("/search", params={"q": "pi 400", "limit": "abc"})

        limits = [call.kwargs["number_of_results"] for call in fake_fetcher.fetch_page.await_args_list]
        assert limits == [1, 20]

    def test_empty_query(self, client):
        body = client.get("/search").json()

        assert body["data"] == {"source": "empty", "count": 0, "items": []}

    def test_rate_limited(self, client, fake_fetcher):
        fake_fetcher.fetch_page.side_effect = SupplierRateLimitError("throttled", supplier_name="farnell", status=429)

        response = client.get("/search", params={"q": "raspberry pi"})

        assert response.status_code == 200
        assert response.json()["data"]["rate_limited"] is True

    def test_upstream_failure_is_502(self, client, fake_fetcher):
        fake_fetcher.fetch_page.side_effect = SupplierUpstreamError(
            "Farnell HTTP 500. oops", supplier_name="farnell", status=500
        )

        response = client.get("/search", params={"q": "raspberry pi"})

        assert response.status_code == 502
        body = response.json()
        assert body["status"] == "error"
        assert body["data"]["status"] == 500


class TestProductRoutes:

    def test_list_products(self, client, services):
        services.store.upsert_many(mock_catalogue(20))

        body = client.get("/products", params={"limit": "50", "offset": "2"}).json()

        assert body["data"]["limit"] == 15
        assert body["data"]["offset"] == 2
        assert body["data"]["count"] == 15
        assert body["data"]["total"] == 20
        assert body["total"] == 20

    def test_list_products_defaults(self, client):
        body = client.get("/products").json()

        assert (body["data"]["limit"], body["data"]["offset"]) == (15, 0)

    def test_get_product_local(self, client, services, make_product):
        services.store.upsert_many([make_product("2842174", "Raspberry Pi 4", attributes=[
            {"attributeLabel": "RAM", "attributeValue": "4", "attributeUnit": "GB"},
        ])])

        body = client.get("/products/2842174").json()

        assert body["data"]["source"] == "local"
        assert body["data"]["attributes"] == [{"label": "RAM", "value": "4", "unit": "GB"}]
        assert body["data"]["description"] == "Raspberry Pi 4"

    def test_get_product_refresh(self, client, services, fake_fetcher, make_product):
        services.store.upsert_many([make_product("1", "Old")])
        fake_fetcher.fetch_page.return_value = [make_product("1", "New")]

        body = client.get("/products/1", params={"refresh": "yes"}).json()

        assert body["data"]["source"] == "farnell"
        assert body["data"]["item"]["name"] == "New"
        assert fake_fetcher.fetch_page.await_args.args[0] == "id:1"


class TestAdminRoutes:

    def test_manual_sync(self, client, fake_fetcher, services):
        fake_fetcher.fetch_page.return_value = mock_catalogue(3)
        services.settings.pagination_mode = "item"

        body = client.post("/admin/sync/farnell").json()

        assert body["status"] == "success"
        assert body["data"]["status"] == "ok"
        assert body["data"]["run_status"] == "completed"
        assert body["data"]["unique"] == 3
        assert services.store.count() == 3

    def test_farnell_search_passthrough(self, client, fake_fetcher, services, make_product):
        fake_fetcher.fetch_page.return_value = [make_product("1")]

        body = client.get(
            "/admin/farnell/search", params={"mpn": "LM317", "offset": "-1", "responseGroup": "bogus"}
        ).json()

        assert body["data"]["term"] == "manuPartNum:LM317"
        assert body["data"]["count"] == 1
        kwargs = fake_fetcher.fetch_page.await_args.kwargs
        assert (kwargs["offset"], kwargs["number_of_results"], kwargs["response_group"]) == (0, 1, "large")
        assert services.store.count() == 0

    def test_batch_search_with_save(self, client, fake_fetcher, services, make_product):
        fake_fetcher.fetch_page.return_value = [make_product("1"), make_product("2")]

        body = client.post(
            "/admin/farnell/search/batch", params={"save": "true"}, json=["raspberry pi", {"id": "1"}]
        ).json()

        data = body["data"]
        assert data["count"] == 2
        assert [r["term"] for r in data["results"]] == ["any:raspberry pi", "id:1"]
        assert (data["saved_count"], data["created_count"], data["updated_count"]) == (4, 2, 2)
        assert services.store.count() == 2

    def test_batch_search_missing_query(self, client, fake_fetcher):
        body = client.post("/admin/farnell/search/batch", json={"queries": [{"responseGroup": "small"}]}).json()

        assert body["data"]["results"][0]["error"] == "missing query"
        fake_fetcher.fetch_page.assert_not_awaited()


def test_app_reports_package_version(services):
    import CatalogSync

    app = create_app(services, start_scheduler=False)

    assert app.version == CatalogSync.__version__ == "0.3.0"
    assert not hasattr(CatalogSync, "VERSION_INFO")
