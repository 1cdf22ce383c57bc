"""
Unit tests for CatalogStoreService and CatalogRepository using a real in-memory database.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from CatalogSync.exceptions import PersistenceError
from CatalogSync.models.catalog_models import SupplierCode, SupplierProduct, mock_catalogue
from CatalogSync.services.catalog_store import CatalogStoreService


class TestUpsertMany:

    def test_same_entry_twice_yields_one_row(self, catalog_store, make_product):
        entry = make_product("1234567", "Raspberry Pi 4 Model B")

        first = catalog_store.upsert_many([entry])
        second = catalog_store.upsert_many([entry])

        assert (first.total, first.created, first.updated) == (1, 1, 0)
        assert (second.total, second.created, second.updated) == (1, 0, 1)
        assert catalog_store.count() == 1

    def test_second_write_overwrites_mutable_fields(self, catalog_store, make_product):
        catalog_store.upsert_many([make_product("1234567", "Old name", stock=1)])
        catalog_store.upsert_many([make_product("1234567", "New name", stock=9)])

        row = catalog_store.find_one("farnell:1234567")

        assert row is not None
        assert row.name == "New name"
        assert row.raw["stock"] == 9
        assert row.source_updated_at is not None

    def test_supplier_key_derived_from_supplier_and_sku(self, catalog_store, make_product):
        catalog_store.upsert_many([make_product("ABC-1")])

        row = catalog_store.find_by_sku(SupplierCode.FARNELL, "ABC-1")

        assert row.supplier_key == "farnell:ABC-1"
        assert row.supplier == SupplierCode.FARNELL

    def test_repeated_key_in_one_call_keeps_last(self, catalog_store, make_product):
        result = catalog_store.upsert_many([make_product("X", "first"), make_product("X", "second")])

        assert result.total == 1
        assert catalog_store.count() == 1
        assert catalog_store.find_one("farnell:X").name == "second"

    def test_same_sku_different_supplier_is_separate_row(self, catalog_store, make_product):
        catalog_store.upsert_many([
            make_product("S1"),
            SupplierProduct(supplier=SupplierCode.MOCK, supplier_sku="S1", name="Mock S1"),
        ])

        assert catalog_store.count() == 2

    def test_raw_defaults_to_entry_fields(self, catalog_store):
        catalog_store.upsert_many(mock_catalogue(1))

        row = catalog_store.find_one("mock:MOCK-000001")

        assert row.raw["supplier_sku"] == "MOCK-000001"
        assert row.raw["name"] == "Mock product #1"

    def test_empty_input_is_noop(self, catalog_store):
        result = catalog_store.upsert_many([])

        assert result.total == 0
        assert catalog_store.count() == 0

    def test_database_failure_raises_persistence_error(self, memory_test_engine, make_product):
        repository = MagicMock()
        repository.upsert_many.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
        store = CatalogStoreService(memory_test_engine, repository=repository)

        with pytest.raises(PersistenceError) as exc_info:
            store.upsert_many([make_product("1"), make_product("2")])

        assert exc_info.value.operation == "upsert_many"
        assert exc_info.value.batch_size == 2


class TestFindMany:

    @pytest.fixture(autouse=True)
    def seed(self, catalog_store, make_product):
        catalog_store.upsert_many([
            make_product("2842174", "Raspberry Pi 4 Model B 4GB"),
            make_product("3369503", "Raspberry Pi Zero W"),
            make_product("RPI-PICO", "Pico Microcontroller Board"),
        ])
        catalog_store.upsert_many([
            SupplierProduct(supplier=SupplierCode.MOCK, supplier_sku="M1", name="Mock Raspberry Pi"),
        ])

    def test_case_insensitive_name_substring(self, catalog_store):
        rows = catalog_store.find_many("raspberry PI", limit=20)

        assert {row.supplier_sku for row in rows} == {"2842174", "3369503", "M1"}

    def test_exact_sku_match(self, catalog_store):
        rows = catalog_store.find_many("RPI-PICO", limit=20)

        assert [row.supplier_sku for row in rows] == ["RPI-PICO"]

    def test_supplier_filter(self, catalog_store):
        rows = catalog_store.find_many("raspberry", supplier=SupplierCode.MOCK, limit=20)

        assert [row.supplier_sku for row in rows] == ["M1"]

    def test_limit(self, catalog_store):
        assert len(catalog_store.find_many("raspberry", limit=2)) == 2

    def test_like_wildcards_are_literal(self, catalog_store):
        assert catalog_store.find_many("%", limit=20) == []


class TestReads:

    def test_find_by_keys_preserves_key_order(self, catalog_store, make_product):
        catalog_store.upsert_many([make_product("A"), make_product("B"), make_product("C")])

        rows = catalog_store.find_by_keys(["farnell:C", "farnell:missing", "farnell:A"])

        assert [row.supplier_sku for row in rows] == ["C", "A"]

    def test_find_by_keys_applies_limit(self, catalog_store, make_product):
        catalog_store.upsert_many([make_product("A"), make_product("B"), make_product("C")])

        rows = catalog_store.find_by_keys(["farnell:A", "farnell:B", "farnell:C"], limit=2)

        assert [row.supplier_sku for row in rows] == ["A", "B"]

    def test_find_one_missing(self, catalog_store):
        assert catalog_store.find_one("farnell:nope") is None

    def test_list_page_newest_first(self, catalog_store, make_product):
        catalog_store.upsert_many([make_product("OLD")])
        catalog_store.upsert_many([make_product("NEW")])

        rows = catalog_store.list_page(limit=1)

        assert [row.supplier_sku for row in rows] == ["NEW"]
        assert [row.supplier_sku for row in catalog_store.list_page(limit=5, offset=1)] == ["OLD"]

    def test_count(self, catalog_store):
        catalog_store.upsert_many(mock_catalogue(4))

        assert catalog_store.count() == 4

    def test_to_dict_shape(self, catalog_store, make_product):
        catalog_store.upsert_many([make_product("A", "Alpha")])

        data = catalog_store.find_one("farnell:A").to_dict()

        assert data["supplier"] == "farnell"
        assert data["supplier_sku"] == "A"
        assert data["supplier_key"] == "farnell:A"
        assert data["name"] == "Alpha"
        assert data["raw"] == {"sku": "A", "displayName": "Alpha"}
        assert data["created_at"] is not None
