from .catalog_models import (
    SupplierCode,
    CatalogEntryModel,
    SupplierProduct,
    FetchPage,
    UpsertResult,
    make_supplier_key,
    mock_catalogue,
)

__all__ = [
    "SupplierCode",
    "CatalogEntryModel",
    "SupplierProduct",
    "FetchPage",
    "UpsertResult",
    "make_supplier_key",
    "mock_catalogue",
]
