# Services package initialization

from .catalog_store import CatalogStoreService
from .pagination import PaginationController, PaginationMode
from .result_cache import ResultCache
from .search_resolver import SearchResolver

__all__ = [
    "CatalogStoreService",
    "PaginationController",
    "PaginationMode",
    "ResultCache",
    "SearchResolver",
]
