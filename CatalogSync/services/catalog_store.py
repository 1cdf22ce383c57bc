"""
Catalog Store Service

Transactional facade over CatalogRepository. Each public call runs in its own
session; upsert_many commits all of its entries atomically or none of them.
Database failures surface as PersistenceError.
"""

from contextlib import contextmanager
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from CatalogSync.exceptions import PersistenceError
from CatalogSync.models.catalog_models import (
    CatalogEntryModel,
    SupplierCode,
    SupplierProduct,
    UpsertResult,
)
from CatalogSync.repositories.catalog_repository import CatalogRepository
from CatalogSync.services.base_service import BaseService


class CatalogStoreService(BaseService):
    """Service for reading and writing catalogue entries"""

    def __init__(self, engine, repository: Optional[CatalogRepository] = None):
        super().__init__(engine)
        self.repository = repository or CatalogRepository()

    @contextmanager
    def _transaction(self, operation: str, batch_size: Optional[int] = None):
        try:
            with self.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Catalog store {operation} failed: {e}", operation=operation, batch_size=batch_size
            ) from e

    def find_many(self, query: str, supplier: Optional[SupplierCode] = None, limit: int = 20) -> List[CatalogEntryModel]:
        with self._transaction("find_many") as session:
            return self.repository.find_many(session, query, supplier, limit)

    def find_one(self, supplier_key: str) -> Optional[CatalogEntryModel]:
        with self._transaction("find_one") as session:
            return self.repository.find_by_key(session, supplier_key)

    def find_by_sku(self, supplier: SupplierCode, supplier_sku: str) -> Optional[CatalogEntryModel]:
        with self._transaction("find_by_sku") as session:
            return self.repository.find_by_sku(session, supplier, supplier_sku)

    def find_by_keys(self, supplier_keys: Sequence[str], limit: Optional[int] = None) -> List[CatalogEntryModel]:
        with self._transaction("find_by_keys") as session:
            return self.repository.find_by_keys(session, supplier_keys, limit)

    def upsert_many(self, entries: Sequence[SupplierProduct]) -> UpsertResult:
        """Create-or-update every entry in one transaction."""
        if not entries:
            return UpsertResult()

        with self._transaction("upsert_many", batch_size=len(entries)) as session:
            result = self.repository.upsert_many(session, entries)

        self.logger.debug(
            f"Upserted {result.total} entries (created={result.created}, updated={result.updated})"
        )
        return result

    def count(self) -> int:
        with self._transaction("count") as session:
            return self.repository.count(session)

    def list_page(self, limit: int, offset: int = 0) -> List[CatalogEntryModel]:
        with self._transaction("list_page") as session:
            return self.repository.list_page(session, limit, offset)
