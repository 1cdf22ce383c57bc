"""
Catalog Repository

Database operations for catalogue entries. Methods take an open session and
never commit; the calling service owns the transaction boundary.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select, func, or_, col

from CatalogSync.models.catalog_models import (
    CatalogEntryModel,
    SupplierCode,
    SupplierProduct,
    UpsertResult,
    make_supplier_key,
)

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogRepository:
    """Repository for the catalog_entries table"""

    def find_many(
        self, session: Session, query: str, supplier: Optional[SupplierCode] = None, limit: int = 20
    ) -> List[CatalogEntryModel]:
        """
        Exact SKU match or case-insensitive substring match on name.

        Args:
            session: Database session
            query: Search text (already trimmed)
            supplier: Optional supplier filter
            limit: Maximum rows to return
        """
        pattern = f"%{_escape_like(query)}%"
        statement = select(CatalogEntryModel).where(
            or_(
                CatalogEntryModel.supplier_sku == query,
                col(CatalogEntryModel.name).ilike(pattern, escape="\\"),
            )
        )
        if supplier is not None:
            statement = statement.where(CatalogEntryModel.supplier == supplier)

        return list(session.exec(statement.limit(limit)).all())

    def find_by_key(self, session: Session, supplier_key: str) -> Optional[CatalogEntryModel]:
        return session.exec(
            select(CatalogEntryModel).where(CatalogEntryModel.supplier_key == supplier_key)
        ).first()

    def find_by_sku(self, session: Session, supplier: SupplierCode, supplier_sku: str) -> Optional[CatalogEntryModel]:
        return session.exec(
            select(CatalogEntryModel).where(
                CatalogEntryModel.supplier == supplier,
                CatalogEntryModel.supplier_sku == supplier_sku,
            )
        ).first()

    def find_by_keys(self, session: Session, supplier_keys: Sequence[str], limit: Optional[int] = None) -> List[CatalogEntryModel]:
        """Fetch rows for the given keys, returned in the order the keys were given."""
        if not supplier_keys:
            return []

        rows = session.exec(
            select(CatalogEntryModel).where(col(CatalogEntryModel.supplier_key).in_(list(supplier_keys)))
        ).all()
        by_key = {row.supplier_key: row for row in rows}

        ordered = []
        for key in dict.fromkeys(supplier_keys):
            if key in by_key:
                ordered.append(by_key[key])
        return ordered[:limit] if limit is not None else ordered

    def upsert_many(self, session: Session, entries: Sequence[SupplierProduct]) -> UpsertResult:
        """
        Create-or-update by supplier_key inside the caller's transaction.

        Mutable fields (name, raw, source_updated_at) are overwritten on conflict.
        Repeated keys within one call collapse to the last occurrence.
        """
        latest: Dict[str, SupplierProduct] = {}
        for entry in entries:
            latest[make_supplier_key(entry.supplier, entry.supplier_sku)] = entry

        if not latest:
            return UpsertResult()

        existing = {
            row.supplier_key: row
            for row in session.exec(
                select(CatalogEntryModel).where(col(CatalogEntryModel.supplier_key).in_(list(latest.keys())))
            ).all()
        }

        now = datetime.now(timezone.utc)
        result = UpsertResult(total=len(latest))

        for supplier_key, entry in latest.items():
            raw = entry.raw if entry.raw is not None else entry.to_dict()
            row = existing.get(supplier_key)
            if row is None:
                row = CatalogEntryModel(
                    supplier=entry.supplier,
                    supplier_sku=entry.supplier_sku,
                    supplier_key=supplier_key,
                    name=entry.name,
                    raw=raw,
                    source_updated_at=now,
                    created_at=now,
                    updated_at=now,
                )
                result.created += 1
            else:
                row.name = entry.name
                row.raw = raw
                row.source_updated_at = now
                row.updated_at = now
                result.updated += 1
            session.add(row)

        session.flush()
        return result

    def count(self, session: Session) -> int:
        return session.exec(select(func.count(CatalogEntryModel.id))).one()

    def list_page(self, session: Session, limit: int, offset: int = 0) -> List[CatalogEntryModel]:
        """Newest entries first."""
        statement = (
            select(CatalogEntryModel)
            .order_by(col(CatalogEntryModel.created_at).desc(), col(CatalogEntryModel.id))
            .offset(offset)
            .limit(limit)
        )
        return list(session.exec(statement).all())
