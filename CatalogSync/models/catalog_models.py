"""
Catalogue Models

SQLModel table for persisted catalogue entries plus the transient shapes the
fetch and pagination layers pass around.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlmodel import SQLModel, Field, JSON, Column


class SupplierCode(str, Enum):
    """Closed set of supplier codes the store accepts"""
    FARNELL = "farnell"
    NEWARK = "newark"        # reserved, no upstream integration yet
    ELEMENT14 = "element14"  # reserved, no upstream integration yet
    MOCK = "mock"            # tests and local development

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SupplierCode"]:
        """Case-insensitive lookup; returns None for blank or unknown codes."""
        if not value:
            return None
        normalized = value.strip().lower()
        for code in cls:
            if code.value == normalized:
                return code
        return None


def make_supplier_key(supplier: SupplierCode, supplier_sku: str) -> str:
    """Globally unique upsert key: "<supplier>:<sku>"."""
    return f"{SupplierCode(supplier).value}:{supplier_sku}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogEntryModel(SQLModel, table=True):
    """A persisted catalogue entry. supplier_key is the only conflict key."""

    __tablename__ = "catalog_entries"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    supplier: SupplierCode = Field(nullable=False)
    supplier_sku: str = Field(max_length=255, nullable=False, index=True)
    supplier_key: str = Field(max_length=300, nullable=False, unique=True, index=True)
    name: str = Field(nullable=False)
    raw: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    source_updated_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False, index=True)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        supplier = self.supplier.value if isinstance(self.supplier, SupplierCode) else self.supplier
        return {
            "id": self.id,
            "supplier": supplier,
            "supplier_sku": self.supplier_sku,
            "supplier_key": self.supplier_key,
            "name": self.name,
            "raw": self.raw,
            "source_updated_at": self.source_updated_at.isoformat() if self.source_updated_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class SupplierProduct:
    """One catalogue entry candidate as parsed from an upstream response"""
    supplier: SupplierCode
    supplier_sku: str
    name: str
    raw: Optional[Dict[str, Any]] = None

    @property
    def supplier_key(self) -> str:
        return make_supplier_key(self.supplier, self.supplier_sku)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplier": self.supplier.value,
            "supplier_sku": self.supplier_sku,
            "supplier_key": self.supplier_key,
            "name": self.name,
            "raw": self.raw,
        }


@dataclass
class FetchPage:
    """Entries returned by one upstream call, tagged with the offset used to get them"""
    page_index: int
    offset: int
    entries: List[SupplierProduct] = field(default_factory=list)


@dataclass
class UpsertResult:
    """Outcome of one create-or-update transaction"""
    total: int = 0
    created: int = 0
    updated: int = 0


def mock_catalogue(total: int) -> List[SupplierProduct]:
    """Deterministic entries for the mock supplier code."""
    return [
        SupplierProduct(
            supplier=SupplierCode.MOCK,
            supplier_sku=f"MOCK-{idx + 1:06d}",
            name=f"Mock product #{idx + 1}",
        )
        for idx in range(max(0, total))
    ]
