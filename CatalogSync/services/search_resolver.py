"""
Search-Time Resolver

Answers live lookups from the local catalogue first and only falls back to the
upstream supplier on a miss. Supplier results are persisted before responding,
so repeating a search is served locally. Rate limiting degrades a lookup to an
annotated empty result instead of failing the request.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from CatalogSync.exceptions import SupplierRateLimitError
from CatalogSync.models.catalog_models import CatalogEntryModel, SupplierCode, SupplierProduct
from CatalogSync.services.catalog_store import CatalogStoreService
from CatalogSync.services.result_cache import ResultCache, make_cache_key
from CatalogSync.suppliers.data_extraction import extract_attributes, extract_description
from CatalogSync.suppliers.farnell import FarnellClient
from CatalogSync.suppliers.search_terms import (
    DEFAULT_RESPONSE_GROUP,
    build_search_term,
    input_label,
    normalize_batch_body,
    resolve_paging,
    term_for_query,
)

logger = logging.getLogger(__name__)

SOURCE_LOCAL = "local"
SOURCE_SUPPLIER = SupplierCode.FARNELL.value
SOURCE_EMPTY = "empty"


@dataclass
class SearchOutcome:
    """Result of one catalogue search"""
    source: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    term: Optional[str] = None
    rate_limited: bool = False

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"source": self.source, "count": self.count, "items": self.items}
        if self.term is not None:
            data["term"] = self.term
        if self.rate_limited:
            data["rate_limited"] = True
        return data


@dataclass
class ProductLookup:
    """Result of a lookup by supplier SKU"""
    source: str
    item: Optional[Dict[str, Any]] = None
    term: Optional[str] = None
    rate_limited: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"source": self.source}
        if self.item is not None:
            raw = self.item.get("raw")
            data["item"] = self.item
            data["description"] = extract_description(raw)
            data["attributes"] = extract_attributes(raw)
        if self.term is not None:
            data["term"] = self.term
        if self.rate_limited:
            data["rate_limited"] = True
        return data


def _rows(entries: List[CatalogEntryModel]) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in entries]


class SearchResolver:
    """Local-first catalogue search with a supplier fallback and a result cache."""

    def __init__(self, store: CatalogStoreService, fetcher: FarnellClient, cache: ResultCache):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.store = store
        self.fetcher = fetcher
        self.cache = cache

    async def _fetch_degraded(self, term: str, number_of_results: int) -> Tuple[List[SupplierProduct], bool]:
        """Fetch one page; rate limiting yields ([], True) instead of raising."""
        try:
            entries = await self.fetcher.fetch_page(
                term, offset=0, number_of_results=number_of_results, response_group=DEFAULT_RESPONSE_GROUP
            )
            return entries, False
        except SupplierRateLimitError as e:
            self.logger.warning(f"Supplier rate limited for term={term!r}: {e}")
            return [], True

    async def resolve(self, query: Optional[str], limit: int = 20, supplier: Optional[str] = None) -> SearchOutcome:
        """
        Search the catalogue.

        Args:
            query: Free text, SKU, manufacturer part number or numeric order code
            limit: Maximum items returned (already clamped to >= 1)
            supplier: Optional supplier code filter; unknown codes yield an empty result

        Raises:
            SupplierUpstreamError: the supplier fallback failed for a reason other than rate limiting
            PersistenceError: saving supplier results failed
        """
        text = (query or "").strip()
        if not text:
            return SearchOutcome(source=SOURCE_EMPTY)

        supplier_code = SupplierCode.parse(supplier)
        if supplier and supplier.strip() and supplier_code is None:
            return SearchOutcome(source=SOURCE_EMPTY)

        cache_key = make_cache_key(text, limit, supplier_code.value if supplier_code else None)
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.debug(f"Search cache hit for {cache_key}")
            return cached

        local = await asyncio.to_thread(self.store.find_many, text, supplier_code, limit)
        if local:
            outcome = SearchOutcome(source=SOURCE_LOCAL, items=_rows(local))
            self.cache.set(cache_key, outcome)
            return outcome

        if supplier_code is not None and supplier_code != SupplierCode.FARNELL:
            return SearchOutcome(source=SOURCE_EMPTY)

        term = build_search_term(q=text) or f"any:{text}"
        fetched, rate_limited = await self._fetch_degraded(term, limit)

        if not fetched:
            outcome = SearchOutcome(source=SOURCE_SUPPLIER, term=term, rate_limited=rate_limited)
            self.cache.set(cache_key, outcome)
            return outcome

        await asyncio.to_thread(self.store.upsert_many, fetched)
        saved = await asyncio.to_thread(self.store.find_by_keys, [entry.supplier_key for entry in fetched], limit)

        outcome = SearchOutcome(source=SOURCE_SUPPLIER, items=_rows(saved), term=term, rate_limited=rate_limited)
        self.cache.set(cache_key, outcome)
        return outcome

    async def lookup_by_identifier(self, supplier_sku: Optional[str], refresh: bool = False) -> ProductLookup:
        """Find one entry by supplier SKU, fetching it upstream when missing or when refresh is set."""
        sku = (supplier_sku or "").strip()
        if not sku:
            return ProductLookup(source=SOURCE_EMPTY)

        entry = await asyncio.to_thread(self.store.find_by_sku, SupplierCode.FARNELL, sku)
        if entry and not refresh:
            return ProductLookup(source=SOURCE_LOCAL, item=entry.to_dict())

        term = build_search_term(id=sku) or f"id:{sku}"
        fetched, rate_limited = await self._fetch_degraded(term, 1)

        if fetched:
            await asyncio.to_thread(self.store.upsert_many, fetched)
            entry = await asyncio.to_thread(self.store.find_one, fetched[0].supplier_key)

        if not entry:
            return ProductLookup(source=SOURCE_EMPTY, term=term, rate_limited=rate_limited)

        return ProductLookup(source=SOURCE_SUPPLIER, item=entry.to_dict(), term=term, rate_limited=rate_limited)

    async def list_entries(self, limit: int, offset: int = 0) -> Dict[str, Any]:
        """Newest-first page of stored entries"""
        items = await asyncio.to_thread(self.store.list_page, limit, offset)
        total = await asyncio.to_thread(self.store.count)
        return {
            "count": len(items),
            "total": total,
            "limit": limit,
            "offset": offset,
            "items": _rows(items),
        }

    async def search_supplier(
        self,
        term: Optional[str] = None,
        q: Optional[str] = None,
        mpn: Optional[str] = None,
        id: Optional[str] = None,
        keyword: Optional[str] = None,
        offset: int = 0,
        number_of_results: int = 1,
        response_group: str = DEFAULT_RESPONSE_GROUP,
    ) -> Dict[str, Any]:
        """Direct supplier search without touching the store. Errors propagate."""
        resolved = build_search_term(term=term, q=q, mpn=mpn, id=id, keyword=keyword) or "any:raspberry pi"
        entries = await self.fetcher.fetch_page(
            resolved, offset=offset, number_of_results=number_of_results, response_group=response_group
        )
        return {"count": len(entries), "items": [entry.to_dict() for entry in entries], "term": resolved}

    async def batch_search(self, body: Any, save: bool = False) -> Dict[str, Any]:
        """
        Run several supplier searches in sequence, optionally persisting what they return.

        Queries without any usable field are reported with error "missing query".
        """
        queries, defaults = normalize_batch_body(body)
        results = []
        saved = created = updated = 0

        for query in queries:
            label = input_label(query)
            term = term_for_query(query)
            if not term:
                results.append({"input": label, "term": "", "count": 0, "items": [], "error": "missing query"})
                continue

            offset, number_of_results, response_group = resolve_paging(query, defaults)
            entries = await self.fetcher.fetch_page(
                term, offset=offset, number_of_results=number_of_results, response_group=response_group
            )

            if save and entries:
                upserted = await asyncio.to_thread(self.store.upsert_many, entries)
                saved += upserted.total
                created += upserted.created
                updated += upserted.updated

            results.append(
                {"input": label, "term": term, "count": len(entries), "items": [entry.to_dict() for entry in entries]}
            )

        response: Dict[str, Any] = {"count": len(results), "results": results}
        if save:
            response.update({"saved_count": saved, "created_count": created, "updated_count": updated})
        return response
