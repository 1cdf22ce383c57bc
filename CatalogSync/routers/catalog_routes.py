"""
Catalogue Routes

Local-first search, identifier lookup and listing of stored catalogue entries.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from CatalogSync.dependencies import get_search_resolver
from CatalogSync.routers.base import BaseRouter, standard_error_handling
from CatalogSync.services.search_resolver import SearchResolver
from CatalogSync.utils.config import clamp_int, parse_boolean

router = APIRouter(tags=["Catalogue"])
base_router = BaseRouter()

DEFAULT_SEARCH_LIMIT = 20
DEFAULT_LIST_LIMIT = 15
MAX_LIST_LIMIT = 15


@router.get("/search")
@standard_error_handling
async def search_catalog(
    q: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    supplier: Optional[str] = Query(None),
    resolver: SearchResolver = Depends(get_search_resolver),
):
    """
    Search the local catalogue, falling back to the supplier on a miss.

    Supplier hits are saved before responding so the next identical search is
    served locally. Rate limiting yields an empty result with rate_limited set.
    """
    safe_limit = clamp_int(limit, DEFAULT_SEARCH_LIMIT)
    outcome = await resolver.resolve(q, limit=safe_limit, supplier=supplier)

    return base_router.build_success_response(
        data=outcome.to_dict(),
        message=f"Found {outcome.count} items ({outcome.source})",
    )


@router.get("/products")
@standard_error_handling
async def list_products(
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    resolver: SearchResolver = Depends(get_search_resolver),
):
    """Newest stored entries first"""
    safe_limit = clamp_int(limit, DEFAULT_LIST_LIMIT, maximum=MAX_LIST_LIMIT)
    safe_offset = clamp_int(offset, 0, minimum=0)

    page = await resolver.list_entries(safe_limit, safe_offset)

    return base_router.build_success_response(
        data=page,
        message=f"Retrieved {page['count']} of {page['total']} products",
        offset=safe_offset,
        limit=safe_limit,
        total=page["total"],
    )


@router.get("/products/{supplier_sku}")
@standard_error_handling
async def get_product(
    supplier_sku: str,
    refresh: Optional[str] = Query(None),
    resolver: SearchResolver = Depends(get_search_resolver),
):
    """Look up one product by supplier SKU; refresh forces a supplier fetch"""
    lookup = await resolver.lookup_by_identifier(supplier_sku, refresh=parse_boolean(refresh))

    return base_router.build_success_response(
        data=lookup.to_dict(),
        message=f"Product lookup ({lookup.source})",
    )
