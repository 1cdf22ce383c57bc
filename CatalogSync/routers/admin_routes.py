"""
Admin Routes

Manual sync trigger and direct supplier search passthroughs.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from CatalogSync.dependencies import get_search_resolver, get_sync_task
from CatalogSync.routers.base import BaseRouter, standard_error_handling
from CatalogSync.services.search_resolver import SearchResolver
from CatalogSync.suppliers.search_terms import parse_response_group
from CatalogSync.tasks.catalog_sync_task import CatalogSyncTask
from CatalogSync.utils.config import clamp_int, parse_boolean

router = APIRouter(prefix="/admin", tags=["Admin"])
base_router = BaseRouter()


@router.post("/sync/farnell")
@standard_error_handling
async def sync_farnell(sync_task: CatalogSyncTask = Depends(get_sync_task)):
    """Run the Farnell catalogue sync now and report what it did"""
    result = await sync_task.run()

    if result.status == "skipped":
        message = "Farnell catalog sync skipped (already running)"
    else:
        message = f"Farnell catalog sync {result.status}"

    data = result.to_dict()
    data["status"] = "skipped" if result.status == "skipped" else "ok"
    data["run_status"] = result.status

    return base_router.build_success_response(data=data, message=message)


@router.get("/farnell/search")
@standard_error_handling
async def search_farnell(
    term: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    mpn: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    keyword: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    numberOfResults: Optional[str] = Query(None),
    responseGroup: Optional[str] = Query(None),
    resolver: SearchResolver = Depends(get_search_resolver),
):
    """Query the Farnell API directly; nothing is saved"""
    data = await resolver.search_supplier(
        term=term,
        q=q,
        mpn=mpn,
        id=id,
        keyword=keyword,
        offset=clamp_int(offset, 0, minimum=0),
        number_of_results=clamp_int(numberOfResults, 1),
        response_group=parse_response_group(responseGroup),
    )

    return base_router.build_success_response(data=data, message=f"Farnell returned {data['count']} items")


@router.post("/farnell/search/batch")
@standard_error_handling
async def search_farnell_batch(
    body: Any = Body(None),
    save: Optional[str] = Query(None),
    resolver: SearchResolver = Depends(get_search_resolver),
):
    """
    Run several Farnell searches in one call.

    The body is a list of queries (strings or objects with term/q/mpn/id/keyword),
    an object {"queries": [...], "offset", "numberOfResults", "responseGroup"},
    or a single query object. With save=true the results are upserted.
    """
    data = await resolver.batch_search(body, save=parse_boolean(save))

    return base_router.build_success_response(data=data, message=f"Ran {data['count']} Farnell searches")
