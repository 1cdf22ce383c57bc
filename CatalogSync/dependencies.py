"""
FastAPI dependency functions for service injection.

The long-lived components (store, fetcher, cache, resolver, sync task) are
built once per application by build_catalog_services() and kept on
app.state.catalog; dependencies hand them to routes at request time. Tests
replace app.state.catalog (or override these dependencies) to inject fakes.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy.engine import Engine

from CatalogSync.database.db import build_engine
from CatalogSync.services.catalog_store import CatalogStoreService
from CatalogSync.services.result_cache import ResultCache
from CatalogSync.services.search_resolver import SearchResolver
from CatalogSync.services.sync_scheduler import CatalogSyncScheduler
from CatalogSync.suppliers.farnell import FarnellClient
from CatalogSync.tasks.catalog_sync_task import CatalogSyncTask
from CatalogSync.utils.config import CatalogSyncSettings


@dataclass
class CatalogServices:
    settings: CatalogSyncSettings
    engine: Engine
    store: CatalogStoreService
    fetcher: FarnellClient
    cache: ResultCache
    resolver: SearchResolver
    sync_task: CatalogSyncTask
    scheduler: CatalogSyncScheduler


def build_catalog_services(
    settings: CatalogSyncSettings,
    engine: Optional[Engine] = None,
    fetcher: Optional[FarnellClient] = None,
) -> CatalogServices:
    """Wire every component from one settings object."""
    engine = engine or build_engine(settings.database_url)
    store = CatalogStoreService(engine)
    fetcher = fetcher or FarnellClient(settings.farnell)
    cache = ResultCache(ttl_ms=settings.search_cache_ttl_ms, max_size=settings.search_cache_max_size)
    resolver = SearchResolver(store, fetcher, cache)
    sync_task = CatalogSyncTask(settings, fetcher, store)
    scheduler = CatalogSyncScheduler(sync_task, interval_minutes=settings.sync_interval_minutes)

    return CatalogServices(
        settings=settings,
        engine=engine,
        store=store,
        fetcher=fetcher,
        cache=cache,
        resolver=resolver,
        sync_task=sync_task,
        scheduler=scheduler,
    )


def get_catalog_services(request: Request) -> CatalogServices:
    return request.app.state.catalog


def get_search_resolver(request: Request) -> SearchResolver:
    return get_catalog_services(request).resolver


def get_sync_task(request: Request) -> CatalogSyncTask:
    return get_catalog_services(request).sync_task
