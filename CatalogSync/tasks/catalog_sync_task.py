"""
Catalog Sync Task

Periodic bulk import of the supplier catalogue. One run paginates the upstream
search for the configured term, deduplicates by SKU and upserts the result in
fixed-size batches, each batch in its own transaction.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from CatalogSync.exceptions import PersistenceError, SupplierUpstreamError
from CatalogSync.models.catalog_models import SupplierProduct
from CatalogSync.services.catalog_store import CatalogStoreService
from CatalogSync.services.pagination import PaginationController
from CatalogSync.suppliers.farnell import FarnellClient
from CatalogSync.suppliers.http_client import RetryConfig, SleepFunc, retry_async
from CatalogSync.suppliers.search_terms import DEFAULT_RESPONSE_GROUP
from CatalogSync.utils.config import CatalogSyncSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE_RETRY = RetryConfig(max_attempts=3, base_delay=0.8, max_delay=2.4, backoff_factor=1.0)


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into order-preserving batches; a non-positive size yields one batch."""
    if size <= 0:
        return [list(items)]
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


@dataclass
class SyncRunResult:
    """Summary of one sync run"""
    status: str
    fetched: int = 0
    unique: int = 0
    pages: int = 0
    batches_total: int = 0
    batches_committed: int = 0
    rate_limited: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CatalogSyncTask:
    """
    Single-flight coordinator for bulk catalogue sync.

    A trigger that arrives while a run is active is skipped, not queued. No
    error escapes run(): failures are logged and reported in the result.
    """

    def __init__(
        self,
        settings: CatalogSyncSettings,
        fetcher: FarnellClient,
        store: CatalogStoreService,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.settings = settings
        self.fetcher = fetcher
        self.store = store
        self._sleep = sleep
        self._running = False

    @property
    def name(self) -> str:
        return "Catalog Sync"

    @property
    def description(self) -> str:
        return "Import supplier catalogue pages into the local catalogue store"

    @property
    def is_running(self) -> bool:
        return self._running

    async def _fetch_page_with_retry(self, term: str, offset: int, take: int) -> List[SupplierProduct]:
        def log_retry(error: Exception, attempt: int, delay: float):
            self.logger.warning(
                f"Farnell page failed offset={offset} take={take} "
                f"attempt={attempt}/{PAGE_RETRY.max_attempts}: {error}"
            )

        return await retry_async(
            lambda: self.fetcher.fetch_page(
                term, offset=offset, number_of_results=take, response_group=DEFAULT_RESPONSE_GROUP
            ),
            PAGE_RETRY,
            should_retry=lambda e: isinstance(e, SupplierUpstreamError),
            wait_for=lambda e, attempt: PAGE_RETRY.base_delay * attempt,
            sleep=self._sleep,
            on_retry=log_retry,
        )

    async def _upsert_batches(self, entries: List[SupplierProduct], result: SyncRunResult):
        batches = chunk(entries, self.settings.batch_size)
        result.batches_total = len(batches)

        self.logger.info(
            f"CatalogSync upserting. supplier=farnell total={len(entries)} raw={result.fetched} "
            f"batchSize={self.settings.batch_size} batches={len(batches)}"
        )

        for index, batch in enumerate(batches):
            self.logger.info(f"Batch {index + 1}/{len(batches)}: {len(batch)} items")
            upserted = await asyncio.to_thread(self.store.upsert_many, batch)
            result.batches_committed += 1
            self.logger.debug(
                f"Upserted: {upserted.total} items ({batch[0].supplier_sku}..{batch[-1].supplier_sku})"
            )

            if index < len(batches) - 1:
                await self._sleep(self.settings.batch_delay_seconds)

    async def run(self) -> SyncRunResult:
        """Execute one sync run, or skip if one is already active."""
        if self._running:
            self.logger.warning("CatalogSync skipped (already running)")
            return SyncRunResult(status="skipped")

        self._running = True
        result = SyncRunResult(status="completed")
        settings = self.settings

        try:
            self.logger.info(
                f"CatalogSync started. term={settings.sync_term!r} target={settings.target_total} "
                f"maxPages={settings.max_pages} maxTotal={settings.max_total} mode={settings.pagination_mode}"
            )

            controller = PaginationController(
                fetch_page=self._fetch_page_with_retry,
                pagination_mode=settings.pagination_mode,
                page_delay=settings.page_delay_seconds,
                sleep=self._sleep,
            )
            accumulated = await controller.accumulate(
                settings.sync_term,
                target_total=settings.target_total,
                max_pages=settings.max_pages,
                max_total=settings.max_total,
                page_size=settings.page_size,
            )

            result.fetched = accumulated.fetched
            result.unique = len(accumulated.entries)
            result.pages = len(accumulated.pages)
            result.rate_limited = accumulated.rate_limited

            await self._upsert_batches(accumulated.entries, result)

            if accumulated.rate_limited:
                result.status = "partial"
            stop = accumulated.stop_reason.value if accumulated.stop_reason else None
            self.logger.info(
                f"CatalogSync finished. status={result.status} unique={result.unique} "
                f"batches={result.batches_committed}/{result.batches_total} stop={stop}"
            )
        except PersistenceError as e:
            result.status = "failed"
            result.error = str(e)
            self.logger.error(
                f"CatalogSync aborted after {result.batches_committed}/{result.batches_total} batches: {e}",
                exc_info=True,
            )
        except Exception as e:
            result.status = "failed"
            result.error = str(e)
            self.logger.error(f"CatalogSync failed: {e}", exc_info=True)
        finally:
            self._running = False

        return result
