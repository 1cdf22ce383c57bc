"""
Pagination Controller

Drives repeated single-page fetches until a run has accumulated enough unique
catalogue entries. The upstream API does not document whether its offset
parameter counts items or pages, so in "auto" mode the controller starts with
item offsets and switches to page offsets the first time a later page comes
back empty.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set

from CatalogSync.exceptions import SupplierRateLimitError
from CatalogSync.models.catalog_models import FetchPage, SupplierProduct
from CatalogSync.suppliers.http_client import SleepFunc

logger = logging.getLogger(__name__)

# (term, offset, number_of_results) -> entries
PageFetcher = Callable[[str, int, int], Awaitable[List[SupplierProduct]]]

DUPLICATE_STREAK_LIMIT = 2


class PaginationMode(str, Enum):
    ITEM = "item"
    PAGE = "page"


class StopReason(str, Enum):
    TARGET_REACHED = "target_reached"
    MAX_PAGES = "max_pages"
    MAX_TOTAL = "max_total"
    EMPTY_PAGE = "empty_page"
    DUPLICATE_PAGES = "duplicate_pages"
    RATE_LIMITED = "rate_limited"


@dataclass
class AccumulationResult:
    """Unique entries collected by one run, in first-seen order"""
    entries: List[SupplierProduct] = field(default_factory=list)
    pages: List[FetchPage] = field(default_factory=list)
    fetched: int = 0
    mode: PaginationMode = PaginationMode.ITEM
    stop_reason: Optional[StopReason] = None
    rate_limited: bool = False


class PaginationController:
    """
    Accumulates unique-by-SKU entries across upstream pages.

    Termination is always graceful: target reached, page or total budget
    exhausted, an empty page, or two consecutive fully-duplicate pages. A page
    that adds nothing and repeats the page before it closes such a pair on its
    own. SupplierRateLimitError ends the run with what was collected so far;
    any other fetch error propagates.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        pagination_mode: str = "auto",
        page_delay: float = 0.25,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.fetch_page = fetch_page
        self.pagination_mode = pagination_mode
        self.page_delay = page_delay
        self._sleep = sleep

    @property
    def auto_detect(self) -> bool:
        return self.pagination_mode == "auto"

    def _initial_mode(self) -> PaginationMode:
        if self.pagination_mode == PaginationMode.PAGE.value:
            return PaginationMode.PAGE
        return PaginationMode.ITEM

    @staticmethod
    def offset_for(mode: PaginationMode, page_index: int, page_size: int) -> int:
        if mode == PaginationMode.PAGE:
            return page_index
        return page_index * page_size

    def _check_budget(
        self, collected: int, page_index: int, target_total: int, max_pages: int, max_total: int
    ) -> Optional[StopReason]:
        if collected >= target_total:
            return StopReason.TARGET_REACHED
        if page_index >= max_pages:
            self.logger.warning(f"Reached maxPages={max_pages}. Stopping fetch.")
            return StopReason.MAX_PAGES
        if collected >= max_total:
            self.logger.warning(f"Reached maxTotal={max_total}. Stopping fetch.")
            return StopReason.MAX_TOTAL
        if min(target_total, max_total) - collected <= 0:
            return StopReason.MAX_TOTAL
        return None

    async def accumulate(
        self,
        term: str,
        target_total: int,
        max_pages: int,
        max_total: int,
        page_size: int,
    ) -> AccumulationResult:
        """
        Fetch pages until a termination condition holds.

        Returns at most min(target_total, max_total) entries, no two sharing a
        supplier SKU.
        """
        result = AccumulationResult(mode=self._initial_mode())
        unique: Dict[str, SupplierProduct] = {}
        cap = min(target_total, max_total)

        page_index = 0
        duplicate_streak = 0
        previous_skus: Set[str] = set()
        switched = False

        while True:
            stop = self._check_budget(len(unique), page_index, target_total, max_pages, max_total)
            if stop:
                result.stop_reason = stop
                break

            take = min(page_size, cap - len(unique))
            offset = self.offset_for(result.mode, page_index, page_size)

            try:
                entries = await self.fetch_page(term, offset, take)
            except SupplierRateLimitError as e:
                self.logger.warning(
                    f"Rate limited at pageIndex={page_index} offset={offset}; keeping {len(unique)} entries: {e}"
                )
                result.rate_limited = True
                result.stop_reason = StopReason.RATE_LIMITED
                break

            result.fetched += len(entries)
            result.pages.append(FetchPage(page_index=page_index, offset=offset, entries=entries))

            self.logger.info(
                f"Fetched pageIndex={page_index} mode={result.mode.value} offset={offset} got={len(entries)} "
                f"uniqueSkus={len({e.supplier_sku for e in entries})} "
                f"first={entries[0].supplier_sku if entries else None} "
                f"last={entries[-1].supplier_sku if entries else None}"
            )

            if not entries:
                if (
                    self.auto_detect
                    and not switched
                    and result.mode == PaginationMode.ITEM
                    and page_index > 0
                ):
                    self.logger.warning(
                        f"Empty page at pageIndex={page_index} with item offsets; switching to page offsets"
                    )
                    result.mode = PaginationMode.PAGE
                    switched = True
                    continue
                result.stop_reason = StopReason.EMPTY_PAGE
                break

            added = 0
            for entry in entries:
                if entry.supplier_sku in unique:
                    continue
                if len(unique) >= cap:
                    break
                unique[entry.supplier_sku] = entry
                added += 1

            page_skus = {e.supplier_sku for e in entries}
            if added:
                duplicate_streak = 0
            elif page_skus == previous_skus:
                # upstream is repeating itself; the earlier copy counts too
                duplicate_streak = max(duplicate_streak, 1) + 1
            else:
                duplicate_streak += 1
            previous_skus = page_skus

            if duplicate_streak >= DUPLICATE_STREAK_LIMIT:
                self.logger.warning(
                    f"{duplicate_streak} consecutive duplicate pages at pageIndex={page_index}. Stopping fetch."
                )
                result.stop_reason = StopReason.DUPLICATE_PAGES
                break

            page_index += 1
            await self._sleep(self.page_delay)

        result.entries = list(unique.values())
        return result
