import math
import threading
from concurrent.futures import Future
from functools import partial
from typing import Any, Callable, List, Optional

from lazystore.core.exceptions import PageSizeError, StoreConfigError
from lazystore.core.logging_config import get_logger
from lazystore.primitives import StoreStats
from lazystore.storage import Page, Store
from .fetch_result import FetchResult

logger = get_logger(__name__)

FetchFn = Callable[[int, int, StoreStats], "Future[Any]"]
UnfetchFn = Callable[[tuple, int], Any]
ObserveFn = Callable[[Store], None]


class Dataset:
    """
    Orchestrates Store snapshots against a data source.

    The dataset owns the current Store and the collaborator callbacks:

    - fetch(page_offset, page_size, stats) -> Future of the page's records
    - unfetch(records, page_offset): release records of an evicted page
    - observe(store): receives every published snapshot

    Every transition follows the same cycle:
    1. Derive a new Store from the current one
    2. Mark its unrequested pages pending and acknowledge its unfetchable ones
    3. Publish it and hand it to observe()
    4. Issue fetch/unfetch calls for the pages from step 2

    Fetch completions may arrive on any thread and in any order. They are
    applied against whatever Store is current at that moment; the store
    ignores completions for pages that are no longer pending.
    """

    def __init__(self, page_size: Optional[int] = None,
                 fetch: Optional[FetchFn] = None,
                 unfetch: Optional[UnfetchFn] = None,
                 observe: Optional[ObserveFn] = None,
                 load_horizon: Optional[int] = None,
                 unload_horizon: float = math.inf,
                 read_offset: Optional[int] = None,
                 stats: Optional[StoreStats] = None):
        """
        Create a dataset. The initial store is published immediately.

        Raises:
            StoreConfigError: If page_size or fetch is missing, or the
                horizons are inconsistent
        """
        store = Store(page_size=page_size,
                      load_horizon=load_horizon,
                      unload_horizon=unload_horizon,
                      read_offset=read_offset,
                      stats=stats)

        if fetch is None:
            raise StoreConfigError("created Dataset without fetch")

        self._fetch = fetch
        self._unfetch = unfetch
        self._observe = observe
        self._lock = threading.RLock()
        self._store = store

        self._transition(lambda current: current)

    # =================== STATE ===================

    @property
    def store(self) -> Store:
        with self._lock:
            return self._store

    @property
    def length(self) -> int:
        return self.store.length

    @property
    def read_offset(self) -> Optional[int]:
        return self.store.read_offset

    @property
    def stats(self) -> StoreStats:
        return self.store.stats

    @property
    def is_pending(self) -> bool:
        return self.store.is_pending

    def get(self, index: int) -> Any:
        return self.store.get(index)

    # =================== OPERATIONS ===================

    def set_read_offset(self, read_offset: int) -> Store:
        """Move the read offset and publish the resulting snapshot."""
        return self._transition(lambda store: store.set_read_offset(read_offset))

    def reload(self) -> Store:
        """Drop all pages and fetch the load window again, keeping stats."""
        return self._transition(lambda store: store.reload())

    def reset(self) -> Store:
        """Drop all pages and stats and fetch the load window again."""
        return self._transition(lambda store: store.reset())

    # =================== INTERNALS ===================

    def _transition(self, change: Callable[[Store], Store]) -> Store:
        released: List[Page] = []
        requested: List[Page] = []

        try:
            with self._lock:
                store = change(self._store)
                unrequested = store.unrequested
                unfetchable = store.unfetchable
                store = store.fetch(unrequested).unfetch(unfetchable)
                self._store = store
                released, requested = unfetchable, unrequested

                if self._observe is not None:
                    self._observe(store)
        finally:
            # Published pages are marked pending, so their fetches must go out
            for page in released:
                self._release(page)
            for page in requested:
                self._request(page, self.store.stats)

        return store

    def _request(self, page: Page, stats: StoreStats) -> None:
        logger.debug("page_fetch_started", offset=page.offset,
                     page_size=page.page_size)
        try:
            future = self._fetch(page.offset, page.page_size, stats)
        except Exception as error:
            future = Future()
            future.set_exception(error)

        future.add_done_callback(partial(self._on_fetch_done, page.offset))

    def _on_fetch_done(self, offset: int, future: "Future[Any]") -> None:
        if future.cancelled():
            error: Optional[BaseException] = RuntimeError(
                f"fetch of page {offset} was cancelled")
        else:
            error = future.exception()

        if error is not None:
            logger.warning("page_fetch_failed", offset=offset, error=repr(error))
            self._transition(lambda store: store.reject(error, offset))
            return

        result = FetchResult.coerce(future.result())
        logger.debug("page_fetch_resolved", offset=offset,
                     records=len(result.records), total_pages=(
                         result.stats.total_pages if result.stats else None))
        try:
            self._transition(
                lambda store: store.resolve(result.records, offset, result.stats))
        except PageSizeError as error:
            logger.warning("page_fetch_oversized", offset=offset, error=str(error))
            self._transition(
                lambda store: store.reject(error, offset, result.stats))

    def _release(self, page: Page) -> None:
        logger.info("page_unfetched", offset=page.offset)
        if self._unfetch is None:
            return

        try:
            self._unfetch(page.records, page.offset)
        except Exception as error:
            logger.warning("page_unfetch_failed", offset=page.offset, error=repr(error))

