import math
from copy import copy
from functools import reduce
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from lazystore.core.config import StoreConfig
from lazystore.core.logging_config import get_logger
from lazystore.primitives import Horizon, StoreStats
from lazystore.storage.index import PageIndex
from lazystore.storage.page import Page
from .record_sequence import RecordSequence

logger = get_logger(__name__)

_MISSING = object()


class Store:
    """
    Immutable windowed snapshot of a lazily fetched record collection.

    The store maps page offsets to pages and decides, from the read offset,
    which pages must exist and which must go. Two windows drive that
    decision:

    - load horizon: pages within load_horizon records of the read offset
      must be indexed, and are admitted as unrequested pages when missing
    - unload horizon: pages beyond unload_horizon records of the read offset
      are evicted; resolved ones are queued as unfetchable so their records
      can be released by the data source

    Between the two windows only settled pages survive. Pending and
    unrequested pages outside the load window are dropped and recreated
    later if the read offset comes back.

    Every public operation returns a new Store and never mutates the
    receiver. Untouched pages and index sub-trees are shared between
    snapshots, so holding on to an old snapshot is cheap and safe.
    """

    def __init__(self, page_size: Optional[int] = None,
                 load_horizon: Optional[int] = None,
                 unload_horizon: float = math.inf,
                 read_offset: Optional[int] = None,
                 stats: Optional[StoreStats] = None):
        """
        Create a store and admit the pages around read_offset.

        Args:
            page_size: Records per page (required, > 0)
            load_horizon: Record radius that must be loaded, defaults to one page
            unload_horizon: Record radius beyond which pages are evicted
            read_offset: Initial read offset, None leaves the store empty
            stats: Known statistics about the data source

        Raises:
            StoreConfigError: If page_size is missing or
                unload_horizon < load_horizon
        """
        config = StoreConfig(page_size=page_size,
                             load_horizon=load_horizon,
                             unload_horizon=unload_horizon,
                             read_offset=read_offset)
        self._config = config
        self._pages = PageIndex()
        self._unfetchable: Tuple[Page, ...] = ()
        self._stats = stats or StoreStats()
        self._read_offset = None if read_offset is None else max(read_offset, 0)
        self._length = 0

        self._update_horizons()

    @classmethod
    def from_config(cls, config: StoreConfig,
                    stats: Optional[StoreStats] = None) -> "Store":
        return cls(page_size=config.page_size,
                   load_horizon=config.load_horizon,
                   unload_horizon=config.unload_horizon,
                   read_offset=config.read_offset,
                   stats=stats)

    # =================== CONFIGURATION ===================

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def page_size(self) -> int:
        return self._config.page_size

    @property
    def load_horizon(self) -> int:
        return self._config.effective_load_horizon

    @property
    def unload_horizon(self) -> float:
        return self._config.unload_horizon

    @property
    def read_offset(self) -> Optional[int]:
        return self._read_offset

    @property
    def stats(self) -> StoreStats:
        return self._stats

    @property
    def total_pages(self) -> Optional[int]:
        return self._stats.total_pages

    # =================== PAGE VIEWS ===================

    @property
    def pages(self) -> List[Page]:
        """All indexed pages in ascending offset order."""
        return list(self._pages)

    @property
    def index(self) -> PageIndex:
        return self._pages

    @property
    def unrequested(self) -> List[Page]:
        """Pages waiting to be handed to the data source."""
        return [page for page in self._pages if not page.is_requested]

    @property
    def pending(self) -> List[Page]:
        return [page for page in self._pages if page.is_pending]

    @property
    def resolved(self) -> List[Page]:
        return [page for page in self._pages if page.is_resolved]

    @property
    def rejected(self) -> List[Page]:
        return [page for page in self._pages if page.is_rejected]

    @property
    def requested(self) -> List[Page]:
        """Pending, resolved and rejected pages."""
        return [page for page in self._pages if page.is_requested]

    @property
    def unfetchable(self) -> List[Page]:
        """Evicted resolved pages whose records still need releasing."""
        return list(self._unfetchable)

    @property
    def is_pending(self) -> bool:
        return any(page.is_pending for page in self._pages)

    # =================== TRANSITIONS ===================

    def set_read_offset(self, read_offset: int) -> "Store":
        """Move the read offset, clamping negative offsets to zero."""
        return self._derive(_read_offset=max(read_offset, 0))

    def fetch(self, fetchable: Iterable[Page] = ()) -> "Store":
        """
        Mark the given unrequested pages as pending.

        Pages are matched by offset. Offsets that are not indexed, or whose
        page has already been requested, are left alone.
        """
        offsets = sorted({page.offset for page in fetchable})
        if not offsets:
            return self

        pages = self._pages
        for offset in offsets:
            page = pages.get(offset)
            if page is not None and not page.is_requested:
                pages = pages.replace(offset, page.request())

        return self._derive(_pages=pages)

    def unfetch(self, unfetchable: Iterable[Page] = ()) -> "Store":
        """Acknowledge that the records of evicted pages have been released."""
        released = {id(page) for page in unfetchable}
        if not released:
            return self

        return self._derive(_unfetchable=tuple(
            page for page in self._unfetchable if id(page) not in released))

    def resolve(self, records: Iterable[Any], offset: int,
                stats: Optional[StoreStats] = None) -> "Store":
        """
        Settle the pending page at offset with records.

        A completion for a page that is no longer pending at offset is
        stale: the index is left as it is. Stats are applied either way.
        """
        page = self._pages.get(offset)
        pages = self._pages

        if page is not None and page.is_pending:
            pages = pages.replace(offset, page.resolve(records))
        else:
            logger.debug("stale_completion_ignored", transition="resolve",
                         offset=offset, status=page.status.value if page else None)

        return self._derive(_pages=pages, _stats=stats or self._stats)

    def reject(self, error: BaseException, offset: int,
               stats: Optional[StoreStats] = None) -> "Store":
        """Settle the pending page at offset with error. Stale rejections are ignored."""
        page = self._pages.get(offset)
        pages = self._pages

        if page is not None and page.is_pending:
            pages = pages.replace(offset, page.reject(error))
        else:
            logger.debug("stale_completion_ignored", transition="reject",
                         offset=offset, status=page.status.value if page else None)

        return self._derive(_pages=pages, _stats=stats or self._stats)

    def reload(self) -> "Store":
        """
        Drop every page and admit the load window again.

        Resolved pages are queued as unfetchable. Stats and the read offset
        are kept, so the virtual length survives the reload.
        """
        return self._derive(_pages=PageIndex(),
                            _unfetchable=self._unfetchable + tuple(self.resolved))

    def reset(self) -> "Store":
        """Reload and forget everything learned from the data source."""
        return self._derive(_pages=PageIndex(),
                            _unfetchable=self._unfetchable + tuple(self.resolved),
                            _stats=StoreStats())

    # =================== HORIZONS ===================

    def load_horizons(self) -> Horizon:
        """Page offsets that must be indexed and requested."""
        low, high = self._window(self.load_horizon)
        return Horizon(low, min(self._stats.page_bound, high))

    def unload_horizons(self) -> Horizon:
        """Page offsets outside of which pages are evicted."""
        return self._unload_window(self._pages.max_key() or 0)

    def _unload_window(self, max_page_offset: int) -> Horizon:
        low, high = self._window(self.unload_horizon)
        return Horizon(low, min(self._stats.page_bound, high, max_page_offset + 1))

    def _window(self, radius: float) -> Tuple[int, float]:
        if self._read_offset is None:
            return 0, 0
        if math.isinf(radius):
            return 0, math.inf

        low = math.floor((self._read_offset - radius) / self.page_size)
        high = math.ceil((self._read_offset + radius) / self.page_size)
        return max(low, 0), high

    def _update_horizons(self) -> None:
        """Evict and admit pages for the current read offset, then size the snapshot."""
        if self._read_offset is not None:
            self._unload_horizons()
            self._request_horizons()

        self._length = self._compute_length()

    def _unload_horizons(self) -> None:
        load = self.load_horizons()
        unload = self._unload_window(self._pages.max_key() or 0)

        pages = self._pages
        evicted: List[Page] = []
        dropped = 0

        # Everything above the unload window goes
        for page in reversed(pages.range_between(unload.high)):
            pages = pages.delete(page.offset)
            if page.is_resolved:
                evicted.append(page)

        # Unsettled pages between the load and unload windows go
        for page in reversed(pages.range_between(load.high, unload.high)):
            if not page.is_settled:
                pages = pages.delete(page.offset)
                dropped += 1

        for page in reversed(pages.range_between(unload.low, load.low)):
            if not page.is_settled:
                pages = pages.delete(page.offset)
                dropped += 1

        # Everything below the unload window goes
        for page in reversed(pages.range_between(0, unload.low)):
            pages = pages.delete(page.offset)
            if page.is_resolved:
                evicted.append(page)

        if len(pages) != len(self._pages):
            logger.debug("pages_evicted", read_offset=self._read_offset,
                         evicted=[page.offset for page in evicted],
                         dropped=dropped,
                         removed=len(self._pages) - len(pages))

        self._pages = pages
        self._unfetchable = self._unfetchable + tuple(evicted)

    def _request_horizons(self) -> None:
        pages = self._pages
        for offset in self.load_horizons().offsets():
            if offset not in pages:
                pages = pages.insert(offset, Page(offset, self.page_size))
        self._pages = pages

    def _derive(self, **changes: Any) -> "Store":
        """Copy this snapshot, apply changes and recompute its horizons."""
        store = copy(self)
        for name, value in changes.items():
            setattr(store, name, value)
        store._update_horizons()
        return store

    # =================== VIRTUAL ARRAY ===================

    def _compute_length(self) -> int:
        max_key = self._pages.max_key()
        observed_pages = max_key + 1 if max_key is not None else 0
        total_pages = max(observed_pages, self._stats.total_pages or 0)
        rejected_pages = sum(1 for page in self._pages if page.is_rejected)
        return (total_pages - rejected_pages) * self.page_size

    @property
    def length(self) -> int:
        """Virtual record count of the collection."""
        return self._length

    def get(self, index: int, default: Any = None) -> Any:
        """
        Return the record at a virtual index.

        default is returned for indices outside [0, length) and for indices
        whose page is not indexed or not resolved.
        """
        if index < 0 or index >= self._length:
            return default

        page = self._pages.get(index // self.page_size)
        if page is None or not page.is_resolved:
            return default
        return page.get_record(index)

    @property
    def records(self) -> RecordSequence:
        """Lazy sequence view over get() for indices in [0, length)."""
        return RecordSequence(self)

    def slice(self, start: Optional[int] = None, stop: Optional[int] = None) -> List[Any]:
        return self.records[start:stop]

    def map(self, fn: Callable[[Any], Any]) -> List[Any]:
        return [fn(record) for record in self.records]

    def reduce(self, fn: Callable[[Any, Any], Any], initial: Any = _MISSING) -> Any:
        if initial is _MISSING:
            return reduce(fn, self.records)
        return reduce(fn, self.records, initial)

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __getitem__(self, index):
        """
        Sequence access over records.

        Raises IndexError out of range like any sequence; use get() for
        the non-raising accessor that returns None instead.
        """
        return self.records[index]

    # =================== INTROSPECTION ===================

    def describe(self) -> Dict[str, Any]:
        """Summary of this snapshot, suitable for structured logging."""
        load = self.load_horizons()
        unload = self.unload_horizons()
        return {
            "read_offset": self._read_offset,
            "page_size": self.page_size,
            "load_horizons": [load.low, load.high],
            "unload_horizons": [unload.low, unload.high],
            "pages": len(self._pages),
            "unrequested": len(self.unrequested),
            "pending": len(self.pending),
            "resolved": len(self.resolved),
            "rejected": len(self.rejected),
            "unfetchable": len(self._unfetchable),
            "total_pages": self._stats.total_pages,
            "length": self._length,
        }

    def __str__(self) -> str:
        return (f"Store(read_offset={self._read_offset}, "
                f"pages={self._pages.keys()}, length={self._length})")

    def __repr__(self) -> str:
        return self.__str__()
