"""
lazystore - a windowed, lazily fetched record collection.

A Store is an immutable snapshot of which pages of a large remote record
set are loaded around a read offset. A Dataset drives Store snapshots
against a data source's fetch and unfetch callbacks.
"""

from .core import (
    StoreConfig,
    LazyStoreError,
    StoreConfigError,
    PageStateError,
    PageSizeError,
    DuplicateKeyError,
)
from .primitives import PageStatus, StoreStats, Horizon
from .storage import Page, PageIndex, Store, RecordSequence
from .dataset import Dataset, FetchResult

__all__ = [
    "StoreConfig",
    "LazyStoreError",
    "StoreConfigError",
    "PageStateError",
    "PageSizeError",
    "DuplicateKeyError",
    "PageStatus",
    "StoreStats",
    "Horizon",
    "Page",
    "PageIndex",
    "Store",
    "RecordSequence",
    "Dataset",
    "FetchResult",
]
