from .config import StoreConfig
from .exceptions import (
    LazyStoreError,
    StoreConfigError,
    PageStateError,
    PageSizeError,
    DuplicateKeyError,
)
from .logging_config import get_logger

__all__ = [
    "StoreConfig",
    "LazyStoreError",
    "StoreConfigError",
    "PageStateError",
    "PageSizeError",
    "DuplicateKeyError",
    "get_logger",
]
