"""Custom exceptions for the page store."""


class LazyStoreError(Exception):
    """Base exception for page store errors."""
    pass


class StoreConfigError(LazyStoreError):
    """Raised when a Store or Dataset is created with invalid configuration."""
    pass


class PageStateError(LazyStoreError):
    """Raised when a page is asked to make a transition its status forbids."""
    pass


class PageSizeError(PageStateError):
    """Raised when a page is resolved with more records than it can hold."""
    pass


class DuplicateKeyError(LazyStoreError):
    """Raised when inserting a page offset that is already indexed."""
    pass
