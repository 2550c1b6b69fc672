from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class StoreStats:
    """
    Aggregate statistics reported by the data source.

    Stats are immutable; a fetch that discovers a new bound hands back a
    new StoreStats instead of mutating the one it was given.

    Attributes:
        total_pages: Known upper bound on the page count, None if unknown
    """
    total_pages: Optional[int] = None

    def __post_init__(self):
        if self.total_pages is not None and self.total_pages < 0:
            raise ValueError(
                f"Total pages must be non-negative, got {self.total_pages}")

    @property
    def page_bound(self) -> float:
        """Upper bound for page offsets; unknown or zero totals are unbounded."""
        return self.total_pages or float("inf")

    def with_total_pages(self, total_pages: Optional[int]) -> "StoreStats":
        return replace(self, total_pages=total_pages)
