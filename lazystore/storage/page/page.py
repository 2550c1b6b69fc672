from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence

from lazystore.core.exceptions import PageStateError, PageSizeError
from lazystore.primitives import PageStatus


@dataclass(frozen=True)
class Page:
    """
    A single fixed-size slice of the virtual record space.

    A page is the unit of fetching - the data source is always asked for
    whole pages, and a page is either entirely loaded or not at all.

    Key concepts:
    - offset: position in page space, not record space
    - status: unrequested -> pending -> resolved | rejected
    - records: populated only once resolved
    - error: populated only once rejected

    Pages are immutable. Every transition returns a new Page, so a page
    that a transition does not touch can be shared by every Store snapshot
    that indexes it.
    """

    offset: int
    page_size: int
    status: PageStatus = PageStatus.UNREQUESTED
    records: tuple = field(default=(), compare=False)
    error: Optional[BaseException] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.offset, int) or self.offset < 0:
            raise ValueError(
                f"Page offset must be non-negative, got {self.offset}")
        if not isinstance(self.page_size, int) or self.page_size <= 0:
            raise ValueError(
                f"Page size must be positive, got {self.page_size}")

    # =================== TRANSITIONS ===================

    def request(self) -> "Page":
        """Mark the page as handed to the data source."""
        self._require(PageStatus.UNREQUESTED, "request")
        return replace(self, status=PageStatus.PENDING)

    def resolve(self, records: Sequence[Any]) -> "Page":
        """
        Settle the page with the records the data source returned.

        A short final page is allowed; the missing tail is backfilled with
        None so the page always holds page_size slots.

        Raises:
            PageStateError: If the page is not pending
            PageSizeError: If more than page_size records were given
        """
        self._require(PageStatus.PENDING, "resolve")

        records = tuple(records)
        if len(records) > self.page_size:
            raise PageSizeError(
                f"Page {self.offset} holds {self.page_size} records, "
                f"got {len(records)}")

        padding = (None,) * (self.page_size - len(records))
        return replace(self, status=PageStatus.RESOLVED, records=records + padding)

    def reject(self, error: BaseException) -> "Page":
        """Settle the page with the error its fetch failed with."""
        self._require(PageStatus.PENDING, "reject")
        return replace(self, status=PageStatus.REJECTED, error=error)

    def _require(self, status: PageStatus, transition: str) -> None:
        if self.status is not status:
            raise PageStateError(
                f"Cannot {transition} page {self.offset}: "
                f"expected {status.value}, page is {self.status.value}")

    # =================== PREDICATES ===================

    @property
    def is_requested(self) -> bool:
        return self.status is not PageStatus.UNREQUESTED

    @property
    def is_pending(self) -> bool:
        return self.status is PageStatus.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.status is PageStatus.RESOLVED

    @property
    def is_rejected(self) -> bool:
        return self.status is PageStatus.REJECTED

    @property
    def is_settled(self) -> bool:
        return self.status.is_settled

    # =================== RECORD SPACE ===================

    @property
    def first_record_index(self) -> int:
        """Absolute index of the first record slot on this page."""
        return self.offset * self.page_size

    @property
    def record_range(self) -> range:
        """Absolute record indices covered by this page."""
        start = self.first_record_index
        return range(start, start + self.page_size)

    def get_record(self, index: int) -> Any:
        """
        Return the record at an absolute index, or None.

        None is returned when the page is not resolved or the index falls
        outside the page.
        """
        if not self.is_resolved or index not in self.record_range:
            return None
        return self.records[index - self.first_record_index]

    def __str__(self) -> str:
        return f"Page(offset={self.offset}, {self.status.value})"
