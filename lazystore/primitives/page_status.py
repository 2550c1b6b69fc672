from enum import Enum


class PageStatus(Enum):
    """
    Lifecycle states of a page.

    UNREQUESTED -> PENDING -> RESOLVED | REJECTED. Both settled states are terminal.
    """
    UNREQUESTED = "unrequested"
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @property
    def is_settled(self) -> bool:
        return self in (PageStatus.RESOLVED, PageStatus.REJECTED)
