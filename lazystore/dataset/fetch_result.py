from dataclasses import dataclass
from typing import Any, Optional, Sequence

from lazystore.primitives import StoreStats


@dataclass(frozen=True)
class FetchResult:
    """
    What a fetch collaborator hands back for one page.

    Attributes:
        records: Records of the page, at most page_size of them
        stats: Updated statistics, None when the fetch learned nothing new
    """
    records: Sequence[Any]
    stats: Optional[StoreStats] = None

    @classmethod
    def coerce(cls, result: Any) -> "FetchResult":
        """Accept either a FetchResult or a bare sequence of records."""
        if isinstance(result, FetchResult):
            return result
        return cls(records=tuple(result))
