from typing import NamedTuple, Union


class Horizon(NamedTuple):
    """
    Half-open range of page offsets [low, high).

    high may be infinite when the store has no upper bound.
    """
    low: int
    high: Union[int, float]

    def __contains__(self, offset: object) -> bool:
        return isinstance(offset, int) and self.low <= offset < self.high

    def offsets(self) -> range:
        """Page offsets covered by this horizon. Requires a finite high."""
        return range(self.low, int(self.high))
