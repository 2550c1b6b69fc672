"""
Storage layer of the page store.

Pages are the unit of fetching, the PageIndex orders them by offset and
the Store decides which of them must exist for a given read offset.
"""

from .page import Page
from .index import PageIndex
from .store import Store, RecordSequence

__all__ = ["Page", "PageIndex", "Store", "RecordSequence"]
