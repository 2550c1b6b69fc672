from .record_sequence import RecordSequence
from .store import Store

__all__ = ["Store", "RecordSequence"]
