from collections.abc import Sequence
from typing import Any, Iterator


class RecordSequence(Sequence):
    """
    Read-only sequence view over the records of a Store snapshot.

    Nothing is materialised: every access goes through Store.get, so a
    slot whose page is not resolved yet reads as None. The view is bound
    to one snapshot and can be iterated any number of times.
    """

    def __init__(self, store):
        self._store = store

    def __len__(self) -> int:
        return self._store.length

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self._store.get(i) for i in range(*index.indices(len(self)))]

        length = len(self)
        if index < 0:
            index += length
        if not 0 <= index < length:
            raise IndexError(f"record index {index} out of range for length {length}")
        return self._store.get(index)

    def __iter__(self) -> Iterator[Any]:
        for index in range(len(self)):
            yield self._store.get(index)

    def __repr__(self) -> str:
        return f"RecordSequence(length={len(self)})"
