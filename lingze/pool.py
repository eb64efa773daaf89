"""A slot pool that hands out stable integer ids and reuses freed slots."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class Pool(Generic[T]):
    """Stores elements in slots; released slots are reused most recent first."""

    def __init__(self) -> None:
        self._data: list[T | None] = []
        self._present: list[bool] = []
        self._free_ids: list[int] = []

    def add(self, elem: T) -> int:
        """Store ``elem`` and return its id."""
        if self._free_ids:
            slot = self._free_ids.pop()
            self._data[slot] = elem
            self._present[slot] = True
            return slot
        self._data.append(elem)
        self._present.append(True)
        return len(self._data) - 1

    def release(self, id: int) -> None:
        """Free the slot ``id``; it must hold an element."""
        if not self.is_present(id):
            raise KeyError(id)
        self._present[id] = False
        self._data[id] = None
        self._free_ids.append(id)

    def get(self, id: int) -> T:
        """Return the element stored under ``id``."""
        if not self.is_present(id):
            raise KeyError(id)
        return self._data[id]  # type: ignore[return-value]

    def is_present(self, id: int) -> bool:
        """Tell whether slot ``id`` currently holds an element."""
        return 0 <= id < len(self._present) and self._present[id]

    def __iter__(self) -> Iterator[T]:
        for elem, present in zip(self._data, self._present):
            if present:
                yield elem  # type: ignore[misc]

    def __len__(self) -> int:
        """Number of slots, including released ones."""
        return len(self._data)