"""An addressable binary heap.

Items are pushed and get back a :class:`Handle`. The handle can later be
used to remove the item or to re-sort it after its priority changed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from itertools import count
from typing import Any


class Handle:
    """A reference to an item stored in a :class:`PriorityQueue`."""

    __slots__ = ("item", "_key", "_seq", "_index", "_queue")

    def __init__(self, item: Any, key: Any, seq: int, queue: PriorityQueue) -> None:
        self.item = item
        self._key = key
        self._seq = seq
        self._index: int | None = None
        self._queue: PriorityQueue | None = queue

    @property
    def queued(self) -> bool:
        """True while the item is still held by its queue."""
        return self._queue is not None

    def __repr__(self) -> str:
        return f"Handle({self.item!r})"


class PriorityQueue:
    """A min-heap ordered by ``key(item)``; ties keep insertion order."""

    def __init__(self, key: Callable[[Any], Any]) -> None:
        self._key = key
        self._heap: list[Handle] = []
        self._counter = count()

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items())

    def items(self) -> list[Any]:
        """Return a snapshot of all queued items, in heap order."""
        return [handle.item for handle in self._heap]

    def push(self, item: Any) -> Handle:
        """Add an item and return the handle that refers to it."""
        handle = Handle(item, self._key(item), next(self._counter), self)
        handle._index = len(self._heap)
        self._heap.append(handle)
        self._sift_up(handle._index)
        return handle

    def peek(self) -> Any:
        """Return the item with the lowest key, or None if the queue is empty."""
        return self._heap[0].item if self._heap else None

    def remove(self, handle: Handle) -> None:
        """Remove the item referred to by ``handle``."""
        index = self._check(handle)
        last = self._heap.pop()
        if last is not handle:
            self._heap[index] = last
            last._index = index
            self._restore(index)
        handle._index = None
        handle._queue = None

    def priority_changed(self, handle: Handle) -> None:
        """Recompute the key of the handle's item and restore heap order."""
        index = self._check(handle)
        handle._key = self._key(handle.item)
        self._restore(index)

    def _check(self, handle: Handle) -> int:
        if handle._queue is not self or handle._index is None:
            raise ValueError("handle does not belong to this queue")
        return handle._index

    @staticmethod
    def _less(a: Handle, b: Handle) -> bool:
        return (a._key, a._seq) < (b._key, b._seq)

    def _swap(self, i: int, j: int) -> None:
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        heap[i]._index = i
        heap[j]._index = j

    def _restore(self, index: int) -> None:
        if not self._sift_up(index):
            self._sift_down(index)

    def _sift_up(self, index: int) -> bool:
        moved = False
        while index > 0:
            parent = (index - 1) // 2
            if not self._less(self._heap[index], self._heap[parent]):
                break
            self._swap(index, parent)
            index = parent
            moved = True
        return moved

    def _sift_down(self, index: int) -> None:
        size = len(self._heap)
        while True:
            smallest = index
            for child in (2 * index + 1, 2 * index + 2):
                if child < size and self._less(self._heap[child], self._heap[smallest]):
                    smallest = child
            if smallest == index:
                return
            self._swap(index, smallest)
            index = smallest