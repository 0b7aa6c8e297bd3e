"""Array-backed binary min-heap keyed by each entry's mutable `priority`.

The heap reads `entry.priority` whenever it compares entries, so callers that
mutate a priority after insertion must either call `reprioritize()` for that
entry or `update()` to re-heapify everything. Entries with equal priority are
served in insertion order.

The queue itself is not synchronized; the crawler guards it with its own lock.
"""

from __future__ import annotations

from typing import Generic, Iterator, Protocol, TypeVar


class Prioritized(Protocol):
    priority: float


T = TypeVar("T", bound=Prioritized)


class PriorityQueue(Generic[T]):
    """Binary min-heap where lower `priority` is served first."""

    def __init__(self) -> None:
        # Each slot is [entry, insertion sequence].
        self._heap: list[list] = []
        self._counter = 0

    def put(self, entry: T) -> None:
        """Insert an entry. The same object may be inserted more than once."""

        self._heap.append([entry, self._counter])
        self._counter += 1
        self._sift_up(len(self._heap) - 1)

    def get_min(self) -> T | None:
        """Return the lowest-priority entry without removing it."""

        if not self._heap:
            return None
        return self._heap[0][0]

    def delete_min(self) -> T | None:
        """Remove and return the lowest-priority entry."""

        if not self._heap:
            return None
        entry = self._heap[0][0]
        self._delete_at(0)
        return entry

    def delete(self, entry: T) -> bool:
        """Remove one occurrence of `entry` (matched by identity)."""

        index = self._index_of(entry)
        if index < 0:
            return False
        self._delete_at(index)
        return True

    def reprioritize(self, entry: T, priority: float) -> bool:
        """Change the priority of a queued entry and restore heap order.

        Every queued occurrence of the entry is resifted. Returns False (and
        leaves the entry untouched) if it is not queued.
        """

        positions = [i for i, slot in enumerate(self._heap) if slot[0] is entry]
        if not positions:
            return False
        entry.priority = priority
        if len(positions) == 1:
            self._sift_down(positions[0])
            self._sift_up(positions[0])
        else:
            self.update()
        return True

    def update(self) -> None:
        """Re-heapify after out-of-band priority changes."""

        for index in range(len(self._heap) // 2 - 1, -1, -1):
            self._sift_down(index)

    def clear(self) -> None:
        self._heap.clear()

    def elements(self) -> list[T]:
        """Return a snapshot of queued entries in heap (not sorted) order."""

        return [slot[0] for slot in self._heap]

    def empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __iter__(self) -> Iterator[T]:
        return iter(self.elements())

    def __contains__(self, entry: object) -> bool:
        return self._index_of(entry) >= 0

    def _index_of(self, entry: object) -> int:
        for index, slot in enumerate(self._heap):
            if slot[0] is entry:
                return index
        return -1

    def _less(self, a: int, b: int) -> bool:
        slot_a = self._heap[a]
        slot_b = self._heap[b]
        pa = slot_a[0].priority
        pb = slot_b[0].priority
        if pa != pb:
            return pa < pb
        return slot_a[1] < slot_b[1]

    def _delete_at(self, index: int) -> None:
        last = self._heap.pop()
        if index == len(self._heap):
            return
        self._heap[index] = last
        # The moved slot may belong above or below its new position.
        self._sift_down(index)
        self._sift_up(index)

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if not self._less(index, parent):
                break
            heap[index], heap[parent] = heap[parent], heap[index]
            index = parent

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while True:
            left = 2 * index + 1
            right = left + 1
            smallest = index
            if left < size and self._less(left, smallest):
                smallest = left
            if right < size and self._less(right, smallest):
                smallest = right
            if smallest == index:
                return
            heap[index], heap[smallest] = heap[smallest], heap[index]
            index = smallest


__all__ = ["Prioritized", "PriorityQueue"]
