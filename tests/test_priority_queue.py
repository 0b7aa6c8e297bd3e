"""Tests for crawler.priority_queue module."""

from __future__ import annotations

import random

from crawlkit.crawler.priority_queue import PriorityQueue


class Item:
    def __init__(self, name: str, priority: float) -> None:
        self.name = name
        self.priority = priority

    def __repr__(self) -> str:
        return f"Item({self.name!r}, {self.priority})"


def drain(queue: PriorityQueue) -> list[str]:
    names = []
    while True:
        item = queue.delete_min()
        if item is None:
            return names
        names.append(item.name)


class TestOrdering:
    def test_delete_min_returns_lowest_priority_first(self):
        queue = PriorityQueue()
        for name, priority in [("c", 3.0), ("a", -1.0), ("d", 7.5), ("b", 0.25)]:
            queue.put(Item(name, priority))
        assert drain(queue) == ["a", "b", "c", "d"]

    def test_equal_priorities_come_out_in_insertion_order(self):
        queue = PriorityQueue()
        for name in "uvwxyz":
            queue.put(Item(name, 1.0))
        queue.put(Item("first", 0.0))
        assert drain(queue) == ["first", "u", "v", "w", "x", "y", "z"]

    def test_get_min_does_not_remove(self):
        queue = PriorityQueue()
        queue.put(Item("only", 2.0))
        assert queue.get_min().name == "only"
        assert len(queue) == 1

    def test_empty_queue(self):
        queue = PriorityQueue()
        assert queue.empty()
        assert not queue
        assert queue.get_min() is None
        assert queue.delete_min() is None


class TestDelete:
    def test_delete_by_identity_keeps_heap_order(self):
        queue = PriorityQueue()
        items = [Item(str(i), float(i % 5)) for i in range(20)]
        for item in items:
            queue.put(item)

        assert queue.delete(items[7]) is True
        assert queue.delete(items[0]) is True
        assert items[7] not in queue
        assert len(queue) == 18

        priorities = [queue.delete_min().priority for _ in range(18)]
        assert priorities == sorted(priorities)

    def test_delete_missing_entry_returns_false(self):
        queue = PriorityQueue()
        queue.put(Item("a", 1.0))
        assert queue.delete(Item("a", 1.0)) is False
        assert len(queue) == 1

    def test_same_object_can_be_queued_twice(self):
        queue = PriorityQueue()
        item = Item("dup", 1.0)
        queue.put(item)
        queue.put(item)
        assert len(queue) == 2
        assert queue.delete(item) is True
        assert item in queue


class TestReprioritize:
    def test_reprioritize_moves_entry(self):
        queue = PriorityQueue()
        low = Item("low", 1.0)
        high = Item("high", 5.0)
        queue.put(low)
        queue.put(high)

        assert queue.reprioritize(high, 0.0) is True
        assert queue.get_min() is high

    def test_update_after_external_mutation(self):
        queue = PriorityQueue()
        items = [Item(name, float(i)) for i, name in enumerate("abcd")]
        for item in items:
            queue.put(item)

        items[3].priority = -10.0
        items[0].priority = 10.0
        queue.update()
        assert drain(queue) == ["d", "b", "c", "a"]

    def test_clear_and_elements(self):
        queue = PriorityQueue()
        items = [Item(name, 1.0) for name in "xyz"]
        for item in items:
            queue.put(item)
        assert sorted(item.name for item in queue.elements()) == ["x", "y", "z"]
        queue.clear()
        assert len(queue) == 0
        assert list(queue) == []


def assert_heap_order(queue: PriorityQueue) -> None:
    heap = queue._heap

    def key(slot):
        return (slot[0].priority, slot[1])

    for index in range(len(heap)):
        for child in (2 * index + 1, 2 * index + 2):
            if child < len(heap):
                assert key(heap[index]) <= key(heap[child]), (index, child)


class TestHeapOrder:
    def test_mixed_operations_keep_heap_order(self):
        rng = random.Random(7)
        queue = PriorityQueue()
        live = []
        for step in range(300):
            op = rng.random()
            if op < 0.4 or not live:
                item = Item(str(step), float(rng.randint(-20, 20)))
                queue.put(item)
                live.append(item)
            elif op < 0.55:
                item = live.pop(rng.randrange(len(live)))
                assert queue.delete(item) is True
            elif op < 0.7:
                item = queue.delete_min()
                live.remove(item)
            elif op < 0.9:
                item = rng.choice(live)
                assert queue.reprioritize(item, float(rng.randint(-20, 20))) is True
            else:
                for item in rng.sample(live, k=min(3, len(live))):
                    item.priority = float(rng.randint(-20, 20))
                queue.update()
            assert_heap_order(queue)
            assert len(queue) == len(live)

        priorities = [queue.delete_min().priority for _ in range(len(live))]
        assert priorities == sorted(priorities)
