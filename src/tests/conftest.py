from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from hn_tui.datamodels import Comment, Item, StoryItem
from hn_tui.errors import NetworkError, NotFound, ResolutionError
from hn_tui.sources.base import Source

EPOCH = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def story(item_id: int, kids=(), **kwargs) -> StoryItem:
    return StoryItem(
        id=item_id,
        title=kwargs.pop("title", f"Story {item_id}"),
        time=EPOCH,
        by=kwargs.pop("by", "alice"),
        kids=tuple(kids),
        **kwargs,
    )


def comment(item_id: int, kids=(), **kwargs) -> Comment:
    return Comment(
        id=item_id,
        time=EPOCH,
        by=kwargs.pop("by", "bob"),
        text=kwargs.pop("text", f"comment {item_id}"),
        kids=tuple(kids),
        **kwargs,
    )


class FakeSource(Source):
    """In-memory gateway. Items can be made to fail, sleep, or block on a gate."""

    def __init__(self, items: Optional[List[Item]] = None, top_ids: Optional[List[int]] = None):
        super().__init__({})
        self.items: Dict[int, Item] = {i.id: i for i in items or []}
        self.top_ids = list(top_ids or [])
        self.failures: Dict[int, ResolutionError] = {}
        self.delays: Dict[int, float] = {}
        self.gates: Dict[int, threading.Event] = {}
        self.top_ids_error: Optional[ResolutionError] = None
        self.calls: List[int] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def add(self, *items: Item) -> None:
        for item in items:
            self.items[item.id] = item

    def fail(self, item_id: int, error: Optional[ResolutionError] = None) -> None:
        self.failures[item_id] = error or NetworkError("simulated outage", item_id)

    def fetch_item(self, item_id: int) -> Item:
        with self._lock:
            self.calls.append(item_id)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if item_id in self.gates:
                self.gates[item_id].wait(timeout=5)
            if item_id in self.delays:
                time.sleep(self.delays[item_id])
            if item_id in self.failures:
                raise self.failures[item_id]
            if item_id not in self.items:
                raise NotFound(f"item {item_id} does not exist", item_id)
            # Hand out fresh comment objects so resolutions never share nodes.
            item = self.items[item_id]
            if isinstance(item, Comment):
                return comment(item.id, item.kids, by=item.by, text=item.text)
            return item
        finally:
            with self._lock:
                self.in_flight -= 1

    def fetch_top_story_ids(self, limit: int) -> List[int]:
        if self.top_ids_error is not None:
            raise self.top_ids_error
        return self.top_ids[:limit]


@pytest.fixture
def source():
    return FakeSource()
