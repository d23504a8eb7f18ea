from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional

from .config import DEFAULTS
from .datamodels import PreviewState, StoryItem
from .fetcher import ListingProvider
from .preview import PreviewCoordinator, PreviewObserver, PreviewSlot
from .resolver import CommentTreeResolver, StoryResolver
from .sources.base import Source
from .sources.hackernews import HackerNewsSource

logger = logging.getLogger("hn")


class Viewer:
    """Owns the story listing and the preview slot for one running app.

    The UI reads ``stories`` and ``preview_state``, subscribes to preview
    changes, and changes the preview only through ``request_preview``.
    """

    def __init__(
        self,
        source: Source,
        top_stories: int = DEFAULTS["top_stories"],
        max_comment_depth: int = DEFAULTS["max_comment_depth"],
        max_concurrent_fetches: int = DEFAULTS["max_concurrent_fetches"],
    ):
        self.source = source
        self.top_stories = top_stories
        self.listing = ListingProvider(source, max_workers=max_concurrent_fetches)
        self.preview_slot = PreviewSlot()
        self.comment_resolver = CommentTreeResolver(
            source, max_depth=max_comment_depth, max_workers=max_concurrent_fetches
        )
        self.coordinator = PreviewCoordinator(
            StoryResolver(source, self.comment_resolver), self.preview_slot
        )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> Viewer:
        config = {**DEFAULTS, **(config or {})}
        return cls(
            HackerNewsSource(config),
            top_stories=int(config["top_stories"]),
            max_comment_depth=int(config["max_comment_depth"]),
            max_concurrent_fetches=int(config["max_concurrent_fetches"]),
        )

    @property
    def stories(self) -> List[StoryItem]:
        return self.listing.stories

    @property
    def preview_state(self) -> PreviewState:
        return self.preview_slot.state

    def refresh_stories(self) -> List[StoryItem]:
        return self.listing.load_top_stories(self.top_stories)

    def request_preview(self, story_id: int) -> Future:
        return self.coordinator.request_preview(story_id)

    def subscribe(self, observer: PreviewObserver) -> Callable[[], None]:
        return self.preview_slot.subscribe(observer)

    def close(self) -> None:
        self.coordinator.close()
        self.comment_resolver.close()
        self.source.close()
