from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

from .config import MAX_CONCURRENT_FETCHES, TOP_STORIES_LIMIT
from .datamodels import StoryItem
from .errors import ResolutionError
from .sources.base import Source

logger = logging.getLogger("hn")


class ListingProvider:
    """Loads the top stories as summaries, without their comments."""

    def __init__(self, source: Source, max_workers: int = MAX_CONCURRENT_FETCHES):
        self.source = source
        self.max_workers = max_workers
        self._stories: List[StoryItem] = []

    @property
    def stories(self) -> List[StoryItem]:
        return list(self._stories)

    def load_top_stories(self, limit: int = TOP_STORIES_LIMIT) -> List[StoryItem]:
        """Fetch up to ``limit`` top stories in ranking order.

        A failure fetching the ID list propagates. A story that fails to load is
        left out, so fewer than ``limit`` entries may come back.
        """
        story_ids = self.source.fetch_top_story_ids(limit)
        results: List[Optional[StoryItem]] = [None] * len(story_ids)

        if story_ids:
            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="hn-listing"
            ) as executor:
                future_to_index = {
                    executor.submit(self.source.fetch_item, story_id): index
                    for index, story_id in enumerate(story_ids)
                }
                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    try:
                        item = future.result()
                    except ResolutionError as e:
                        logger.warning(
                            "Skipping story %s (%s): %s", story_ids[index], e.kind, e
                        )
                        continue
                    if not isinstance(item, StoryItem):
                        logger.warning("Skipping item %s: not a story", story_ids[index])
                        continue
                    if item.id != story_ids[index]:
                        logger.warning(
                            "Skipping item %s: response was item %s", story_ids[index], item.id
                        )
                        continue
                    results[index] = item

        stories = [s for s in results if s is not None]
        logger.info("Loaded %d of %d top stories", len(stories), len(story_ids))
        self._stories = stories
        return self.stories
