from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .config import MAX_COMMENT_DEPTH, MAX_CONCURRENT_FETCHES
from .datamodels import Comment, StoryItem, StoryPageData
from .errors import DecodeError, DepthExceeded, Superseded
from .sources.base import Source

logger = logging.getLogger("hn")

# How often a resolver waiting on fetches wakes up to check for cancellation.
CANCEL_POLL_INTERVAL = 0.1


class CommentTreeResolver:
    """Fetches a whole comment thread into an ordered tree.

    Every comment in the thread is one fetch. All resolutions made through one
    resolver share a pool of at most ``max_workers`` threads, so the bound on
    in-flight fetches holds across overlapping previews. Fetches complete in any
    order; each result is written back to its position among its siblings, so
    the finished tree always follows ``kids`` order.

    Failures are all-or-nothing: the first failed fetch, a thread deeper than
    ``max_depth``, or an ID seen twice fails the whole resolution and drops
    whatever was still queued.
    """

    def __init__(
        self,
        source: Source,
        max_depth: int = MAX_COMMENT_DEPTH,
        max_workers: int = MAX_CONCURRENT_FETCHES,
    ):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.source = source
        self.max_depth = max_depth
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="hn-comments"
        )

    def resolve(
        self,
        kids: Iterable[int],
        parent_id: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Comment]:
        kids = list(kids)
        if not kids:
            return []

        roots: List[Optional[Comment]] = [None] * len(kids)
        seen: Set[int] = set() if parent_id is None else {parent_id}
        # future -> (requested id, list the result belongs in, index in that list, depth)
        pending: Dict[Future, Tuple[int, list, int, int]] = {}

        def submit(siblings: list, ids: List[int], depth: int) -> None:
            for index, item_id in enumerate(ids):
                if item_id in seen:
                    raise DecodeError(f"comment {item_id} appears twice in thread", item_id)
                seen.add(item_id)
                future = self._executor.submit(self.source.fetch_item, item_id)
                pending[future] = (item_id, siblings, index, depth)

        try:
            submit(roots, kids, 1)
            while pending:
                _check_cancel(cancel)
                done, _ = wait(pending, timeout=CANCEL_POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for future in done:
                    item_id, siblings, index, depth = pending.pop(future)
                    comment = future.result()
                    if not isinstance(comment, Comment):
                        raise DecodeError(
                            f"item {comment.id} is a {comment.kind}, expected a comment",
                            comment.id,
                        )
                    if comment.id != item_id:
                        raise DecodeError(
                            f"asked for comment {item_id}, got item {comment.id}", item_id
                        )
                    siblings[index] = comment
                    if not comment.kids:
                        continue
                    if depth >= self.max_depth:
                        raise DepthExceeded(
                            f"comment {comment.id} is nested deeper than {self.max_depth}",
                            comment.id,
                        )
                    comment.sub_comments = [None] * len(comment.kids)
                    submit(comment.sub_comments, list(comment.kids), depth + 1)
        finally:
            for future in pending:
                future.cancel()

        logger.debug("Resolved %d top-level comments under %s", len(kids), parent_id)
        return roots

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class StoryResolver:
    """Resolves a story ID into the story plus its complete comment tree."""

    def __init__(self, source: Source, comment_resolver: Optional[CommentTreeResolver] = None):
        self.source = source
        self.comment_resolver = comment_resolver or CommentTreeResolver(source)

    def resolve(self, story_id: int, cancel: Optional[threading.Event] = None) -> StoryPageData:
        _check_cancel(cancel)
        item = self.source.fetch_item(story_id)
        if not isinstance(item, StoryItem):
            raise DecodeError(f"item {story_id} is a comment, not a story", story_id)
        if item.id != story_id:
            raise DecodeError(f"asked for story {story_id}, got item {item.id}", story_id)
        _check_cancel(cancel)
        comments = self.comment_resolver.resolve(item.kids, parent_id=item.id, cancel=cancel)
        return StoryPageData(item=item, comments=comments)


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise Superseded("resolution superseded by a newer request")
