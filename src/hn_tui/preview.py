from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Deque, List, Optional

from .datamodels import Failed, Loaded, Loading, PreviewState, Unset
from .errors import ResolutionError, Superseded
from .resolver import StoryResolver

logger = logging.getLogger("hn")

PreviewObserver = Callable[[PreviewState], None]


class PreviewSlot:
    """The single preview location shared by the story list and the preview pane.

    Anyone may read ``state`` or subscribe; only the PreviewCoordinator writes.
    Writes are delivered to observers one at a time in the order they were
    made, by whichever thread is already delivering. An observer may therefore
    call back into the coordinator: its write is queued behind the current one.
    """

    def __init__(self) -> None:
        self._state: PreviewState = Unset()
        self._observers: List[PreviewObserver] = []
        self._queue: Deque[PreviewState] = deque()
        self._delivering = False
        self._lock = threading.Lock()

    @property
    def state(self) -> PreviewState:
        return self._state

    def subscribe(self, observer: PreviewObserver) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def set(self, state: PreviewState) -> None:
        self.publish(state)
        self.flush()

    def publish(self, state: PreviewState) -> None:
        """Record a new state without notifying anyone yet."""
        with self._lock:
            self._state = state
            self._queue.append(state)

    def flush(self) -> None:
        """Deliver queued states, unless another call is already doing so."""
        with self._lock:
            if self._delivering:
                return
            self._delivering = True
        while True:
            with self._lock:
                if not self._queue:
                    self._delivering = False
                    return
                state = self._queue.popleft()
                observers = list(self._observers)
            for observer in observers:
                try:
                    observer(state)
                except Exception:
                    logger.exception("Preview observer %r failed", observer)


class PreviewCoordinator:
    """Keeps the preview slot on the most recently requested story.

    Each request gets a new token and cancels the one before it. A resolution
    only writes to the slot while its token is still the latest; anything else
    it produces is dropped.
    """

    def __init__(self, resolver: StoryResolver, slot: PreviewSlot, max_workers: int = 2):
        self.resolver = resolver
        self.slot = slot
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="hn-preview"
        )
        self._lock = threading.Lock()
        self._token = 0
        self._story_id: Optional[int] = None
        self._cancel: Optional[threading.Event] = None
        self._future: Optional[Future] = None

    @property
    def current_token(self) -> int:
        return self._token

    def request_preview(self, story_id: int) -> Future:
        with self._lock:
            if self._is_current(story_id):
                logger.debug("Preview for %s already current, ignoring", story_id)
                return self._future

            if self._cancel is not None:
                self._cancel.set()
            self._token += 1
            token = self._token
            cancel = threading.Event()
            self._story_id = story_id
            self._cancel = cancel
            self.slot.publish(Loading(story_id))
            logger.debug("Preview request %d for story %s", token, story_id)
            future = self._executor.submit(self._resolve, token, story_id, cancel)
            self._future = future
        self.slot.flush()
        return future

    def _is_current(self, story_id: int) -> bool:
        if self._future is None or story_id != self._story_id:
            return False
        state = self.slot.state
        return isinstance(state, (Loading, Loaded))

    def _resolve(self, token: int, story_id: int, cancel: threading.Event) -> bool:
        if token != self._token:
            logger.debug("Preview request %d stale before start, skipping", token)
            return False
        try:
            data = self.resolver.resolve(story_id, cancel=cancel)
        except Superseded:
            logger.debug("Preview request %d for %s superseded", token, story_id)
            return False
        except ResolutionError as e:
            logger.warning("Failed to resolve story %s (%s): %s", story_id, e.kind, e)
            return self._apply(token, Failed(story_id, e.kind))
        except Exception:
            logger.exception("Unexpected error resolving story %s", story_id)
            return self._apply(token, Failed(story_id, "internal_error"))
        return self._apply(token, Loaded(data))

    def _apply(self, token: int, state: PreviewState) -> bool:
        with self._lock:
            if token != self._token:
                logger.debug("Discarding stale result of preview request %d", token)
                return False
            self.slot.publish(state)
        self.slot.flush()
        return True

    def close(self) -> None:
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            self._token += 1
        self._executor.shutdown(wait=False, cancel_futures=True)
