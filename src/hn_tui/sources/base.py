from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..datamodels import Item


class Source(ABC):
    """Abstract base class for a remote item gateway.

    Every call is independent and may fail or be slow; implementations must be
    safe to call from several threads at once.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @abstractmethod
    def fetch_item(self, item_id: int) -> Item:
        """Return the story or comment with the given ID.

        Raises NotFound, NetworkError or DecodeError.
        """

    @abstractmethod
    def fetch_top_story_ids(self, limit: int) -> List[int]:
        """Return up to ``limit`` top story IDs in ranking order.

        Raises NetworkError or DecodeError.
        """

    def close(self) -> None:
        """Release any connections held by the source."""
