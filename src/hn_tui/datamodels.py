from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union


# --- Data models ---
@dataclass(frozen=True)
class StoryItem:
    id: int
    title: str
    time: datetime
    url: Optional[str] = None
    text: Optional[str] = None
    by: str = ""
    score: int = 0
    descendants: int = 0
    kids: Tuple[int, ...] = ()
    kind: str = "story"


@dataclass
class Comment:
    id: int
    time: datetime
    by: str = ""
    text: str = ""
    kids: Tuple[int, ...] = ()
    sub_comments: List[Comment] = field(default_factory=list)
    kind: str = "comment"


Item = Union[StoryItem, Comment]


@dataclass
class StoryPageData:
    item: StoryItem
    comments: List[Comment] = field(default_factory=list)


# --- Preview slot states ---
@dataclass(frozen=True)
class Unset:
    pass


@dataclass(frozen=True)
class Loading:
    story_id: int


@dataclass(frozen=True)
class Loaded:
    data: StoryPageData

    @property
    def story_id(self) -> int:
        return self.data.item.id


@dataclass(frozen=True)
class Failed:
    story_id: int
    kind: str


PreviewState = Union[Unset, Loading, Loaded, Failed]
