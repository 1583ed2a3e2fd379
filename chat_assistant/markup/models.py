from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class SegmentKind(str, Enum):
    TEXT = "text"
    INTERACTIVE_LIST = "interactive-list"
    RELATED_CONTENT = "related-content"
    VIDEO_CONTENT = "video-content"


# Tie-break for matches of different kinds sharing a start offset.
KIND_PRIORITY: Dict[SegmentKind, int] = {
    SegmentKind.INTERACTIVE_LIST: 0,
    SegmentKind.RELATED_CONTENT: 1,
    SegmentKind.VIDEO_CONTENT: 2,
}


@dataclass(frozen=True)
class Source:
    id: str
    title: str
    icon: str
    description: str
    url: str


@dataclass(frozen=True)
class RelatedItem:
    id: str
    title: str
    description: str
    url: str
    source: str
    source_icon: Optional[str] = None
    short_title: Optional[str] = None


@dataclass(frozen=True)
class TextSegment:
    content: str
    kind: SegmentKind = field(default=SegmentKind.TEXT, init=False)


@dataclass(frozen=True)
class InteractiveListSegment:
    title: str
    sources: Tuple[Source, ...] = ()
    kind: SegmentKind = field(default=SegmentKind.INTERACTIVE_LIST, init=False)


@dataclass(frozen=True)
class VideoContentSegment:
    title: str
    url: str
    kind: SegmentKind = field(default=SegmentKind.VIDEO_CONTENT, init=False)


@dataclass(frozen=True)
class RelatedContentSegment:
    title: str
    items: Tuple[RelatedItem, ...] = ()
    kind: SegmentKind = field(default=SegmentKind.RELATED_CONTENT, init=False)


Segment = Union[TextSegment, InteractiveListSegment, VideoContentSegment, RelatedContentSegment]


@dataclass(frozen=True)
class BlockMatch:
    """
    Raw scanner hit: the span [start, end) of one block in the message and
    the groups captured from its tags. `body` is set for list-style blocks,
    `url` for video blocks.
    """

    kind: SegmentKind
    start: int
    end: int
    title: str
    body: Optional[str] = None
    url: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, int]:
        return self.start, KIND_PRIORITY[self.kind]


@dataclass
class CachedMessageRecord:
    conversation_id: int
    message_id: int
    interactive_list: Optional[List[Any]] = None
    suggested_questions: Optional[List[str]] = None
    outline: Optional[List[Any]] = None
    youtube_resources: Optional[List[Any]] = None
    cached_at: datetime = field(default_factory=datetime.utcnow)

    def elements(self) -> Dict[str, Any]:
        return {
            "interactive_list": self.interactive_list,
            "suggested_questions": self.suggested_questions,
            "outline": self.outline,
            "youtube_resources": self.youtube_resources,
        }
