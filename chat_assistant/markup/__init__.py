"""
Message markup subsystem exports.
"""

from .engine import MarkupParser, RegexMarkupParser, build_segment, parse_segments, sequence_matches
from .models import (
    BlockMatch,
    CachedMessageRecord,
    InteractiveListSegment,
    RelatedContentSegment,
    RelatedItem,
    Segment,
    SegmentKind,
    Source,
    TextSegment,
    VideoContentSegment,
)
from .repository import InMemoryMessageCacheRepository, MessageCacheRepository, SqlAlchemyMessageCacheRepository
from .response import AssistantResponse, parse_assistant_response
from .scanner import extract_related_items, extract_sources, scan_blocks
from .serialization import segment_to_dict, segments_to_dicts
from .service import MessageRenderService, RenderedMessage, ServiceConfig, build_service

__all__ = [
    "AssistantResponse",
    "BlockMatch",
    "CachedMessageRecord",
    "InMemoryMessageCacheRepository",
    "InteractiveListSegment",
    "MarkupParser",
    "MessageCacheRepository",
    "MessageRenderService",
    "RegexMarkupParser",
    "RelatedContentSegment",
    "RelatedItem",
    "RenderedMessage",
    "Segment",
    "SegmentKind",
    "ServiceConfig",
    "Source",
    "SqlAlchemyMessageCacheRepository",
    "TextSegment",
    "VideoContentSegment",
    "build_segment",
    "build_service",
    "extract_related_items",
    "extract_sources",
    "parse_assistant_response",
    "parse_segments",
    "scan_blocks",
    "segment_to_dict",
    "segments_to_dicts",
    "sequence_matches",
]
