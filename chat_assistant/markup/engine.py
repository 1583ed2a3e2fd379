from __future__ import annotations

import logging
from typing import List, Sequence, Union

from .models import (
    BlockMatch,
    InteractiveListSegment,
    RelatedContentSegment,
    Segment,
    SegmentKind,
    TextSegment,
    VideoContentSegment,
)
from .scanner import extract_related_items, extract_sources, scan_blocks

logger = logging.getLogger(__name__)


class MarkupParser:
    """
    Abstract message parser. Implementations must be stateless and total:
    any string yields a segment list, never an exception.
    """

    version = "abstract"

    def parse(self, content: str) -> List[Segment]:
        raise NotImplementedError


def sequence_matches(content: str, matches: Sequence[BlockMatch]) -> List[Union[TextSegment, BlockMatch]]:
    """
    Order the raw matches by offset and fill the gaps between them with
    literal text. A match that starts inside a span already consumed is
    dropped, so each character ends up in exactly one place.
    """
    timeline: List[Union[TextSegment, BlockMatch]] = []
    cursor = 0
    for match in sorted(matches, key=lambda m: m.sort_key):
        if match.start < cursor:
            logger.debug("Dropping %s block at %d nested in consumed span ending at %d", match.kind.value, match.start, cursor)
            continue
        if match.start > cursor:
            timeline.append(TextSegment(content=content[cursor:match.start]))
        timeline.append(match)
        cursor = match.end
    if cursor < len(content):
        timeline.append(TextSegment(content=content[cursor:]))
    return timeline


def build_segment(match: BlockMatch) -> Segment:
    if match.kind == SegmentKind.INTERACTIVE_LIST:
        return InteractiveListSegment(title=match.title, sources=tuple(extract_sources(match.body or "")))
    if match.kind == SegmentKind.RELATED_CONTENT:
        return RelatedContentSegment(title=match.title, items=tuple(extract_related_items(match.body or "")))
    if match.kind == SegmentKind.VIDEO_CONTENT:
        return VideoContentSegment(title=match.title, url=match.url or "")
    raise ValueError(f"Unsupported block kind: {match.kind}")


class RegexMarkupParser(MarkupParser):
    """
    Two-phase parser: per-kind regex scans produce raw matches, then a single
    kind-agnostic sweep interleaves them with the text between them.
    """

    version = "regex-v1"

    def parse(self, content: str) -> List[Segment]:
        if not content:
            return []
        matches = scan_blocks(content)
        segments: List[Segment] = []
        for entry in sequence_matches(content, matches):
            if isinstance(entry, TextSegment):
                segments.append(entry)
            else:
                segments.append(build_segment(entry))
        logger.debug("Parsed %d chars into %d segments (%d blocks found)", len(content), len(segments), len(matches))
        return segments


_default_parser = RegexMarkupParser()


def parse_segments(content: str) -> List[Segment]:
    return _default_parser.parse(content)
