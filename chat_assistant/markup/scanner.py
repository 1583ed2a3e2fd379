"""
Block scanning and nested-record extraction for assistant message markup.

Two levels of scanning live here. `scan_blocks` finds the block tags of the
three supported kinds; `extract_sources` and `extract_related_items` pull the
fixed-arity records out of a block body. Nothing here knows about ordering
across kinds, which is the sequencer's job (see `engine.py`).
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterator, List, Optional, Tuple

from .models import BlockMatch, RelatedItem, SegmentKind, Source

logger = logging.getLogger(__name__)

# Bodies are lazy so two blocks of the same kind stop at their own closer.
# Titles and video fields stop at the next bracket or newline, which keeps
# every failed attempt bounded by the distance to the next tag.
INTERACTIVE_LIST_RE = re.compile(r"\[INTERACTIVE_LIST:([^\[\]\n]*)\]([\s\S]*?)\[/INTERACTIVE_LIST\]")
RELATED_CONTENT_RE = re.compile(r"\[RELATED_CONTENT:([^\[\]\n]*)\]([\s\S]*?)\[/RELATED_CONTENT\]")
VIDEO_CONTENT_RE = re.compile(r"\[VIDEO_CONTENT:([^\[\]\n:]*):([^\[\]\n]*)\]")

INTERACTIVE_LIST_CLOSE = "[/INTERACTIVE_LIST]"
RELATED_CONTENT_CLOSE = "[/RELATED_CONTENT]"

# Record candidates cannot contain brackets or newlines, so a broken record
# never runs into the one after it.
SOURCE_RE = re.compile(r"\[SOURCE:([^\[\]\n]*)\]")
CONTENT_RE = re.compile(r"\[CONTENT:([^\[\]\n]*)\]")

# A colon followed by "//" belongs to a URL scheme, not to the record layout.
FIELD_SEPARATOR_RE = re.compile(r":(?!//)")

SOURCE_ARITY = 5
CONTENT_ARITY = 7


def _scan_bodied(text: str, pattern: re.Pattern, close_tag: str, kind: SegmentKind) -> Iterator[BlockMatch]:
    # Nothing after the last closer can match; without this bound every
    # unterminated open tag would rescan the rest of the message.
    last_close = text.rfind(close_tag)
    if last_close < 0:
        return
    for match in pattern.finditer(text, 0, last_close + len(close_tag)):
        yield BlockMatch(
            kind=kind,
            start=match.start(),
            end=match.end(),
            title=match.group(1),
            body=match.group(2),
        )


def scan_interactive_lists(text: str) -> List[BlockMatch]:
    return list(_scan_bodied(text, INTERACTIVE_LIST_RE, INTERACTIVE_LIST_CLOSE, SegmentKind.INTERACTIVE_LIST))


def scan_related_content(text: str) -> List[BlockMatch]:
    return list(_scan_bodied(text, RELATED_CONTENT_RE, RELATED_CONTENT_CLOSE, SegmentKind.RELATED_CONTENT))


def scan_videos(text: str) -> List[BlockMatch]:
    return [
        BlockMatch(
            kind=SegmentKind.VIDEO_CONTENT,
            start=match.start(),
            end=match.end(),
            title=match.group(1),
            url=match.group(2),
        )
        for match in VIDEO_CONTENT_RE.finditer(text)
    ]


BLOCK_SCANNERS: Tuple[Callable[[str], List[BlockMatch]], ...] = (
    scan_interactive_lists,
    scan_related_content,
    scan_videos,
)


def scan_blocks(text: str) -> List[BlockMatch]:
    """
    Run every per-kind scan over `text` and return the raw matches, grouped
    by kind in scanner order. Open tags without a closer produce nothing.
    """
    matches: List[BlockMatch] = []
    for scanner in BLOCK_SCANNERS:
        matches.extend(scanner(text))
    return matches


def split_fields(raw: str, arity: int) -> Optional[List[str]]:
    """
    Split the inside of a record tag into exactly `arity` positional fields.
    The last field keeps any extra colons. Returns None when the record is
    short a field or has an empty id.
    """
    fields = FIELD_SEPARATOR_RE.split(raw, maxsplit=arity - 1)
    if len(fields) != arity or not fields[0].strip():
        return None
    return fields


def extract_sources(body: str) -> List[Source]:
    sources: List[Source] = []
    for match in SOURCE_RE.finditer(body):
        fields = split_fields(match.group(1), SOURCE_ARITY)
        if fields is None:
            logger.debug("Skipping malformed SOURCE record: %r", match.group(0))
            continue
        record_id, title, icon, description, url = fields
        sources.append(Source(id=record_id, title=title, icon=icon, description=description, url=url))
    return sources


def extract_related_items(body: str) -> List[RelatedItem]:
    items: List[RelatedItem] = []
    for match in CONTENT_RE.finditer(body):
        fields = split_fields(match.group(1), CONTENT_ARITY)
        if fields is None:
            logger.debug("Skipping malformed CONTENT record: %r", match.group(0))
            continue
        record_id, title, description, url, source, source_icon, short_title = fields
        items.append(
            RelatedItem(
                id=record_id,
                title=title,
                description=description,
                url=url,
                source=source,
                source_icon=source_icon or None,
                short_title=short_title or None,
            )
        )
    return items
