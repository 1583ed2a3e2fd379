"""
Example: split one assistant message into render-ready segments.

Usage:
    python3 render_demo.py --file /path/to/message.txt
    python3 render_demo.py --text "Intro [VIDEO_CONTENT:Lecture 1:https://youtu.be/x]" --json
"""

import argparse
import json
import logging
from pathlib import Path

from chat_assistant.markup import (
    InteractiveListSegment,
    RelatedContentSegment,
    TextSegment,
    VideoContentSegment,
    parse_segments,
    segments_to_dicts,
)


def setup_logging(level: str, log_dir: Path = Path("./logs")) -> None:
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "render_demo.log", encoding="utf-8"),
        ],
        force=True,
    )


def describe(segment) -> str:
    if isinstance(segment, TextSegment):
        return f"text: {segment.content!r}"
    if isinstance(segment, InteractiveListSegment):
        lines = [f"interactive list: {segment.title} ({len(segment.sources)} sources)"]
        lines.extend(f"  [{s.id}] {s.title} <{s.url}>" for s in segment.sources)
        return "\n".join(lines)
    if isinstance(segment, RelatedContentSegment):
        lines = [f"related content: {segment.title} ({len(segment.items)} items)"]
        lines.extend(f"  [{i.id}] {i.title} via {i.source} <{i.url}>" for i in segment.items)
        return "\n".join(lines)
    if isinstance(segment, VideoContentSegment):
        return f"video: {segment.title} <{segment.url}>"
    return repr(segment)


def main():
    parser = argparse.ArgumentParser()
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Path to a file holding one message")
    source.add_argument("--text", help="Message text")
    parser.add_argument("--json", action="store_true", help="Print segments as JSON")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.file is not None:
        if not args.file.exists():
            raise FileNotFoundError(f"Message file not found: {args.file}")
        content = args.file.read_text(encoding="utf-8")
    else:
        content = args.text

    segments = parse_segments(content)
    if args.json:
        print(json.dumps(segments_to_dicts(segments), ensure_ascii=False, indent=2))
        return
    for index, segment in enumerate(segments):
        print(f"#{index} {describe(segment)}")


if __name__ == "__main__":
    main()
