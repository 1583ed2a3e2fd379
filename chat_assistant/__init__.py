"""
Chat assistant core package.

This package currently focuses on rendering assistant replies. It exposes
dataclasses for message segments, a parser for the inline block markup used
by assistant replies (interactive source lists, videos, related content),
reply normalization, and a render service that caches interactive elements
per message.
"""
