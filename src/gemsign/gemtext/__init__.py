"""Gemtext parsing."""

from .meta import EXTENSIONS, MIME_TYPE, PostMeta, has_extension, read_post_meta
from .parser import (
    GemtextParser,
    parse_byte_stream,
    parse_doc,
    parse_lines,
    parse_lines_async,
    parse_text,
    step,
)

__all__ = [
    "EXTENSIONS",
    "MIME_TYPE",
    "PostMeta",
    "has_extension",
    "read_post_meta",
    "GemtextParser",
    "parse_byte_stream",
    "parse_doc",
    "parse_lines",
    "parse_lines_async",
    "parse_text",
    "step",
]
