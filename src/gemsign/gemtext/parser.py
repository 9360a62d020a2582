"""Streaming gemtext parser.

All parsing goes through one pure transition, :func:`step`, which takes the
current state and one newline-stripped line and returns the next state plus
the units it completed. :func:`parse_lines`, :func:`parse_lines_async` and
:func:`parse_byte_stream` are thin drivers over it.

Priority for each line: fence > (inside a fence: verbatim) > quote > link >
heading > list item > plain text.
"""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator

from ..core.errors import MalformedDocument
from ..core.model import (
    BlockQuote,
    Document,
    Heading,
    Line,
    Link,
    ListItem,
    PlainText,
    PreformattedBlock,
)
from ..core.ports import ParserStrategy

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"^```\s*(.*)$")
QUOTE_RE = re.compile(r"^> ?(.*)$")
LINK_RE = re.compile(r"^=>\s+(\S+)\s*(.*)$")
HEADING_RE = re.compile(r"^(#{1,3}) (.+)$")
LIST_RE = re.compile(r"^\* ?(.*)$")


@dataclass(frozen=True)
class _Idle:
    pass


@dataclass(frozen=True)
class InPre:
    info: str | None = None
    lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class InQuote:
    lines: tuple[str, ...] = ()


ParserState = _Idle | InPre | InQuote

NONE: ParserState = _Idle()


def match_fence(line: str) -> tuple[bool, str | None]:
    """Return (is_fence, info) for a line."""
    m = FENCE_RE.match(line)
    if not m:
        return False, None
    return True, m.group(1) or None


def match_single(line: str) -> Line:
    """Classify a line that is outside any block construct."""
    m = LINK_RE.match(line)
    if m:
        return Link(target=m.group(1), text=m.group(2) or None)
    m = HEADING_RE.match(line)
    if m:
        return Heading(level=len(m.group(1)), text=m.group(2))
    m = LIST_RE.match(line)
    if m:
        return ListItem(text=m.group(1))
    return PlainText(text=line)


def step(
    state: ParserState, line: str, line_number: int | None = None
) -> tuple[ParserState, tuple[Line, ...]]:
    """Advance the parser by one line.

    Args:
        state: Current parser state (``NONE``, ``InPre`` or ``InQuote``)
        line: One source line without its newline
        line_number: 1-based position, only used in error messages

    Returns:
        The new state and the units completed by this line. At most two units
        come out: a quote run closed by this line, then this line's own unit.

    Raises:
        MalformedDocument: A fence with an info string while already inside
            a preformatted block.
    """
    is_fence, info = match_fence(line)

    if isinstance(state, InPre):
        if not is_fence:
            return InPre(state.info, state.lines + (line,)), ()
        if info is not None:
            raise MalformedDocument(
                f"Expected end of preformatted block but found: {line}",
                line_number=line_number,
                line=line,
            )
        return NONE, (PreformattedBlock(info=state.info, lines=state.lines),)

    pending: tuple[Line, ...] = ()
    if is_fence:
        if isinstance(state, InQuote):
            pending = (BlockQuote(lines=state.lines),)
        return InPre(info=info), pending

    m = QUOTE_RE.match(line)
    if m:
        if isinstance(state, InQuote):
            return InQuote(state.lines + (m.group(1),)), ()
        return InQuote((m.group(1),)), ()

    if isinstance(state, InQuote):
        pending = (BlockQuote(lines=state.lines),)
    return NONE, pending + (match_single(line),)


def finish(state: ParserState) -> tuple[Line, ...]:
    """Flush whatever block is still open at end of input."""
    if isinstance(state, InPre):
        logger.debug("Unterminated preformatted block (%d lines)", len(state.lines))
        return (PreformattedBlock(info=state.info, lines=state.lines),)
    if isinstance(state, InQuote):
        return (BlockQuote(lines=state.lines),)
    return ()


def parse_lines(lines: Iterable[str]) -> Iterator[Line]:
    """Lazily parse newline-stripped lines into units."""
    state = NONE
    for n, line in enumerate(lines, start=1):
        state, out = step(state, line, n)
        yield from out
    yield from finish(state)


async def parse_lines_async(lines: AsyncIterable[str]) -> AsyncIterator[Line]:
    """Async counterpart of :func:`parse_lines`."""
    state = NONE
    n = 0
    async for line in lines:
        n += 1
        state, out = step(state, line, n)
        for unit in out:
            yield unit
    for unit in finish(state):
        yield unit


def split_text(text: str) -> list[str]:
    """Split a document into lines. A trailing newline does not add an empty line."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]


def parse_text(text: str) -> Iterator[Line]:
    return parse_lines(split_text(text))


def parse_doc(text: str) -> Document:
    return Document(lines=tuple(parse_text(text)))


def iter_file_lines(path: Path) -> Iterator[str]:
    """Yield lines of a UTF-8 file without reading it whole.

    Lines end at LF only. One trailing CR is dropped; any other CR is kept as
    text, the same as :func:`split_text` and :func:`parse_byte_stream`.
    """
    with path.open("r", encoding="utf-8", newline="\n") as f:
        for raw in f:
            if raw.endswith("\n"):
                raw = raw[:-1]
            yield raw[:-1] if raw.endswith("\r") else raw


def parse_file(path: Path) -> Iterator[Line]:
    return parse_lines(iter_file_lines(path))


async def _decode_lines(
    chunks: AsyncIterable[bytes], encoding: str
) -> AsyncIterator[str]:
    decoder = codecs.getincrementaldecoder(encoding)()
    buf = ""
    async for chunk in chunks:
        buf += decoder.decode(chunk)
        *complete, buf = buf.split("\n")
        for ln in complete:
            yield ln[:-1] if ln.endswith("\r") else ln
    buf += decoder.decode(b"", final=True)
    if buf:
        yield buf[:-1] if buf.endswith("\r") else buf


def parse_byte_stream(
    chunks: AsyncIterable[bytes], encoding: str = "utf-8"
) -> AsyncIterator[Line]:
    """Parse an async stream of raw bytes, decoding and splitting lines on the fly."""
    return parse_lines_async(_decode_lines(chunks, encoding))


class GemtextParser(ParserStrategy):
    def parse(self, text: str) -> Document:
        return parse_doc(text)

    def iter_lines(self, lines: Iterable[str]) -> Iterator[Line]:
        return parse_lines(lines)

    def aiter_lines(self, lines: AsyncIterable[str]) -> AsyncIterator[Line]:
        return parse_lines_async(lines)

    def iter_file(self, path: Path) -> Iterator[Line]:
        return parse_file(path)
