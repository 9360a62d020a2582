"""Tests for the streaming gemtext parser."""

import asyncio
import tempfile
from pathlib import Path

import pytest

from gemsign.core.errors import MalformedDocument
from gemsign.core.model import (
    BlockQuote,
    Heading,
    Link,
    ListItem,
    PlainText,
    PreformattedBlock,
)
from gemsign.gemtext.parser import (
    NONE,
    InPre,
    InQuote,
    finish,
    parse_byte_stream,
    parse_doc,
    parse_file,
    parse_lines,
    parse_lines_async,
    parse_text,
    step,
)

FENCE = "```"


def test_heading_blank_and_text():
    """A title, a blank line and plain text."""
    units = list(parse_text("# Title\n\ntext\n"))

    assert units == [Heading(1, "Title"), PlainText(""), PlainText("text")]


def test_preformatted_block_with_info():
    """Fenced lines become one unit with the opening info string."""
    text = f"{FENCE}info\nL1\nL2\n{FENCE}"

    units = list(parse_text(text))

    assert units == [PreformattedBlock(info="info", lines=("L1", "L2"))]


def test_block_quote_run():
    """Consecutive quote lines collapse into one BlockQuote."""
    units = list(parse_text("> a\n> b\nc\n"))

    assert units == [BlockQuote(lines=("a", "b")), PlainText("c")]


def test_mixed_document():
    """Headings, fences and links in one document."""
    text = "\n".join([
        "# This is the title",
        "",
        FENCE,
        "block starts",
        "line 2",
        FENCE,
        "",
        "=> https://www.google.com",
    ])

    units = list(parse_text(text))

    assert units == [
        Heading(1, "This is the title"),
        PlainText(""),
        PreformattedBlock(info=None, lines=("block starts", "line 2")),
        PlainText(""),
        Link(target="https://www.google.com", text=None),
    ]


def test_link_with_display_text():
    """Link target and display text are split on whitespace."""
    units = list(parse_text("=> gemini://example.org/  Example   site"))

    assert units == [Link(target="gemini://example.org/", text="Example   site")]


def test_link_needs_whitespace_after_arrow():
    """`=>foo` is not a link."""
    units = list(parse_text("=>foo"))

    assert units == [PlainText("=>foo")]


def test_heading_levels():
    """Levels 1 to 3 are headings; deeper or spaceless ones are text."""
    text = "# one\n## two\n### three\n#### four\n#nospace"

    units = list(parse_text(text))

    assert units == [
        Heading(1, "one"),
        Heading(2, "two"),
        Heading(3, "three"),
        PlainText("#### four"),
        PlainText("#nospace"),
    ]


def test_list_items():
    """List items with and without the optional space."""
    units = list(parse_text("* first\n*second"))

    assert units == [ListItem("first"), ListItem("second")]


def test_quote_without_space():
    """`>` followed directly by text is still a quote."""
    units = list(parse_text(">tight\n>  spaced"))

    assert units == [BlockQuote(lines=("tight", " spaced"))]


def test_quote_closed_by_link_emits_both():
    """A link line ends a quote run and is emitted right after it."""
    units = list(parse_text("> q\n=> /x"))

    assert units == [BlockQuote(lines=("q",)), Link(target="/x")]


def test_quote_closed_by_fence():
    """A fence ends a quote run before opening the block."""
    units = list(parse_text(f"> q\n{FENCE}\ncode\n{FENCE}"))

    assert units == [
        BlockQuote(lines=("q",)),
        PreformattedBlock(info=None, lines=("code",)),
    ]


def test_markup_inside_fence_is_literal():
    """Nothing inside a fence is interpreted."""
    inner = ["# not a heading", "=> not a link", "> not a quote", "* not a list", ""]
    text = "\n".join([FENCE + "gemtext", *inner, FENCE])

    units = list(parse_text(text))

    assert units == [PreformattedBlock(info="gemtext", lines=tuple(inner))]


def test_fence_preserves_whitespace():
    """Interior lines come back exactly, including leading/trailing spaces."""
    inner = ["  indented", "trailing   ", "\ttab", ""]
    text = "\n".join([FENCE, *inner, FENCE, FENCE + "py", *inner, FENCE])

    blocks = [u for u in parse_text(text) if isinstance(u, PreformattedBlock)]

    assert len(blocks) == 2
    for block in blocks:
        assert list(block.lines) == inner


def test_fence_with_info_inside_block_is_fatal():
    """Opening a nested fence with an info string raises MalformedDocument."""
    text = f"{FENCE}\ncode\n{FENCE}python\nmore"

    with pytest.raises(MalformedDocument) as exc:
        list(parse_text(text))

    assert exc.value.line_number == 3
    assert "python" in str(exc.value)


def test_units_before_error_are_yielded():
    """The parser is lazy: units ahead of the bad fence still come out."""
    units = parse_text(f"# ok\n{FENCE}\n{FENCE}bad")

    assert next(units) == Heading(1, "ok")
    with pytest.raises(MalformedDocument):
        next(units)


def test_unterminated_fence_is_flushed():
    """An open fence at end of input is emitted, not an error."""
    units = list(parse_text(f"{FENCE}txt\na\nb"))

    assert units == [PreformattedBlock(info="txt", lines=("a", "b"))]


def test_unterminated_quote_is_flushed():
    """A quote run at end of input is emitted."""
    units = list(parse_text("> last"))

    assert units == [BlockQuote(lines=("last",))]


def test_crlf_lines():
    """Windows line endings are stripped."""
    units = list(parse_text("# T\r\nbody\r\n"))

    assert units == [Heading(1, "T"), PlainText("body")]


def test_parse_file_splits_like_parse_text():
    """Files split on LF only; CRLF loses its CR, a lone CR stays in the line."""
    data = f"# T\r\n{FENCE}\nL1\rstill L1\n  L2\r\n{FENCE}\n".encode("utf-8")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.gmi"
        path.write_bytes(data)

        from_file = list(parse_file(path))

    assert from_file == [
        Heading(1, "T"),
        PreformattedBlock(info=None, lines=("L1\rstill L1", "  L2")),
    ]
    assert from_file == list(parse_text(data.decode("utf-8")))


def test_parse_byte_stream_keeps_lone_cr():
    """The byte-stream driver agrees with parse_text on embedded CRs."""
    text = f"{FENCE}\na\rb\r\n{FENCE}\n"

    async def source():
        yield text.encode("utf-8")

    async def collect():
        return [u async for u in parse_byte_stream(source())]

    assert asyncio.run(collect()) == list(parse_text(text))
    assert list(parse_text(text)) == [PreformattedBlock(info=None, lines=("a\rb",))]


def test_fence_info_keeps_trailing_whitespace():
    """Only the whitespace between the backticks and the info is dropped."""
    units = list(parse_text(f"{FENCE}  py  \nx\n{FENCE}"))

    assert units == [PreformattedBlock(info="py  ", lines=("x",))]


def test_empty_text():
    """Empty input produces nothing."""
    assert list(parse_text("")) == []


def test_step_is_pure():
    """step returns new states and never mutates the old one."""
    state, out = step(NONE, f"{FENCE}x")
    assert state == InPre(info="x")
    assert out == ()

    state2, out = step(state, "line")
    assert state2 == InPre(info="x", lines=("line",))
    assert state == InPre(info="x")

    state3, out = step(state2, FENCE)
    assert state3 == NONE
    assert out == (PreformattedBlock(info="x", lines=("line",)),)


def test_step_quote_then_finish():
    """finish flushes an open quote accumulator."""
    state, out = step(NONE, "> a")

    assert state == InQuote(("a",))
    assert out == ()
    assert finish(state) == (BlockQuote(lines=("a",)),)
    assert finish(NONE) == ()


def test_parse_lines_is_lazy():
    """Units are pulled one at a time from an unbounded source."""
    def endless():
        n = 0
        while True:
            n += 1
            yield f"line {n}"

    units = parse_lines(endless())

    assert next(units) == PlainText("line 1")
    assert next(units) == PlainText("line 2")


def test_parse_lines_async_matches_sync():
    """The async driver yields the same units as the sync one."""
    lines = ["# Title", "> q1", "> q2", "* item", FENCE, "x", FENCE, "=> a b"]

    async def source():
        for ln in lines:
            yield ln

    async def collect():
        return [u async for u in parse_lines_async(source())]

    assert asyncio.run(collect()) == list(parse_lines(lines))


def test_parse_byte_stream_splits_chunks():
    """Lines and multi-byte characters may straddle chunk boundaries."""
    data = "# Café\n\n=> /a Ä link\nlast".encode("utf-8")
    chunks = [data[i:i + 3] for i in range(0, len(data), 3)]

    async def source():
        for c in chunks:
            yield c

    async def collect():
        return [u async for u in parse_byte_stream(source())]

    assert asyncio.run(collect()) == [
        Heading(1, "Café"),
        PlainText(""),
        Link(target="/a", text="Ä link"),
        PlainText("last"),
    ]


def test_document_title_and_links():
    """Document derives its title from a leading H1 and filters links."""
    doc = parse_doc("#  Spaced Title \n=> /a A\ntext\n=> /b")

    assert doc.title == "Spaced Title"
    assert doc.links == (Link("/a", "A"), Link("/b"))


def test_document_title_requires_first_line():
    """A heading that is not the first line, or not level 1, is not a title."""
    assert parse_doc("\n# Late").title is None
    assert parse_doc("## Sub").title is None
    assert parse_doc("").title is None


def test_to_dict():
    """Units serialize with a type discriminator."""
    assert Heading(2, "x").to_dict() == {"type": "heading", "level": 2, "text": "x"}
    assert PreformattedBlock("py", ("a",)).to_dict() == {
        "type": "pre", "info": "py", "lines": ["a"],
    }
