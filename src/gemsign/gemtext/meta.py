"""Metadata helpers for gemtext posts: file extensions, title and date."""

import itertools
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ..core.errors import MissingMetadata
from ..core.model import Heading, Line, PlainText
from .parser import parse_file, parse_text

EXTENSIONS = (".gmi", ".gmni", ".gemini")
MIME_TYPE = "text/gemini"
MIME_TYPES = {ext.lstrip("."): MIME_TYPE for ext in EXTENSIONS}

# How many leading units are inspected for a title and date.
META_SCAN_LINES = 3

DATE_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2}) (\d{1,2}):(\d{2})([AaPp][Mm]) "
    r"([+-])(?:(\d{2})(\d{2})|(\d{1,2})(?::(\d{2}))?)$"
)


@dataclass(frozen=True)
class PostMeta:
    title: str
    date: datetime


def has_extension(file_name: str) -> bool:
    """Return True iff file_name ends with a gemtext extension (case-insensitive)."""
    return file_name.lower().endswith(EXTENSIONS)


def parse_date(value: str) -> datetime | None:
    """
    Parse a post date line such as ``2025-03-01 9:30pm -0800``.

    The zone may be written ``-0800``, ``-08:00`` or ``-8``.
    Returns an aware datetime, or None if the text is not a date.
    """
    m = DATE_RE.match(value.strip())
    if not m:
        return None
    year, month, day, hour, minute, ampm, sign, zh4, zm4, zh, zm = m.groups()
    if zh4 is not None:
        zh, zm = zh4, zm4
    h = int(hour)
    if not 1 <= h <= 12:
        return None
    h = h % 12 + (12 if ampm.lower() == "pm" else 0)
    offset = timedelta(hours=int(zh), minutes=int(zm or 0))
    if sign == "-":
        offset = -offset
    try:
        return datetime(
            int(year), int(month), int(day), h, int(minute),
            tzinfo=timezone(offset),
        )
    except ValueError:
        return None


def extract_meta(lines: list[Line], source: str | Path | None = None) -> PostMeta:
    """
    Derive title and date from the first few units of a document.

    Raises MissingMetadata naming the first field that could not be derived.
    """
    first = lines[0] if lines else None
    if not (isinstance(first, Heading) and first.level == 1):
        raise MissingMetadata("title", source)

    for ln in lines:
        if isinstance(ln, PlainText):
            date = parse_date(ln.text)
            if date is not None:
                return PostMeta(title=first.text, date=date)
    raise MissingMetadata("date", source)


def read_post_meta(source: Path | str) -> PostMeta:
    """Read title and date from a gemtext file (Path) or gemtext text (str)."""
    if isinstance(source, Path):
        units = parse_file(source)
        try:
            head = list(itertools.islice(units, META_SCAN_LINES))
        finally:
            units.close()
        return extract_meta(head, source)
    head = list(itertools.islice(parse_text(source), META_SCAN_LINES))
    return extract_meta(head)
