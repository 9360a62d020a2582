from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, Protocol

from .model import Document, Line


class ParserStrategy(Protocol):
    """
    Turn gemtext lines into typed Line units, one unit at a time.
    Implementations keep no state between calls.
    """

    def parse(self, text: str) -> Document:
        pass

    def iter_lines(self, lines: Iterable[str]) -> Iterator[Line]:
        pass

    def aiter_lines(self, lines: AsyncIterable[str]) -> AsyncIterator[Line]:
        pass

    def iter_file(self, path: Path) -> Iterator[Line]:
        pass
