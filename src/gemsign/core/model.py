from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Union

if TYPE_CHECKING:
    from ..crypto.keys import Signature, UserID
    from ..manifest.hashing import Sha256Digest
    from ..manifest.uuid7 import UUIDv7


@dataclass(frozen=True)
class Heading:
    kind: ClassVar[str] = "heading"
    level: int  # 1..3
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "level": self.level, "text": self.text}


@dataclass(frozen=True)
class Link:
    kind: ClassVar[str] = "link"
    target: str  # URL or relative path, as written
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "target": self.target, "text": self.text}


@dataclass(frozen=True)
class PlainText:
    kind: ClassVar[str] = "text"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "text": self.text}


@dataclass(frozen=True)
class ListItem:
    kind: ClassVar[str] = "list"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "text": self.text}


@dataclass(frozen=True)
class PreformattedBlock:
    """Lines between two fence markers, kept verbatim."""

    kind: ClassVar[str] = "pre"
    info: str | None = None  # text after the opening fence
    lines: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "info": self.info, "lines": list(self.lines)}


@dataclass(frozen=True)
class BlockQuote:
    """A contiguous run of `>` lines."""

    kind: ClassVar[str] = "quote"
    lines: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "lines": list(self.lines)}


Line = Union[Heading, Link, PlainText, ListItem, PreformattedBlock, BlockQuote]

LINE_TYPES: tuple[type, ...] = (Heading, Link, PlainText, ListItem, PreformattedBlock, BlockQuote)


@dataclass(frozen=True)
class Document:
    lines: tuple[Line, ...] = ()

    @property
    def title(self) -> str | None:
        first = self.lines[0] if self.lines else None
        if isinstance(first, Heading) and first.level == 1:
            return first.text.strip()
        return None

    @property
    def links(self) -> tuple[Link, ...]:
        return tuple(ln for ln in self.lines if isinstance(ln, Link))


@dataclass(frozen=True)
class ManifestEntry:
    name: str  # file name within the manifest's directory, unescaped
    digest: Sha256Digest
    size_bytes: int


@dataclass(frozen=True)
class Manifest:
    id: UUIDv7
    utc_offset_minutes: int
    entries: tuple[ManifestEntry, ...] = ()
    modified_at_utc_ms: int | None = None

    def names(self) -> list[str]:
        return [e.name for e in self.entries]


@dataclass(frozen=True)
class SignedManifest:
    signer_id: UserID
    signature: Signature
    manifest_text: str = field(repr=False)

    def render(self) -> str:
        return "\n".join([
            f"userId: {self.signer_id.base58}",
            f"signature: {self.signature.base58}",
            self.manifest_text,
        ])
