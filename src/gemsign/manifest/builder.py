"""Build, render and read back gemtext manifests of a flat directory.

A manifest lists the files of one directory with their SHA-256 hashes and
sizes, under a time-ordered UUIDv7 identity:

    uuid: <base58 uuid>
    utcOffset: <minutes east of UTC>

    => <escaped name>
    hash: <base58 sha256>
    bytes: <size>

The text is itself gemtext: a reader can browse it, and the files it links
to are relative to the manifest's directory.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Iterable
from urllib.parse import quote, unquote

from ..core.errors import InvalidDigest, IOFailure, MalformedManifest
from ..core.model import Link, Manifest, ManifestEntry, PlainText
from ..gemtext.parser import parse_text
from .hashing import DEFAULT_CHUNK_SIZE, Sha256Digest, hash_file
from .uuid7 import UUIDv7

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE_FILE = "sig.gmi"
DEFAULT_IGNORED = frozenset({DEFAULT_SIGNATURE_FILE})
DEFAULT_WORKERS = 4

INDEX_PREFIX = "index."

# Characters left unescaped in link targets, matching JavaScript's encodeURI.
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def local_utc_offset_minutes() -> int:
    """Minutes east of UTC for the local zone right now."""
    offset = datetime.now().astimezone().utcoffset()
    return int(offset.total_seconds() // 60) if offset is not None else 0


def list_files(dir_path: Path, ignored: Iterable[str] = DEFAULT_IGNORED) -> list[Path]:
    """List the direct regular-file children of dir_path, skipping ignored names.

    Raises:
        IOFailure: dir_path is missing, not a directory, or cannot be listed
    """
    ignored = frozenset(ignored)
    dir_path = Path(dir_path)
    if not dir_path.is_dir():
        raise IOFailure(dir_path, message=f"No such directory: {dir_path}")
    out = []
    try:
        with os.scandir(dir_path) as it:
            for entry in it:
                if not entry.is_file(follow_symlinks=True):
                    continue
                if entry.name in ignored:
                    continue
                out.append(dir_path / entry.name)
    except OSError as e:
        raise IOFailure(dir_path, e) from e
    return out


def hash_dir(
    dir_path: Path,
    ignored: Iterable[str] = DEFAULT_IGNORED,
    workers: int = DEFAULT_WORKERS,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[ManifestEntry]:
    """Hash every direct file of a directory. The result is unsorted.

    Args:
        dir_path: Directory to hash (not recursive)
        ignored: File names to leave out
        workers: Number of files hashed in parallel
        chunk_size: Read size per file

    Returns:
        One ManifestEntry per file, in completion order
    """
    files = list_files(dir_path, ignored)
    if not files:
        return []

    def _one(path: Path) -> ManifestEntry:
        fh = hash_file(path, chunk_size)
        return ManifestEntry(name=path.name, digest=fh.digest, size_bytes=fh.size_bytes)

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = [pool.submit(_one, p) for p in files]
        entries = [f.result() for f in futures]
    logger.info("Hashed %d files in %s", len(entries), dir_path)
    return entries


def entry_sort_key(entry: ManifestEntry) -> tuple[bool, str]:
    return (not entry.name.startswith(INDEX_PREFIX), entry.name)


def sort_entries(entries: Iterable[ManifestEntry]) -> list[ManifestEntry]:
    """Order entries: ``index.*`` first, then by raw name."""
    return sorted(entries, key=entry_sort_key)


def build_manifest(
    dir_path: Path,
    ignored: Iterable[str] = DEFAULT_IGNORED,
    workers: int = DEFAULT_WORKERS,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    now_ms: int | None = None,
    utc_offset_minutes: int | None = None,
    modified_at_utc_ms: int | None = None,
) -> Manifest:
    """Hash a directory and wrap the sorted entries in a new Manifest."""
    entries = sort_entries(hash_dir(dir_path, ignored, workers, chunk_size))
    if utc_offset_minutes is None:
        utc_offset_minutes = local_utc_offset_minutes()
    manifest = Manifest(
        id=UUIDv7.create(now_ms),
        utc_offset_minutes=utc_offset_minutes,
        entries=tuple(entries),
        modified_at_utc_ms=modified_at_utc_ms,
    )
    logger.debug("Built manifest %s for %s", manifest.id, dir_path)
    return manifest


def render_manifest(manifest: Manifest) -> str:
    lines = [
        f"uuid: {manifest.id.base58}",
        f"utcOffset: {manifest.utc_offset_minutes}",
    ]
    if manifest.modified_at_utc_ms is not None:
        lines.append(f"modified: {manifest.modified_at_utc_ms}")
    lines.append("")
    for entry in manifest.entries:
        lines.append(f"=> {quote(entry.name, safe=_URI_SAFE)}")
        lines.append(f"hash: {entry.digest.base58}")
        lines.append(f"bytes: {entry.size_bytes}")
        lines.append("")
    return "\n".join(lines) + "\n"


def make_unsigned_manifest(dir_path: Path, **kwargs) -> str:
    return render_manifest(build_manifest(dir_path, **kwargs))


def _field(unit: object, key: str) -> str | None:
    if isinstance(unit, PlainText) and unit.text.startswith(f"{key}:"):
        return unit.text[len(key) + 1:].strip()
    return None


def _int_field(value: str, key: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise MalformedManifest(f"Invalid {key}: {value!r}") from e


def parse_manifest(text: str) -> Manifest:
    """Read manifest text back into a Manifest.

    Raises:
        MalformedManifest: Missing uuid/utcOffset header, or an entry without
            a valid hash and size
    """
    headers: dict[str, str] = {}
    entries: list[ManifestEntry] = []
    current: dict[str, str] | None = None

    def _close() -> None:
        if current is None:
            return
        name = current["name"]
        if "hash" not in current or "bytes" not in current:
            raise MalformedManifest(f"Incomplete entry for {name!r}")
        try:
            digest = Sha256Digest.from_base58(current["hash"])
        except InvalidDigest as e:
            raise MalformedManifest(f"Invalid hash for {name!r}: {e}") from e
        entries.append(ManifestEntry(
            name=name,
            digest=digest,
            size_bytes=_int_field(current["bytes"], "bytes"),
        ))

    for unit in parse_text(text):
        if isinstance(unit, Link):
            _close()
            current = {"name": unquote(unit.target)}
            continue
        if current is None:
            for key in ("uuid", "utcOffset", "modified"):
                value = _field(unit, key)
                if value is not None:
                    headers[key] = value
            continue
        for key in ("hash", "bytes"):
            value = _field(unit, key)
            if value is not None:
                current[key] = value
    _close()

    if "uuid" not in headers:
        raise MalformedManifest("Missing uuid header")
    if "utcOffset" not in headers:
        raise MalformedManifest("Missing utcOffset header")
    try:
        manifest_id = UUIDv7.from_base58(headers["uuid"])
    except ValueError as e:
        raise MalformedManifest(f"Invalid uuid: {headers['uuid']!r}") from e
    modified = headers.get("modified")

    names = [e.name for e in entries]
    if len(set(names)) != len(names):
        raise MalformedManifest("Duplicate file names in manifest")

    return Manifest(
        id=manifest_id,
        utc_offset_minutes=_int_field(headers["utcOffset"], "utcOffset"),
        entries=tuple(entries),
        modified_at_utc_ms=_int_field(modified, "modified") if modified is not None else None,
    )
