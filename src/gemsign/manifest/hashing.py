"""SHA-256 content hashing with base-58 text form."""

import asyncio
import hashlib
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import base58

from ..core.errors import InvalidDigest, IOFailure

logger = logging.getLogger(__name__)

DIGEST_BYTES = 32
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Sha256Digest:
    """A 32-byte SHA-256 digest. Equality is plain byte equality."""

    bytes: bytes

    def __post_init__(self) -> None:
        if len(self.bytes) != DIGEST_BYTES:
            raise InvalidDigest(f"Expected {DIGEST_BYTES} bytes, found {len(self.bytes)}")

    @property
    def base58(self) -> str:
        return base58.b58encode(self.bytes).decode("ascii")

    @classmethod
    def from_base58(cls, value: str) -> "Sha256Digest":
        try:
            raw = base58.b58decode(value)
        except ValueError as e:
            raise InvalidDigest(f"Digest not valid base58: {value!r}") from e
        return cls(raw)

    def __str__(self) -> str:
        return self.base58


@dataclass(frozen=True)
class FileHash:
    digest: Sha256Digest
    size_bytes: int


def hash_bytes(data: bytes) -> Sha256Digest:
    return Sha256Digest(hashlib.sha256(data).digest())


def hash_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Sha256Digest:
    """Hash a binary stream incrementally, never holding more than one chunk."""
    sha256 = hashlib.sha256()
    while chunk := stream.read(chunk_size):
        sha256.update(chunk)
    return Sha256Digest(sha256.digest())


def hash_file(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> FileHash:
    """Compute digest and size of a regular file.
    
    Args:
        path: File to hash
        chunk_size: Read size in bytes
    
    Returns:
        FileHash with the digest and the size reported by stat
    
    Raises:
        IOFailure: The path is missing, not a regular file, or unreadable
    """
    path = Path(path)
    try:
        with path.open("rb") as f:
            st = os.fstat(f.fileno())
            if not stat.S_ISREG(st.st_mode):
                raise IOFailure(path, message=f"Path is not a file: {path}")
            digest = hash_stream(f, chunk_size)
    except IsADirectoryError as e:
        raise IOFailure(path, e, message=f"Path is not a file: {path}") from e
    except OSError as e:
        raise IOFailure(path, e) from e
    logger.debug("Hashed %s (%d bytes): %s", path, st.st_size, digest)
    return FileHash(digest=digest, size_bytes=st.st_size)


async def hash_file_async(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> FileHash:
    return await asyncio.to_thread(hash_file, path, chunk_size)
