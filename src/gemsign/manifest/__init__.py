"""Content-addressed directory manifests and their signatures."""

from .builder import (
    DEFAULT_SIGNATURE_FILE,
    build_manifest,
    hash_dir,
    make_unsigned_manifest,
    parse_manifest,
    render_manifest,
    sort_entries,
)
from .hashing import FileHash, Sha256Digest, hash_bytes, hash_file, hash_stream
from .signing import (
    parse_signed_manifest,
    sign_directory,
    sign_manifest,
    verify_signed_manifest,
)
from .uuid7 import UUIDv7

__all__ = [
    "DEFAULT_SIGNATURE_FILE",
    "build_manifest",
    "hash_dir",
    "make_unsigned_manifest",
    "parse_manifest",
    "render_manifest",
    "sort_entries",
    "FileHash",
    "Sha256Digest",
    "hash_bytes",
    "hash_file",
    "hash_stream",
    "parse_signed_manifest",
    "sign_directory",
    "sign_manifest",
    "verify_signed_manifest",
    "UUIDv7",
]
