"""Signed manifests: ``userId:`` and ``signature:`` lines ahead of a manifest body.

The signature covers the UTF-8 bytes of the manifest body only, never the
two header lines.
"""

import logging
from pathlib import Path
from typing import Iterable

from ..core.errors import InvalidKeyEncoding, MalformedManifest
from ..core.model import SignedManifest
from ..crypto.keys import PrivateKey, Signature, UserID
from .builder import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SIGNATURE_FILE,
    DEFAULT_WORKERS,
    build_manifest,
    render_manifest,
)

logger = logging.getLogger(__name__)

USER_ID_PREFIX = "userId: "
SIGNATURE_PREFIX = "signature: "


def sign_manifest(private_key: PrivateKey, manifest_text: str) -> SignedManifest:
    sig = private_key.sign(manifest_text.encode("utf-8"))
    return SignedManifest(
        signer_id=private_key.user_id,
        signature=sig,
        manifest_text=manifest_text,
    )


def parse_signed_manifest(text: str) -> SignedManifest:
    """Split signed-manifest text into its two header lines and the body.

    Raises:
        MalformedManifest: The first two lines are not ``userId:`` and
            ``signature:``, or either value is not validly encoded
    """
    parts = text.split("\n", 2)
    if len(parts) < 3:
        raise MalformedManifest("Signed manifest must start with userId and signature lines")
    user_line, sig_line, body = parts
    user_line = user_line.rstrip("\r")
    sig_line = sig_line.rstrip("\r")
    if not user_line.startswith(USER_ID_PREFIX):
        raise MalformedManifest(f"Expected 'userId:' line, found: {user_line!r}")
    if not sig_line.startswith(SIGNATURE_PREFIX):
        raise MalformedManifest(f"Expected 'signature:' line, found: {sig_line!r}")
    try:
        signer = UserID.from_string(user_line[len(USER_ID_PREFIX):].strip())
        sig = Signature.from_string(sig_line[len(SIGNATURE_PREFIX):].strip())
    except InvalidKeyEncoding as e:
        raise MalformedManifest(f"Bad signature header: {e}") from e
    return SignedManifest(signer_id=signer, signature=sig, manifest_text=body)


def verify_signed_manifest(signed: SignedManifest | str) -> bool:
    """True iff the signature matches the body for the embedded userId."""
    if isinstance(signed, str):
        signed = parse_signed_manifest(signed)
    ok = signed.signature.is_valid(signed.signer_id, signed.manifest_text.encode("utf-8"))
    if not ok:
        logger.info("Signature check failed for %s", signed.signer_id)
    return ok


def _write_atomic(path: Path, text: str) -> None:
    """Write a file atomically."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


def sign_directory(
    dir_path: Path,
    private_key: PrivateKey,
    signature_file: str = DEFAULT_SIGNATURE_FILE,
    ignored: Iterable[str] = (),
    workers: int = DEFAULT_WORKERS,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    write: bool = True,
) -> SignedManifest:
    """Build, sign and (optionally) write a directory's signed manifest.
    
    Args:
        dir_path: Directory to sign
        private_key: Signer's key
        signature_file: Output file name inside dir_path, always ignored
        ignored: Additional file names to leave out of the manifest
        workers: Parallel hashing workers
        chunk_size: Read size per file
        write: If False, return the result without touching disk
    
    Returns:
        The SignedManifest that was (or would be) written
    
    Raises:
        FileExistsError: signature_file already exists in dir_path
    """
    dir_path = Path(dir_path)
    sig_path = dir_path / signature_file
    if write and sig_path.exists():
        raise FileExistsError(f"File already exists: {sig_path}")

    manifest = build_manifest(
        dir_path,
        ignored=frozenset(ignored) | {signature_file},
        workers=workers,
        chunk_size=chunk_size,
    )
    signed = sign_manifest(private_key, render_manifest(manifest))
    if write:
        _write_atomic(sig_path, signed.render())
        logger.info("Wrote %s (%d entries)", sig_path, len(manifest.entries))
    return signed
