"""Ed25519 keys, user IDs and detached signatures.

Text forms:
- PrivateKey: base58check (32 key bytes + 4 checksum bytes before encoding),
  since people copy private keys by hand when signing.
- UserID: base58 of the 32-byte public key, no checksum.
- Signature: base58 of the 64-byte signature, no checksum.

Keep a PrivateKey in memory only as long as signing needs it.
"""

import logging
from dataclasses import dataclass

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from ..core.errors import InvalidKeyEncoding

logger = logging.getLogger(__name__)

PRIVATE_KEY_BYTES = 32
USER_ID_BYTES = 32
SIGNATURE_BYTES = 64
CHECKSUM_BYTES = 4
# A base58check private key decodes to this many raw bytes.
ENCODED_PRIVATE_KEY_BYTES = PRIVATE_KEY_BYTES + CHECKSUM_BYTES


def _b58(data: bytes) -> str:
    return base58.b58encode(data).decode("ascii")


def _b58decode(value: str, what: str) -> bytes:
    if not isinstance(value, str):
        raise InvalidKeyEncoding(f"Invalid {what} string of type {type(value).__name__}")
    if not value:
        raise InvalidKeyEncoding(f"{what} must not be empty.")
    try:
        return base58.b58decode(value)
    except ValueError as e:
        raise InvalidKeyEncoding(f"{what} not valid base58") from e


class UserID:
    """The 32-byte ed25519 public key that identifies a signer."""

    __slots__ = ("bytes", "base58")

    def __init__(self, raw: bytes, text: str | None = None):
        self._validate(raw)
        self.bytes = bytes(raw)
        self.base58 = text if text is not None else _b58(raw)

    @staticmethod
    def _validate(raw: bytes) -> None:
        if len(raw) < USER_ID_BYTES:
            raise InvalidKeyEncoding("UserID too short")
        if len(raw) == ENCODED_PRIVATE_KEY_BYTES:
            raise InvalidKeyEncoding("UserID too long. (This may be a private key!?)")
        if len(raw) > USER_ID_BYTES:
            raise InvalidKeyEncoding("UserID too long.")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "UserID":
        return cls(raw)

    @classmethod
    def from_string(cls, value: str) -> "UserID":
        raw = _b58decode(value, "UserID")
        return cls(raw, value)

    @classmethod
    def try_from_string(cls, value: str) -> "UserID | None":
        try:
            return cls.from_string(value)
        except InvalidKeyEncoding:
            return None

    def public_key(self) -> ed25519.Ed25519PublicKey:
        try:
            return ed25519.Ed25519PublicKey.from_public_bytes(self.bytes)
        except ValueError as e:
            raise InvalidKeyEncoding(f"UserID is not a valid ed25519 key: {self}") from e

    def __str__(self) -> str:
        return self.base58

    def __repr__(self) -> str:
        return f"UserID({self.base58!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UserID) and other.bytes == self.bytes

    def __hash__(self) -> int:
        return hash(self.bytes)


class Signature:
    """A detached 64-byte ed25519 signature."""

    __slots__ = ("bytes", "base58")

    def __init__(self, raw: bytes, text: str | None = None):
        if len(raw) < SIGNATURE_BYTES:
            raise InvalidKeyEncoding("Signature too short")
        if len(raw) > SIGNATURE_BYTES:
            raise InvalidKeyEncoding("Signature too long.")
        self.bytes = bytes(raw)
        self.base58 = text if text is not None else _b58(raw)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Signature":
        return cls(raw)

    @classmethod
    def from_string(cls, value: str) -> "Signature":
        raw = _b58decode(value, "Signature")
        return cls(raw, value)

    @classmethod
    def try_from_string(cls, value: str) -> "Signature | None":
        try:
            return cls.from_string(value)
        except InvalidKeyEncoding:
            return None

    def is_valid(self, user_id: UserID, message: bytes) -> bool:
        """Check this signature over message. A mismatch is False, never an error."""
        try:
            user_id.public_key().verify(self.bytes, message)
        except InvalidSignature:
            return False
        return True

    def __str__(self) -> str:
        return self.base58

    def __repr__(self) -> str:
        return f"Signature({self.base58!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Signature) and other.bytes == self.bytes

    def __hash__(self) -> int:
        return hash(self.bytes)


class PrivateKey:
    """An ed25519 signing key, text-encoded as base58check."""

    def __init__(self, scalar: bytes):
        if len(scalar) != PRIVATE_KEY_BYTES:
            raise InvalidKeyEncoding(
                f"Private key must be {PRIVATE_KEY_BYTES} bytes, got {len(scalar)}"
            )
        self._key: ed25519.Ed25519PrivateKey | None = (
            ed25519.Ed25519PrivateKey.from_private_bytes(bytes(scalar))
        )
        public = self._key.public_key().public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
        self.user_id = UserID.from_bytes(public)

    @classmethod
    def generate(cls) -> "PrivateKey":
        """Create a new random private key (and with it a new UserID)."""
        key = ed25519.Ed25519PrivateKey.generate()
        return cls(key.private_bytes(
            serialization.Encoding.Raw,
            serialization.PrivateFormat.Raw,
            serialization.NoEncryption(),
        ))

    @classmethod
    def from_bytes(cls, scalar: bytes) -> "PrivateKey":
        return cls(scalar)

    @classmethod
    def from_base58(cls, value: str) -> "PrivateKey":
        """Decode a base58check private key.

        Raises:
            InvalidKeyEncoding: Bad alphabet, wrong length or checksum mismatch
        """
        raw = _b58decode(value, "Private key")
        if len(raw) < ENCODED_PRIVATE_KEY_BYTES:
            raise InvalidKeyEncoding("Key is too short.")
        if len(raw) > ENCODED_PRIVATE_KEY_BYTES:
            raise InvalidKeyEncoding("Key is too long.")
        try:
            scalar = base58.b58decode_check(value)
        except ValueError as e:
            raise InvalidKeyEncoding("Invalid key (checksum mismatch)") from e
        return cls(scalar)

    def _require_key(self) -> ed25519.Ed25519PrivateKey:
        if self._key is None:
            raise ValueError("Private key has been scrubbed")
        return self._key

    @property
    def scalar(self) -> bytes:
        return self._require_key().private_bytes(
            serialization.Encoding.Raw,
            serialization.PrivateFormat.Raw,
            serialization.NoEncryption(),
        )

    @property
    def base58(self) -> str:
        return encode_private_key(self.scalar)

    def sign(self, message: bytes) -> Signature:
        """Create a detached signature over message."""
        return Signature.from_bytes(self._require_key().sign(message))

    def scrub(self) -> None:
        """Drop the key material. Python gives no guarantee the memory is zeroed."""
        self._key = None

    def __repr__(self) -> str:
        return f"PrivateKey(user_id={self.user_id.base58!r})"


@dataclass(frozen=True)
class KeyPair:
    private_key: PrivateKey
    user_id: UserID


def generate() -> KeyPair:
    priv = PrivateKey.generate()
    logger.debug("Generated key for %s", priv.user_id)
    return KeyPair(private_key=priv, user_id=priv.user_id)


def encode_private_key(scalar: bytes) -> str:
    if len(scalar) != PRIVATE_KEY_BYTES:
        raise InvalidKeyEncoding(
            f"Private key must be {PRIVATE_KEY_BYTES} bytes, got {len(scalar)}"
        )
    return base58.b58encode_check(scalar).decode("ascii")


def decode_private_key(value: str) -> KeyPair:
    priv = PrivateKey.from_base58(value)
    return KeyPair(private_key=priv, user_id=priv.user_id)


def sign(private_scalar: bytes, message: bytes) -> Signature:
    return PrivateKey.from_bytes(private_scalar).sign(message)


def verify(
    user_id: UserID | bytes | str,
    message: bytes,
    signature: Signature | bytes | str,
) -> bool:
    """Verify a detached signature.

    Returns False for a well-formed signature that does not match. Raises
    InvalidKeyEncoding only when user_id or signature is structurally wrong.
    """
    if isinstance(user_id, str):
        user_id = UserID.from_string(user_id)
    elif not isinstance(user_id, UserID):
        user_id = UserID.from_bytes(user_id)
    if isinstance(signature, str):
        signature = Signature.from_string(signature)
    elif not isinstance(signature, Signature):
        signature = Signature.from_bytes(signature)
    return signature.is_valid(user_id, message)
