"""Ed25519 key management and detached signatures."""

from .keys import (
    KeyPair,
    PrivateKey,
    Signature,
    UserID,
    decode_private_key,
    encode_private_key,
    generate,
    sign,
    verify,
)

__all__ = [
    "KeyPair",
    "PrivateKey",
    "Signature",
    "UserID",
    "decode_private_key",
    "encode_private_key",
    "generate",
    "sign",
    "verify",
]
