"""Time-ordered UUIDv7 identifiers with a base-58 text form."""

import secrets
import time
import uuid

import base58

_VERSION = 7
_TS_MASK = (1 << 48) - 1


class UUIDv7:
    """
    A version-7 UUID: 48-bit unix millisecond timestamp, then random bits.
    str() gives the base-58 form used in manifests.
    """

    __slots__ = ("_value",)

    def __init__(self, value: uuid.UUID):
        if value.version != _VERSION or value.variant != uuid.RFC_4122:
            raise ValueError(f"Expected UUID v7, but got {value} (v{value.version})")
        self._value = value

    @classmethod
    def create(cls, timestamp_ms: int | None = None) -> "UUIDv7":
        if timestamp_ms is None:
            timestamp_ms = time.time_ns() // 1_000_000
        if not 0 <= timestamp_ms <= _TS_MASK:
            raise ValueError(f"Timestamp out of range: {timestamp_ms}")
        rand_a = secrets.randbits(12)
        rand_b = secrets.randbits(62)
        n = (timestamp_ms << 80) | (_VERSION << 76) | (rand_a << 64) | (0b10 << 62) | rand_b
        return cls(uuid.UUID(int=n))

    @classmethod
    def from_string(cls, value: str) -> "UUIDv7":
        """Parse the canonical dashed hex form."""
        return cls(uuid.UUID(value))

    @classmethod
    def from_base58(cls, value: str) -> "UUIDv7":
        raw = base58.b58decode(value)
        if len(raw) != 16:
            raise ValueError(f"Expected 16 bytes for a UUID, got {len(raw)}")
        return cls(uuid.UUID(bytes=raw))

    @property
    def value(self) -> uuid.UUID:
        return self._value

    @property
    def base58(self) -> str:
        return base58.b58encode(self._value.bytes).decode("ascii")

    @property
    def timestamp_utc_ms(self) -> int:
        return self._value.int >> 80

    def __str__(self) -> str:
        return self.base58

    def __repr__(self) -> str:
        return f"UUIDv7('{self._value}')"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UUIDv7) and other._value == self._value

    def __lt__(self, other: "UUIDv7") -> bool:
        return self._value.int < other._value.int

    def __hash__(self) -> int:
        return hash(self._value)
