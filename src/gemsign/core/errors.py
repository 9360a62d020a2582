"""Exception hierarchy shared by the parser, hasher and signer."""

from pathlib import Path


class GemsignError(Exception):
    """Base class for all gemsign errors."""


class MalformedDocument(GemsignError):
    """Gemtext that cannot be parsed, e.g. a fence with trailing content inside a block."""

    def __init__(self, message: str, line_number: int | None = None, line: str | None = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class InvalidKeyEncoding(GemsignError, ValueError):
    """A private key, UserID or signature with bad alphabet, checksum or length."""


class InvalidDigest(GemsignError, ValueError):
    """A SHA-256 digest that is not exactly 32 bytes."""


class MissingMetadata(GemsignError):
    """A document lacks a field (title, date) that a consumer expects."""

    def __init__(self, field: str, source: str | Path | None = None):
        where = f" in {source}" if source is not None else ""
        super().__init__(f"Missing {field}{where}")
        self.field = field
        self.source = source


class IOFailure(GemsignError):
    """Enumeration or read failure while hashing."""

    def __init__(self, path: str | Path, cause: OSError | None = None, message: str | None = None):
        if message is None:
            message = f"{path}: {cause.strerror if cause and cause.strerror else cause}"
        super().__init__(message)
        self.path = Path(path)
        self.cause = cause


class MalformedManifest(GemsignError):
    """Manifest or signed-manifest text that does not follow the manifest format."""
