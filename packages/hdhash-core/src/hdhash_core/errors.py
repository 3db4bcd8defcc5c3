"""Error taxonomy for the hashing and chunking subsystem."""

from __future__ import annotations


class HashError(Exception):
    """Base class for every error raised by hdhash_core."""


class FormatError(HashError, ValueError):
    """Malformed digest text, digest width or hash record."""

    def __init__(self, message: str, value: object = None) -> None:
        self.value = value
        super().__init__(message)


class ProtocolError(HashError):
    """Server-supplied hash records do not form a usable tree.

    Indicates that client and server disagree about the shape of the
    tree; callers should surface it rather than retry.
    """

    def __init__(self, message: str, missing_level: int | None = None) -> None:
        self.missing_level = missing_level
        super().__init__(message)


class InvalidArgument(HashError, ValueError):
    """A chunking or metadata parameter is out of range."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"invalid {name}={value!r}: {reason}")
