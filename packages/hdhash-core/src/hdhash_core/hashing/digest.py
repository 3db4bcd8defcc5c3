"""Fixed-width SHA-1 digest with an order-independent combine operator."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable
from dataclasses import dataclass

from hdhash_core.constants import HASH_BYTES
from hdhash_core.errors import FormatError

_MODULUS = 1 << (8 * HASH_BYTES)
_HEX_RE = re.compile(r"[0-9a-fA-F]{%d}" % (2 * HASH_BYTES))


@dataclass(frozen=True)
class Hash:
    """A 20-byte digest.

    ``a + b`` (or ``a.combine(b)``) adds two digests as big-endian
    integers modulo 2**160. The operation is commutative and associative,
    so folding a set of digests gives the same result in any order.
    """

    digest: bytes = bytes(HASH_BYTES)

    def __post_init__(self) -> None:
        if not isinstance(self.digest, (bytes, bytearray, memoryview)):
            raise FormatError(
                f"digest must be bytes, got {type(self.digest).__name__}", self.digest
            )
        raw = bytes(self.digest)
        if len(raw) != HASH_BYTES:
            raise FormatError(
                f"digest must be {HASH_BYTES} bytes, got {len(raw)}", self.digest
            )
        object.__setattr__(self, "digest", raw)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls) -> Hash:
        return cls()

    @classmethod
    def for_bytes(cls, data: bytes) -> Hash:
        """SHA-1 of *data*."""
        return cls(hashlib.sha1(data).digest())

    @classmethod
    def parse(cls, text: str) -> Hash:
        """Parse 40 hex characters, most significant byte first."""
        if not isinstance(text, str) or not _HEX_RE.fullmatch(text):
            raise FormatError(
                f"hash must be {2 * HASH_BYTES} hex characters, got {text!r}", text
            )
        return cls(bytes.fromhex(text))

    @classmethod
    def sum(cls, hashes: Iterable[Hash]) -> Hash:
        """Combine all *hashes*, starting from the zero digest."""
        total = cls()
        for h in hashes:
            total = total.combine(h)
        return total

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def is_zero(self) -> bool:
        return not any(self.digest)

    def combine(self, other: Hash | bytes) -> Hash:
        """Carry-propagating addition, overflow past the first byte dropped."""
        raw = other.digest if isinstance(other, Hash) else bytes(other)
        if len(raw) != HASH_BYTES:
            raise FormatError(f"cannot combine with a {len(raw)}-byte value", other)
        total = int.from_bytes(self.digest, "big") + int.from_bytes(raw, "big")
        return Hash((total % _MODULUS).to_bytes(HASH_BYTES, "big"))

    def __add__(self, other: Hash | bytes) -> Hash:
        return self.combine(other)

    def to_hex(self) -> str:
        return self.digest.hex()

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"Hash({self.to_hex()!r})"
