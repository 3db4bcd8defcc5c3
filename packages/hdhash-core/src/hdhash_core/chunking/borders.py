"""Content-defined chunk borders from a rolling checksum."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hdhash_core.errors import InvalidArgument
from hdhash_core.hashing.tree import AsyncReader, Reader

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 64 * 1024


class RollingChecksum:
    """rsync-style weak checksum over a sliding window.

    Two 16-bit sums: ``s1`` is the byte sum and ``s2`` the position-weighted
    sum. ``digest`` packs them as ``s2 << 16 | s1``; ``roll`` slides the
    window by one byte in constant time.
    """

    def __init__(self, window: bytes) -> None:
        n = len(window)
        if n == 0:
            raise InvalidArgument("window_size", 0, "must be at least 1")
        self._window = bytearray(window)
        self._pos = 0
        self._s1 = sum(window) & 0xFFFF
        self._s2 = sum((n - i) * b for i, b in enumerate(window)) & 0xFFFF

    @property
    def window_size(self) -> int:
        return len(self._window)

    @property
    def digest(self) -> int:
        return (self._s2 << 16) | self._s1

    def roll(self, byte: int) -> None:
        n = len(self._window)
        out = self._window[self._pos]
        self._window[self._pos] = byte
        self._pos = (self._pos + 1) % n
        self._s1 = (self._s1 - out + byte) & 0xFFFF
        self._s2 = (self._s2 - n * out + self._s1) & 0xFFFF


def _validate(window_size: int, zero_bits: int) -> int:
    """Check parameters and return the fingerprint mask."""
    if window_size < 1:
        raise InvalidArgument("window_size", window_size, "must be at least 1")
    if not 0 <= zero_bits <= 32:
        raise InvalidArgument("zero_bits", zero_bits, "must be between 0 and 32")
    return (1 << zero_bits) - 1


class _BorderScan:
    """Shared state of a scan; fed the stream in arbitrary pieces."""

    def __init__(self, window_size: int, mask: int) -> None:
        self.window_size = window_size
        self.mask = mask
        self.prime = bytearray()
        self.checksum: RollingChecksum | None = None
        self.offset = window_size
        self.borders: list[int] = []

    def feed(self, data: bytes) -> None:
        if self.checksum is None:
            need = self.window_size - len(self.prime)
            self.prime += data[:need]
            data = data[need:]
            if len(self.prime) < self.window_size:
                return
            self.checksum = RollingChecksum(bytes(self.prime))
        checksum = self.checksum
        for b in data:
            if checksum.digest & self.mask == 0:
                self.borders.append(self.offset)
            checksum.roll(b)
            self.offset += 1


def find_borders(
    reader: Reader,
    window_size: int,
    zero_bits: int,
    read_size: int = DEFAULT_READ_SIZE,
) -> list[int]:
    """Offsets where the rolling fingerprint's low *zero_bits* bits are zero.

    Each offset is at least *window_size*; a stream shorter than the window
    has no borders. The result depends only on the stream's content.
    """
    scan = _BorderScan(window_size, _validate(window_size, zero_bits))
    while chunk := reader.read(read_size):
        scan.feed(chunk)
    logger.debug("found %d chunk borders", len(scan.borders))
    return scan.borders


async def find_borders_async(
    reader: AsyncReader,
    window_size: int,
    zero_bits: int,
    read_size: int = DEFAULT_READ_SIZE,
) -> list[int]:
    """Same as find_borders() for a reader with an awaitable ``read``."""
    scan = _BorderScan(window_size, _validate(window_size, zero_bits))
    while chunk := await reader.read(read_size):
        scan.feed(chunk)
    logger.debug("found %d chunk borders", len(scan.borders))
    return scan.borders


def chunk_ranges(borders: Sequence[int], length: int) -> list[tuple[int, int]]:
    """Turn border offsets into half-open ``(start, end)`` chunk ranges."""
    ranges: list[tuple[int, int]] = []
    start = 0
    for border in borders:
        if start < border <= length:
            ranges.append((start, border))
            start = border
    if start < length:
        ranges.append((start, length))
    return ranges
