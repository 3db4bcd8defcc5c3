"""Block hash tree (chash) construction and reconstruction."""

from __future__ import annotations

import io
import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from hdhash_core.constants import BLOCK_SIZE, LEVEL_GROUP
from hdhash_core.errors import ProtocolError
from hdhash_core.hashing.digest import Hash
from hdhash_core.hashing.models import HashedBlock

logger = logging.getLogger(__name__)


class Reader(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...


class AsyncReader(Protocol):
    async def read(self, n: int = -1, /) -> bytes: ...


def _leaf_hash(block: bytes) -> Hash:
    """SHA-1 of a block, or the zero digest when the block is all zeros."""
    if block.strip(b"\x00"):
        return Hash.for_bytes(block)
    return Hash.zero()


def _split_blocks(pending: bytearray) -> Iterator[bytes]:
    while len(pending) >= BLOCK_SIZE:
        yield bytes(pending[:BLOCK_SIZE])
        del pending[:BLOCK_SIZE]


def _iter_blocks(reader: Reader, read_size: int) -> Iterator[bytes]:
    # Re-block reads so leaf boundaries never depend on how the source chunks data.
    pending = bytearray()
    while True:
        chunk = reader.read(read_size)
        if not chunk:
            break
        pending += chunk
        yield from _split_blocks(pending)
    if pending:
        yield bytes(pending)


async def _aiter_blocks(reader: AsyncReader, read_size: int) -> AsyncIterator[bytes]:
    pending = bytearray()
    while True:
        chunk = await reader.read(read_size)
        if not chunk:
            break
        pending += chunk
        for block in _split_blocks(pending):
            yield block
    if pending:
        yield bytes(pending)


@dataclass(frozen=True)
class HashLevel:
    """One tier of a hash tree."""

    hashes: tuple[Hash, ...] = ()

    def __len__(self) -> int:
        return len(self.hashes)

    def __iter__(self) -> Iterator[Hash]:
        return iter(self.hashes)

    def __getitem__(self, index: int) -> Hash:
        return self.hashes[index]

    def collapse(self) -> HashLevel:
        """Fold this level into the next one up.

        Every group of LEVEL_GROUP positions becomes one digest: the sum of
        ``sha1(hash ++ position mod 256)`` over the group's non-zero hashes.
        An empty level still yields a single (zero) digest.
        """
        collapsed: list[Hash] = []
        current = Hash.zero()
        for i, h in enumerate(self.hashes):
            if i % LEVEL_GROUP == 0 and i > 0:
                collapsed.append(current)
                current = Hash.zero()
            if h.is_zero():
                continue
            current = current + Hash.for_bytes(h.digest + bytes([i % 256]))
        collapsed.append(current)
        return HashLevel(tuple(collapsed))


class Hashes:
    """A hash tree: level 0 holds block digests, the last level the chash."""

    def __init__(self, levels: Sequence[HashLevel]) -> None:
        self._levels = tuple(levels)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    @classmethod
    def from_leaves(cls, leaves: Iterable[Hash]) -> Hashes:
        """Fold a level-0 sequence until a single digest remains."""
        levels = [HashLevel(tuple(leaves))]
        while len(levels[-1]) != 1:
            levels.append(levels[-1].collapse())
        logger.debug(
            "built hash tree: %d blocks, %d levels", len(levels[0]), len(levels)
        )
        return cls(levels)

    @classmethod
    def calculate(cls, reader: Reader, read_size: int = BLOCK_SIZE) -> Hashes:
        """Read *reader* to EOF and build its hash tree.

        *read_size* only controls how much is requested per read; blocks
        are always BLOCK_SIZE bytes.
        """
        return cls.from_leaves(_leaf_hash(b) for b in _iter_blocks(reader, read_size))

    @classmethod
    async def calculate_async(
        cls, reader: AsyncReader, read_size: int = BLOCK_SIZE
    ) -> Hashes:
        """Same as calculate() for a reader with an awaitable ``read``."""
        leaves = [_leaf_hash(b) async for b in _aiter_blocks(reader, read_size)]
        return cls.from_leaves(leaves)

    @classmethod
    def from_bytes(cls, data: bytes) -> Hashes:
        return cls.calculate(io.BytesIO(data))

    @classmethod
    def from_api_hashes(
        cls, records: Iterable[HashedBlock | Mapping[str, Any]]
    ) -> Hashes:
        """Rebuild a (possibly partial) tree from server block records.

        Records are grouped by level and ordered by block number. Every
        level from 0 up to the highest one present must appear, otherwise
        the response cannot be matched against a local tree.
        """
        by_level: dict[int, list[HashedBlock]] = defaultdict(list)
        for record in records:
            if not isinstance(record, HashedBlock):
                record = HashedBlock.from_record(record)
            by_level[record.level].append(record)

        if not by_level:
            return cls([])

        max_level = max(by_level)
        levels: list[HashLevel] = []
        for level in range(max_level + 1):
            if level not in by_level:
                raise ProtocolError(
                    f"hash level {level} missing from response (max level {max_level})",
                    missing_level=level,
                )
            blocks = sorted(by_level[level], key=lambda b: b.block)
            levels.append(HashLevel(tuple(b.hash for b in blocks)))
        return cls(levels)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def levels(self) -> tuple[HashLevel, ...]:
        return self._levels

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, index: int) -> HashLevel:
        return self._levels[index]

    def __iter__(self) -> Iterator[HashLevel]:
        return iter(self._levels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hashes):
            return NotImplemented
        return self._levels == other._levels

    def top_hash(self) -> Hash:
        """The content hash; only defined when the top level has one digest."""
        if not self._levels:
            raise ProtocolError("hash tree has no levels")
        top = self._levels[-1]
        if len(top) != 1:
            raise ProtocolError(
                f"top level {len(self._levels) - 1} holds {len(top)} hashes, expected 1"
            )
        return top[0]

    def __str__(self) -> str:
        return self.top_hash().to_hex()

    def __repr__(self) -> str:
        sizes = ", ".join(str(len(level)) for level in self._levels)
        return f"Hashes(levels=[{sizes}])"

    # ------------------------------------------------------------------
    # Compare
    # ------------------------------------------------------------------

    def mismatched_blocks(self, other: Hashes, level: int = 0) -> list[int]:
        """Positions at *level* whose digests differ or exist on one side only.

        Both trees are compared by position, so use mismatched_records() for
        a tree rebuilt from a response that skips blocks.
        """
        mine = self._levels[level].hashes if level < len(self._levels) else ()
        theirs = other._levels[level].hashes if level < len(other._levels) else ()
        return [
            i
            for i in range(max(len(mine), len(theirs)))
            if i >= len(mine) or i >= len(theirs) or mine[i] != theirs[i]
        ]

    def mismatched_records(
        self, records: Iterable[HashedBlock], level: int = 0
    ) -> list[int]:
        """Block numbers of *records* at *level* that disagree with this tree.

        Records are matched by their ``block`` number rather than by order,
        so a response covering only some ranges of a file lines up with the
        right local positions. Records past the end of this tree count as
        mismatches.
        """
        mine = self._levels[level].hashes if level < len(self._levels) else ()
        return sorted({
            r.block
            for r in records
            if r.level == level and (r.block >= len(mine) or mine[r.block] != r.hash)
        })
