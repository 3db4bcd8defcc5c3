"""Wire records and result models for the hashing subsystem."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    InstanceOf,
    ValidationError,
    field_serializer,
    field_validator,
)

from hdhash_core.errors import FormatError
from hdhash_core.hashing.digest import Hash

if TYPE_CHECKING:
    from hdhash_core.hashing.tree import Hashes


def _coerce_hash(v: Any) -> Hash:
    if isinstance(v, Hash):
        return v
    return Hash.parse(v)


class HashedBlock(BaseModel):
    """One ``{level, block, hash}`` record of a server hash response."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=0)
    block: int = Field(ge=0)
    hash: InstanceOf[Hash]

    @field_validator("hash", mode="before")
    @classmethod
    def parse_hash(cls, v: Any) -> Hash:
        return _coerce_hash(v)

    @field_serializer("hash")
    def dump_hash(self, v: Hash) -> str:
        return v.to_hex()

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> HashedBlock:
        """Validate a plain mapping, raising FormatError when it is malformed."""
        try:
            return cls.model_validate(record)
        except ValidationError as e:
            raise FormatError(f"malformed hash record {record!r}: {e}", record) from e


class FileHash(BaseModel):
    """Response of the remote ``file/hash`` call.

    ``list`` holds one inner list per requested range; only the nested
    block records are needed to rebuild a tree.
    """

    model_config = ConfigDict(frozen=True)

    level: int = 0
    chash: InstanceOf[Hash] = Field(default_factory=Hash.zero)
    list: tuple[tuple[HashedBlock, ...], ...] = ()

    @field_validator("chash", mode="before")
    @classmethod
    def parse_chash(cls, v: Any) -> Hash:
        return _coerce_hash(v)

    @field_serializer("chash")
    def dump_chash(self, v: Hash) -> str:
        return v.to_hex()

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> FileHash:
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FormatError(f"malformed hash response: {e}", data) from e

    def blocks(self) -> tuple[HashedBlock, ...]:
        """All block records, flattened across ranges."""
        return tuple(b for group in self.list for b in group)

    def hashes(self) -> Hashes:
        from hdhash_core.hashing.tree import Hashes

        return Hashes.from_api_hashes(self.blocks())


def ranges_from_blocks(blocks: Iterable[int]) -> list[tuple[int, int]]:
    """Collapse block indices into sorted, inclusive ``(first, last)`` ranges."""
    ranges: list[tuple[int, int]] = []
    for b in sorted(set(blocks)):
        if ranges and ranges[-1][1] == b - 1:
            ranges[-1] = (ranges[-1][0], b)
        else:
            ranges.append((b, b))
    return ranges


def format_ranges(ranges: Iterable[tuple[int, int]]) -> str:
    """Render the ``ranges`` request parameter; ``-`` asks for everything."""
    parts = [f"{first}-{last}" for first, last in ranges]
    return ",".join(parts) if parts else "-"


@dataclass(frozen=True)
class EntryHashes:
    """Hashes of a single file or directory entry."""

    path: str
    nhash: Hash
    mhash: Hash
    chash: Hash
    is_dir: bool = False
    mohash: Hash | None = None
    children: tuple[str, ...] = ()


@dataclass(frozen=True)
class HashDiff:
    """Result of comparing two directory snapshots."""

    changed: tuple[str, ...] = ()
    touched: tuple[str, ...] = ()
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    root_changed: bool = False
    old_root_hash: str = ""
    new_root_hash: str = ""

    @property
    def has_changes(self) -> bool:
        return bool(self.changed or self.touched or self.added or self.removed)
