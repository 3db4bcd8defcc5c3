"""HiDrive-compatible hash subsystem: chash trees, nhash/mhash, directory folds."""

from __future__ import annotations

from pathlib import Path

from hdhash_core.constants import BLOCK_SIZE, HASH_BYTES, LEVEL_GROUP
from hdhash_core.hashing.digest import Hash
from hdhash_core.hashing.directory import (
    DirectoryHasher,
    DirectorySnapshot,
    chash_dir,
    mohash_dir,
)
from hdhash_core.hashing.metadata import chash, chash_file, file_hashes, mhash, nhash
from hdhash_core.hashing.models import (
    EntryHashes,
    FileHash,
    HashDiff,
    HashedBlock,
    format_ranges,
    ranges_from_blocks,
)
from hdhash_core.hashing.tree import HashLevel, Hashes


def hash_directory(root_path: Path | str, *args, **kwargs) -> DirectorySnapshot:
    """Convenience wrapper around DirectoryHasher.build()."""
    return DirectoryHasher(*args, **kwargs).build(root_path)


def from_api_hashes(records) -> Hashes:
    """Convenience wrapper around Hashes.from_api_hashes()."""
    return Hashes.from_api_hashes(records)


__all__ = [
    "BLOCK_SIZE",
    "DirectoryHasher",
    "DirectorySnapshot",
    "EntryHashes",
    "FileHash",
    "HASH_BYTES",
    "Hash",
    "HashDiff",
    "HashLevel",
    "HashedBlock",
    "Hashes",
    "LEVEL_GROUP",
    "chash",
    "chash_dir",
    "chash_file",
    "file_hashes",
    "format_ranges",
    "from_api_hashes",
    "hash_directory",
    "mhash",
    "mohash_dir",
    "nhash",
    "ranges_from_blocks",
]
