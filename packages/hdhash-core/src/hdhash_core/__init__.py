"""hdhash core - client-side HiDrive content hashing and content-defined chunking."""

from hdhash_core.chunking import find_borders, find_borders_async
from hdhash_core.config import HdHashConfig, load_config
from hdhash_core.errors import FormatError, HashError, InvalidArgument, ProtocolError
from hdhash_core.hashing import (
    DirectoryHasher,
    Hash,
    Hashes,
    HashLevel,
    chash_dir,
    file_hashes,
    mhash,
    mohash_dir,
    nhash,
)

__version__ = "0.1.0"

__all__ = [
    "DirectoryHasher",
    "FormatError",
    "Hash",
    "HashError",
    "HashLevel",
    "Hashes",
    "HdHashConfig",
    "InvalidArgument",
    "ProtocolError",
    "chash_dir",
    "file_hashes",
    "find_borders",
    "find_borders_async",
    "load_config",
    "mhash",
    "mohash_dir",
    "nhash",
]
