"""Name, modification and content hashes of filesystem entries."""

from __future__ import annotations

import os
import struct
from pathlib import Path

from hdhash_core.constants import BLOCK_SIZE
from hdhash_core.errors import InvalidArgument
from hdhash_core.hashing.digest import Hash
from hdhash_core.hashing.tree import Hashes, Reader

NameLike = str | bytes | os.PathLike

_U64_MAX = 2**64 - 1
_I64_MIN, _I64_MAX = -(2**63), 2**63 - 1


def _base_name(name: NameLike) -> bytes:
    raw = os.fsencode(name)
    return os.path.basename(raw.rstrip(os.sep.encode()) or raw)


def nhash(name: NameLike) -> Hash:
    """SHA-1 of the final path component, in the platform's byte encoding."""
    return Hash.for_bytes(_base_name(name))


def mhash(name: NameLike, mtime: int | float, size: int | None = None) -> Hash:
    """SHA-1 of ``nhash ++ size (u64 LE) ++ mtime (i64 LE)``.

    *size* is part of the canonical form. Leaving it out selects the older
    size-less variant, which only matches servers that expect it.
    """
    mtime = int(mtime)
    if not _I64_MIN <= mtime <= _I64_MAX:
        raise InvalidArgument("mtime", mtime, "must fit in a signed 64-bit integer")
    data = nhash(name).digest
    if size is not None:
        if not 0 <= size <= _U64_MAX:
            raise InvalidArgument("size", size, "must fit in an unsigned 64-bit integer")
        data += struct.pack("<Q", size)
    data += struct.pack("<q", mtime)
    return Hash.for_bytes(data)


def chash(reader: Reader, read_size: int = BLOCK_SIZE) -> Hash:
    """Content hash of everything *reader* yields until EOF."""
    return Hashes.calculate(reader, read_size).top_hash()


def chash_file(path: str | os.PathLike, read_size: int = BLOCK_SIZE) -> Hash:
    with open(path, "rb") as f:
        return chash(f, read_size)


def file_hashes(
    path: str | os.PathLike, read_size: int = BLOCK_SIZE
) -> tuple[Hash, Hash, Hash]:
    """Return ``(nhash, mhash, chash)`` for the file at *path*."""
    path = Path(path)
    st = path.stat()
    return (
        nhash(path.name),
        mhash(path.name, int(st.st_mtime), st.st_size),
        chash_file(path, read_size),
    )
