"""Content-defined chunking."""

from hdhash_core.chunking.borders import (
    RollingChecksum,
    chunk_ranges,
    find_borders,
    find_borders_async,
)

__all__ = [
    "RollingChecksum",
    "chunk_ranges",
    "find_borders",
    "find_borders_async",
]
