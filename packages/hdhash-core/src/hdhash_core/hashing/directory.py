"""Directory hashes: folding member digests and hashing a local tree."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from hdhash_core.config.models import ScanConfig
from hdhash_core.hashing.digest import Hash
from hdhash_core.hashing.metadata import file_hashes, mhash, nhash
from hdhash_core.hashing.models import EntryHashes, HashDiff

logger = logging.getLogger(__name__)


def chash_dir(member_mhashes: Iterable[Hash], member_chashes: Iterable[Hash]) -> Hash:
    """Content hash of a directory from its members' mhashes and chashes."""
    return Hash.sum(member_mhashes) + Hash.sum(member_chashes)


def mohash_dir(member_mhashes: Iterable[Hash]) -> Hash:
    """Metadata-only directory hash: the sum of the members' mhashes."""
    return Hash.sum(member_mhashes)


def _matches_any(path: Path, patterns: set[str]) -> bool:
    """Check whether any component of *path* matches one of *patterns*."""
    return any(part in patterns for part in path.parts)


@dataclass(frozen=True)
class DirectorySnapshot:
    """Hashes of every entry below a directory, keyed by relative POSIX path.

    The directory itself is stored under ``""``.
    """

    root_path: str
    entries: dict[str, EntryHashes]

    @property
    def root(self) -> EntryHashes:
        return self.entries[""]

    @property
    def root_hash(self) -> Hash:
        return self.root.chash

    def files(self) -> dict[str, EntryHashes]:
        return {p: e for p, e in self.entries.items() if not e.is_dir}

    def diff(self, other: DirectorySnapshot) -> HashDiff:
        """Compare *self* (old) against *other* (new).

        An entry is ``changed`` when its chash differs and ``touched`` when
        only its mhash does (renamed in place, resized, or mtime bumped).
        """
        old_paths = set(self.entries) - {""}
        new_paths = set(other.entries) - {""}

        changed: list[str] = []
        touched: list[str] = []
        for p in sorted(old_paths & new_paths):
            old_entry = self.entries[p]
            new_entry = other.entries[p]
            if old_entry.chash != new_entry.chash:
                changed.append(p)
            elif old_entry.mhash != new_entry.mhash:
                touched.append(p)

        return HashDiff(
            changed=tuple(changed),
            touched=tuple(touched),
            added=tuple(sorted(new_paths - old_paths)),
            removed=tuple(sorted(old_paths - new_paths)),
            root_changed=self.root_hash != other.root_hash,
            old_root_hash=self.root_hash.to_hex(),
            new_root_hash=other.root_hash.to_hex(),
        )


class DirectoryHasher:
    """Computes nhash/mhash/chash for a directory tree on disk."""

    def __init__(self, config: ScanConfig | None = None) -> None:
        self.config = config or ScanConfig()

    def build(self, root_path: Path | str) -> DirectorySnapshot:
        """Walk *root_path* and hash every file and directory below it.

        Entries matching the configured ignore patterns are skipped, as are
        symlinks unless ``follow_symlinks`` is set. A followed link that
        leads back to one of its own ancestors is skipped with a warning.
        Read errors propagate.
        """
        root = Path(root_path).resolve()
        entries: dict[str, EntryHashes] = {}
        self._hash_dir(root, root, set(self.config.ignore_patterns), entries, set())
        logger.debug("hashed %d entries below %s", len(entries), root)
        return DirectorySnapshot(root_path=str(root), entries=entries)

    def _hash_dir(
        self,
        path: Path,
        root: Path,
        ignore: set[str],
        entries: dict[str, EntryHashes],
        ancestors: set[tuple[int, int]],
    ) -> EntryHashes:
        st = path.stat()
        ancestors.add((st.st_dev, st.st_ino))
        members: list[EntryHashes] = []
        for child in sorted(path.iterdir(), key=lambda p: p.name):
            rel = child.relative_to(root)
            if _matches_any(rel, ignore):
                continue
            if child.is_symlink() and not self.config.follow_symlinks:
                logger.debug("skipping symlink %s", rel)
                continue
            if child.is_dir():
                child_st = child.stat()
                if (child_st.st_dev, child_st.st_ino) in ancestors:
                    logger.warning("skipping directory loop at %s", rel)
                    continue
                members.append(self._hash_dir(child, root, ignore, entries, ancestors))
            elif child.is_file():
                entry = self._hash_file(child, rel.as_posix())
                entries[entry.path] = entry
                members.append(entry)
            else:
                logger.warning("skipping special file %s", rel)
        ancestors.discard((st.st_dev, st.st_ino))

        member_mhashes = [m.mhash for m in members]
        rel_dir = "" if path == root else path.relative_to(root).as_posix()
        entry = EntryHashes(
            path=rel_dir,
            nhash=nhash(path.name),
            # Directory sizes are filesystem specific, so they use the size-less form
            mhash=mhash(path.name, int(st.st_mtime)),
            chash=chash_dir(member_mhashes, [m.chash for m in members]),
            is_dir=True,
            mohash=mohash_dir(member_mhashes),
            children=tuple(m.path for m in members),
        )
        entries[rel_dir] = entry
        return entry

    def _hash_file(self, path: Path, rel: str) -> EntryHashes:
        name_hash, mod_hash, content_hash = file_hashes(path, self.config.read_size)
        return EntryHashes(path=rel, nhash=name_hash, mhash=mod_hash, chash=content_hash)
