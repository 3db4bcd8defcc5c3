"""Shared test fixtures for hdhash."""

import hashlib
import logging
import os

import pytest

from hdhash_core.config.models import HdHashConfig


class ChunkedReader:
    """File-like reader that never returns more than *step* bytes per read."""

    def __init__(self, data: bytes, step: int) -> None:
        self._data = data
        self._pos = 0
        self._step = step

    def read(self, size: int = -1) -> bytes:
        n = self._step if size < 0 else min(size, self._step)
        chunk = self._data[self._pos:self._pos + n]
        self._pos += len(chunk)
        return chunk


class AsyncBytesReader:
    """Minimal asyncio-style reader with an awaitable ``read``."""

    def __init__(self, data: bytes, step: int = 1000) -> None:
        self._inner = ChunkedReader(data, step)

    async def read(self, n: int = -1) -> bytes:
        return self._inner.read(n)


def pseudo_random_bytes(length: int, seed: bytes = b"hdhash") -> bytes:
    """Deterministic, non-repeating test data built from a SHA-1 chain."""
    out = bytearray()
    block = seed
    while len(out) < length:
        block = hashlib.sha1(block).digest()
        out += block
    return bytes(out[:length])


@pytest.fixture
def sample_config():
    return HdHashConfig()


@pytest.fixture
def random_data():
    return pseudo_random_bytes(64 * 1024)


@pytest.fixture
def make_data():
    return pseudo_random_bytes


@pytest.fixture
def chunked_reader():
    return ChunkedReader


@pytest.fixture
def async_reader():
    return AsyncBytesReader


@pytest.fixture
def sample_tree(tmp_path):
    """A small directory layout with fixed mtimes."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("print('hi')")
    (tmp_path / "src" / "util.py").write_text("def helper(): pass")
    (tmp_path / "README.md").write_text("# Readme")
    for p in (tmp_path / "src" / "main.py", tmp_path / "src" / "util.py", tmp_path / "README.md"):
        os.utime(p, (1_000_000, 1_000_000))
    return tmp_path


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
