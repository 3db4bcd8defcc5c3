"""Tests for rebuilding hash trees from server block records."""

from __future__ import annotations

import random

import pytest

from hdhash_core.errors import FormatError, ProtocolError
from hdhash_core.hashing import (
    BLOCK_SIZE,
    FileHash,
    Hash,
    HashedBlock,
    Hashes,
    format_ranges,
    from_api_hashes,
    ranges_from_blocks,
)


def _records(tree: Hashes) -> list[dict]:
    return [
        {"level": level, "block": block, "hash": h.to_hex()}
        for level, hashes in enumerate(tree)
        for block, h in enumerate(hashes)
    ]


# ── Reconstruction ───────────────────────────────────────────────────


def test_rebuilds_local_tree(make_data):
    local = Hashes.from_bytes(make_data(5 * BLOCK_SIZE))
    records = _records(local)
    random.Random(3).shuffle(records)

    remote = Hashes.from_api_hashes(records)
    assert remote == local
    assert remote.top_hash() == local.top_hash()


def test_orders_blocks_within_level():
    a, b, c = (Hash.for_bytes(x) for x in (b"a", b"b", b"c"))
    records = [
        HashedBlock(level=0, block=2, hash=c),
        HashedBlock(level=0, block=0, hash=a),
        HashedBlock(level=0, block=1, hash=b),
    ]
    tree = from_api_hashes(records)
    assert tree[0].hashes == (a, b, c)


def test_missing_level_raises_protocol_error():
    h = Hash.for_bytes(b"x").to_hex()
    records = [
        {"level": 0, "block": 0, "hash": h},
        {"level": 2, "block": 0, "hash": h},
    ]
    with pytest.raises(ProtocolError) as exc_info:
        Hashes.from_api_hashes(records)
    assert exc_info.value.missing_level == 1


def test_missing_level_zero():
    h = Hash.for_bytes(b"x").to_hex()
    with pytest.raises(ProtocolError) as exc_info:
        Hashes.from_api_hashes([{"level": 1, "block": 0, "hash": h}])
    assert exc_info.value.missing_level == 0


def test_partial_top_level_is_not_comparable():
    """A sparse response whose top level has several hashes has no chash."""
    h1, h2 = Hash.for_bytes(b"1").to_hex(), Hash.for_bytes(b"2").to_hex()
    tree = Hashes.from_api_hashes([
        {"level": 0, "block": 10, "hash": h1},
        {"level": 0, "block": 11, "hash": h2},
    ])
    assert len(tree[0]) == 2
    with pytest.raises(ProtocolError):
        tree.top_hash()


def test_empty_records():
    tree = Hashes.from_api_hashes([])
    assert len(tree) == 0
    with pytest.raises(ProtocolError):
        tree.top_hash()


@pytest.mark.parametrize(
    "record",
    [
        {"level": 0, "block": 0, "hash": "not-a-hash"},
        {"level": -1, "block": 0, "hash": "00" * 20},
        {"level": 0, "hash": "00" * 20},
        {"level": 0, "block": 0, "hash": 12345},
    ],
)
def test_malformed_record_raises_format_error(record):
    with pytest.raises(FormatError):
        Hashes.from_api_hashes([record])


# ── Response model ───────────────────────────────────────────────────


def test_file_hash_response(make_data):
    local = Hashes.from_bytes(make_data(3 * BLOCK_SIZE))
    records = _records(local)
    response = {
        "level": 0,
        "chash": local.top_hash().to_hex(),
        "list": [records[:2], records[2:]],
    }
    fh = FileHash.from_response(response)
    assert fh.chash == local.top_hash()
    assert len(fh.blocks()) == len(records)
    assert fh.hashes() == local


def test_file_hash_dump_uses_hex():
    h = Hash.for_bytes(b"x")
    fh = FileHash(level=1, chash=h, list=[[HashedBlock(level=0, block=0, hash=h)]])
    dumped = fh.model_dump()
    assert dumped["chash"] == h.to_hex()
    assert dumped["list"][0][0]["hash"] == h.to_hex()


def test_file_hash_malformed_response():
    with pytest.raises(FormatError):
        FileHash.from_response({"chash": "zz"})


# ── Matching records by block number ─────────────────────────────────


def test_sparse_records_match_by_block_number(make_data):
    local = Hashes.from_bytes(make_data(6 * BLOCK_SIZE))
    records = [HashedBlock(level=0, block=b, hash=local[0][b]) for b in (3, 4)]
    assert local.mismatched_records(records) == []


def test_sparse_records_report_block_numbers(make_data):
    local = Hashes.from_bytes(make_data(6 * BLOCK_SIZE))
    records = [
        HashedBlock(level=0, block=3, hash=local[0][3]),
        HashedBlock(level=0, block=4, hash=Hash.for_bytes(b"other")),
        HashedBlock(level=0, block=9, hash=local[0][0]),
    ]
    assert local.mismatched_records(records) == [4, 9]


def test_records_at_other_levels_are_ignored(make_data):
    local = Hashes.from_bytes(make_data(2 * BLOCK_SIZE))
    records = [HashedBlock(level=1, block=0, hash=Hash.for_bytes(b"other"))]
    assert local.mismatched_records(records) == []
    assert local.mismatched_records(records, level=1) == [0]


# ── Ranges ───────────────────────────────────────────────────────────


def test_ranges_from_blocks():
    assert ranges_from_blocks([5, 1, 2, 3, 7, 2]) == [(1, 3), (5, 5), (7, 7)]
    assert ranges_from_blocks([]) == []


def test_format_ranges():
    assert format_ranges([(1, 3), (5, 5)]) == "1-3,5-5"
    assert format_ranges([]) == "-"
