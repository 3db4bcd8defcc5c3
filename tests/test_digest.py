"""Tests for the fixed-width digest and its combine operator."""

from __future__ import annotations

import random

import pytest

from hdhash_core.errors import FormatError
from hdhash_core.hashing import HASH_BYTES, Hash


# ── Construction and hex form ────────────────────────────────────────


def test_for_bytes_known_vector():
    """SHA-1 of 'abcdef' matches the published value."""
    h = Hash.for_bytes(b"abcdef")
    assert h.to_hex() == "1f8ac10f23c5b5bc1167bda84b833e5c057a77d2"
    assert str(h) == h.to_hex()


def test_for_bytes_deterministic():
    assert Hash.for_bytes(b"hello") == Hash.for_bytes(b"hello")
    assert Hash.for_bytes(b"a") != Hash.for_bytes(b"b")


def test_parse_inverts_to_hex():
    h = Hash.for_bytes(b"round trip")
    assert Hash.parse(h.to_hex()) == h


def test_parse_accepts_upper_case():
    text = "1F8AC10F23C5B5BC1167BDA84B833E5C057A77D2"
    assert Hash.parse(text).to_hex() == text.lower()


def test_to_hex_zero_pads_each_byte():
    h = Hash(bytes([0, 1, 2, 15, 16] + [0] * 15))
    assert h.to_hex().startswith("0001020f10")
    assert len(h.to_hex()) == 2 * HASH_BYTES


@pytest.mark.parametrize(
    "text",
    [
        "",
        "1f8ac10f23c5b5bc1167bda84b833e5c057a77d",  # 39 chars
        "1f8ac10f23c5b5bc1167bda84b833e5c057a77d2a",  # 41 chars
        "zf8ac10f23c5b5bc1167bda84b833e5c057a77d2",
        "1f8ac10f23c5b5bc 167bda84b833e5c057a77d2",
    ],
)
def test_parse_rejects_malformed(text: str):
    with pytest.raises(FormatError) as exc_info:
        Hash.parse(text)
    assert exc_info.value.value == text


def test_wrong_width_rejected():
    with pytest.raises(FormatError):
        Hash(b"\x01" * 19)


def test_bytearray_is_normalized():
    h = Hash(bytearray(b"\x07" * HASH_BYTES))
    assert isinstance(h.digest, bytes)
    assert h == Hash(b"\x07" * HASH_BYTES)


def test_hash_is_usable_as_dict_key():
    h = Hash.for_bytes(b"key")
    assert {h: 1}[Hash.parse(h.to_hex())] == 1


# ── Zero test ────────────────────────────────────────────────────────


def test_zero_hash():
    assert Hash.zero().is_zero()
    assert Hash().is_zero()
    assert Hash.zero().to_hex() == "0" * 40
    assert not Hash.for_bytes(b"").is_zero()


# ── Combine operator ─────────────────────────────────────────────────


def _h(last: bytes) -> Hash:
    return Hash(b"\x00" * (HASH_BYTES - len(last)) + last)


def test_combine_carries_towards_first_byte():
    assert _h(b"\xff") + _h(b"\x01") == _h(b"\x01\x00")
    assert _h(b"\x00\xff\xff") + _h(b"\x01") == _h(b"\x01\x00\x00")


def test_combine_discards_overflow():
    """Carry out of the most significant byte is dropped (mod 2**160)."""
    all_ones = Hash(b"\xff" * HASH_BYTES)
    assert (all_ones + _h(b"\x01")).is_zero()
    assert all_ones + _h(b"\x02") == _h(b"\x01")


def test_combine_with_zero_is_identity():
    h = Hash.for_bytes(b"x")
    assert h + Hash.zero() == h
    assert h.combine(Hash.zero().digest) == h


def test_combine_rejects_wrong_width():
    with pytest.raises(FormatError):
        Hash.zero().combine(b"\x01")


def test_combine_is_order_independent():
    """Summing in any permutation gives the same result."""
    hashes = [Hash.for_bytes(str(i).encode()) for i in range(50)]
    expected = Hash.sum(hashes)
    rng = random.Random(1234)
    for _ in range(20):
        shuffled = hashes[:]
        rng.shuffle(shuffled)
        assert Hash.sum(shuffled) == expected


def test_combine_is_associative():
    a, b, c = (Hash.for_bytes(x) for x in (b"a", b"b", b"c"))
    assert (a + b) + c == a + (b + c)


def test_sum_of_nothing_is_zero():
    assert Hash.sum([]).is_zero()
