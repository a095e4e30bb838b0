"""Unit tests for the opdata01 container decoder."""

import struct

import pytest

from opvault.core.exceptions import ContainerCorrupt, MalformedRecord
from opvault.core.models import KeyMac
from opvault.security.opdata import MAGIC, decode, decode_base64, pad_length
from vaultgen import b64, encode_opdata01


@pytest.fixture
def key():
    return KeyMac.from_bytes(bytes(range(64)))


@pytest.fixture
def other_key():
    return KeyMac.from_bytes(bytes(range(64, 128)))


# ==============================================================================
# Padding rule
# ==============================================================================

@pytest.mark.parametrize(
    "length, expected",
    [(0, 16), (1, 15), (15, 1), (16, 16), (17, 15), (31, 1), (32, 16), (1000, 8)],
)
def test_pad_length(length, expected):
    assert pad_length(length) == expected


def test_pad_length_always_in_range():
    for length in range(0, 200):
        assert 1 <= pad_length(length) <= 16


# ==============================================================================
# Happy path
# ==============================================================================

@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 64, 255, 256, 1000])
def test_decode_returns_plaintext(key, size):
    plaintext = bytes((i * 7) % 256 for i in range(size))
    assert decode(encode_opdata01(plaintext, key), key) == plaintext


def test_decode_drops_front_filler_not_trailing(key):
    """Filler sits before the plaintext; PKCS#7-style trimming would return garbage."""
    plaintext = b"0123456789"
    blob = encode_opdata01(plaintext, key, filler=0xAA)
    assert decode(blob, key) == plaintext


def test_decode_aligned_plaintext_has_full_filler_block(key):
    plaintext = b"A" * 32
    blob = encode_opdata01(plaintext, key)
    # header + 16 filler + 32 plaintext + tag
    assert len(blob) == 32 + 16 + 32 + 32
    assert decode(blob, key) == plaintext


def test_decode_base64(key):
    blob = encode_opdata01(b'{"title": "x"}', key)
    assert decode_base64(b64(blob), key) == b'{"title": "x"}'


def test_decode_base64_rejects_garbage(key):
    with pytest.raises(MalformedRecord):
        decode_base64("not base64!!!", key)


# ==============================================================================
# Structural corruption
# ==============================================================================

def test_decode_too_short(key):
    with pytest.raises(ContainerCorrupt, match="too short"):
        decode(MAGIC + b"\x00" * 55, key)


def test_decode_bad_magic(key):
    blob = bytearray(encode_opdata01(b"secret", key))
    blob[0:8] = b"opdata02"
    with pytest.raises(ContainerCorrupt, match="missing header"):
        decode(bytes(blob), key)


def test_decode_length_mismatch(key):
    blob = bytearray(encode_opdata01(b"secret", key))
    blob[8:16] = struct.pack("<Q", 100)
    with pytest.raises(ContainerCorrupt, match="invalid length"):
        decode(bytes(blob), key)


def test_decode_truncated(key):
    blob = encode_opdata01(b"secret" * 10, key)
    with pytest.raises(ContainerCorrupt):
        decode(blob[:-1], key)


def test_decode_extra_trailing_bytes(key):
    blob = encode_opdata01(b"secret", key)
    with pytest.raises(ContainerCorrupt, match="invalid length"):
        decode(blob + b"\x00", key)


def test_decode_wrong_mac_key(key, other_key):
    blob = encode_opdata01(b"secret", key)
    with pytest.raises(ContainerCorrupt, match="tag doesn't match"):
        decode(blob, other_key)


# ==============================================================================
# Tampering: every bit flip in length, IV, ciphertext or tag is rejected
# ==============================================================================

def _flip(blob: bytes, bit: int) -> bytes:
    out = bytearray(blob)
    out[bit // 8] ^= 1 << (bit % 8)
    return bytes(out)


def test_decode_rejects_any_single_bit_flip(key):
    blob = encode_opdata01(b"correct horse battery staple", key)
    # everything after the magic: length, IV, ciphertext, tag
    for bit in range(len(MAGIC) * 8, len(blob) * 8):
        with pytest.raises(ContainerCorrupt):
            decode(_flip(blob, bit), key)


def test_decode_checks_tag_before_decrypting(key, monkeypatch):
    blob = _flip(encode_opdata01(b"secret", key), 8 * 40)
    calls = []
    monkeypatch.setattr(
        "opvault.security.opdata.decrypt_aes256_cbc",
        lambda *args: calls.append(args) or b"",
    )
    with pytest.raises(ContainerCorrupt):
        decode(blob, key)
    assert calls == []
