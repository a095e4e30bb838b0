"""Unit tests for KEK derivation (PBKDF2-HMAC-SHA512)."""

import pytest

from opvault.core.exceptions import MalformedRecord
from opvault.core.models import Profile
from opvault.security.kdf import derive_kek
from vaultgen import ITERATIONS, PASSWORD, SALT, b64, derive_test_kek


# PBKDF2-HMAC-SHA512, P="password", S="salt", dkLen=64
VECTOR_1_ROUND = bytes.fromhex(
    "867f70cf1ade02cff3752599a3a53dc4af34c7a669815ae5d513554e1c8cf252"
    "c02d470a285a0501bad999bfe943c08f050235d7d68b1da55e63f73b60a57fce"
)
VECTOR_4096_ROUNDS = bytes.fromhex(
    "d197b1b33db0143e018b12f3d1d1479e6cdebdcc97c5c0f87f6902e072f457b5"
    "143f30602641b3d55cd335988cb36b84376060ecd532e039b742a239434af2d5"
)


def _profile(salt: bytes, iterations: int) -> Profile:
    return Profile(salt=b64(salt), iterations=iterations, master_key="", overview_key="")


@pytest.mark.parametrize(
    "iterations, expected",
    [(1, VECTOR_1_ROUND), (4096, VECTOR_4096_ROUNDS)],
)
def test_derive_kek_known_answer(iterations, expected):
    kek = derive_kek(_profile(b"salt", iterations), "password")
    assert kek.cipher_key == expected[:32]
    assert kek.mac_key == expected[32:]


def test_derive_kek_matches_independent_pbkdf2():
    kek = derive_kek(_profile(SALT, ITERATIONS), PASSWORD)
    assert kek == derive_test_kek(PASSWORD, SALT, ITERATIONS)


def test_derive_kek_str_and_bytes_agree():
    profile = _profile(SALT, 10)
    assert derive_kek(profile, "pässword") == derive_kek(profile, "pässword".encode("utf-8"))


def test_derive_kek_depends_on_password():
    profile = _profile(SALT, 10)
    assert derive_kek(profile, "password") != derive_kek(profile, "Password")


def test_derive_kek_bad_salt():
    profile = Profile(salt="abcde", iterations=1, master_key="", overview_key="")
    with pytest.raises(MalformedRecord, match="salt"):
        derive_kek(profile, "password")
