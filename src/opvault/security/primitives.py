"""Thin wrappers over the primitives OPVault is built from.

AES-256-CBC and PBKDF2 come from `cryptography`; HMAC, SHA-512 and
constant-time comparison from the standard library.
"""
import base64
import binascii
import hashlib
import hmac

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from opvault.core.exceptions import MalformedRecord


BLOCK_SIZE = 16
TAG_SIZE = 32


def decode64(value, field: str = "value") -> bytes:
    if not isinstance(value, str):
        raise MalformedRecord(f"{field} must be a base64 string")
    try:
        return base64.b64decode(value)
    except (binascii.Error, ValueError) as e:
        raise MalformedRecord(f"{field} is not valid base64: {e}") from e


def pbkdf2_sha512(password: bytes, salt: bytes, iterations: int, length: int = 64) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA512(), length=length, salt=salt, iterations=iterations)
    return kdf.derive(password)


def sha512(message: bytes) -> bytes:
    return hashlib.sha512(message).digest()


def hmac_sha256(key: bytes, message: bytes) -> bytes:
    return hmac.new(key, message, hashlib.sha256).digest()


def tags_match(stored: bytes, computed: bytes) -> bool:
    # constant time; never use == on tags
    return hmac.compare_digest(stored, computed)


def decrypt_aes256_cbc(ciphertext: bytes, iv: bytes, key: bytes) -> bytes:
    """Decrypt whole blocks without touching padding; callers trim."""
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    return decryptor.update(ciphertext) + decryptor.finalize()
