"""Decoder for opdata01, the container every secret in an OPVault is wrapped in.

Layout (little-endian):
- 8 bytes: magic b'opdata01'
- 8 bytes: plaintext length (unsigned)
- 16 bytes: AES-CBC IV
- pad + length bytes: ciphertext; after decryption the first `pad` bytes are
  filler and the last `length` bytes are the plaintext
- 32 bytes: HMAC-SHA256 over everything before it

pad is 16 - length % 16, so it is always in [1, 16]: an aligned plaintext
still gets a full block of filler. The filler sits in FRONT of the plaintext,
unlike PKCS#7.
"""
import logging
import struct

from opvault.core.exceptions import ContainerCorrupt
from opvault.core.models import KeyMac
from .primitives import (
    BLOCK_SIZE,
    TAG_SIZE,
    decode64,
    decrypt_aes256_cbc,
    hmac_sha256,
    tags_match,
)


logger = logging.getLogger(__name__)

MAGIC = b"opdata01"
HEADER_SIZE = 32
MIN_SIZE = HEADER_SIZE + TAG_SIZE


def pad_length(length: int) -> int:
    return BLOCK_SIZE - length % BLOCK_SIZE


def decode(blob: bytes, key: KeyMac) -> bytes:
    """
    Authenticate and decrypt an opdata01 blob, returning the plaintext.

    The tag is checked before anything is decrypted. Any structural problem or
    tag mismatch raises ContainerCorrupt; no partial plaintext is returned.
    """
    if len(blob) < MIN_SIZE:
        raise ContainerCorrupt("Opdata01 container is corrupted: too short")

    header = blob[:HEADER_SIZE]
    if header[: len(MAGIC)] != MAGIC:
        raise ContainerCorrupt("Opdata01 container is corrupted: missing header")

    (length,) = struct.unpack("<Q", header[8:16])
    iv = header[16:32]
    padding = pad_length(length)

    if len(blob) != HEADER_SIZE + padding + length + TAG_SIZE:
        raise ContainerCorrupt("Opdata01 container is corrupted: invalid length")

    ciphertext = blob[HEADER_SIZE : HEADER_SIZE + padding + length]
    stored_tag = blob[-TAG_SIZE:]
    computed_tag = hmac_sha256(key.mac_key, header + ciphertext)
    if not tags_match(stored_tag, computed_tag):
        raise ContainerCorrupt("Opdata01 container is corrupted: tag doesn't match")

    plaintext = decrypt_aes256_cbc(ciphertext, iv, key.cipher_key)
    logger.debug("decoded opdata01 container (%d bytes)", length)
    return plaintext[padding:]


def decode_base64(blob_base64: str, key: KeyMac, field: str = "opdata01") -> bytes:
    return decode(decode64(blob_base64, field), key)
