"""Unwrapping of the key hierarchy below the KEK.

- master key and overview key: opdata01 containers under the KEK whose
  plaintext is hashed with SHA-512 to produce the KeyMac
- item key: a raw 112-byte wrap under the master key,
  IV (16) || AES-256-CBC ciphertext (64) || HMAC-SHA256 tag (32)
"""
import logging

from opvault.core.exceptions import ItemKeyCorrupt, MalformedRecord
from opvault.core.models import KeyMac, Profile
from . import opdata
from .primitives import decode64, decrypt_aes256_cbc, hmac_sha256, sha512, tags_match


logger = logging.getLogger(__name__)

ITEM_KEY_SIZE = 112
_IV_END = 16
_CIPHERTEXT_END = 80


def _unwrap_profile_key(key_base64: str, kek: KeyMac, field: str) -> KeyMac:
    raw = opdata.decode_base64(key_base64, kek, field)
    return KeyMac.from_bytes(sha512(raw))


def unwrap_master_key(profile: Profile, kek: KeyMac) -> KeyMac:
    return _unwrap_profile_key(profile.master_key, kek, "masterKey")


def unwrap_overview_key(profile: Profile, kek: KeyMac) -> KeyMac:
    return _unwrap_profile_key(profile.overview_key, kek, "overviewKey")


def unwrap_item_key(item: dict, master_key: KeyMac) -> KeyMac:
    """Authenticate and decrypt the per-item key stored in the item's `k` field."""
    item_id = item.get("uuid")
    if "k" not in item:
        raise MalformedRecord(f"Item {item_id} has no 'k' field")

    raw = decode64(item["k"], "item key")
    if len(raw) != ITEM_KEY_SIZE:
        raise ItemKeyCorrupt("Item key is corrupted: invalid size", item_id=item_id)

    iv = raw[:_IV_END]
    ciphertext = raw[_IV_END:_CIPHERTEXT_END]
    stored_tag = raw[_CIPHERTEXT_END:]
    computed_tag = hmac_sha256(master_key.mac_key, iv + ciphertext)
    if not tags_match(stored_tag, computed_tag):
        raise ItemKeyCorrupt("Item key is corrupted: tag doesn't match", item_id=item_id)

    logger.debug("unwrapped item key for %s", item_id)
    return KeyMac.from_bytes(decrypt_aes256_cbc(ciphertext, iv, master_key.cipher_key))
