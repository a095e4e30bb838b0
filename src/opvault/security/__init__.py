"""Security helpers: the OPVault key hierarchy and container format.

This package provides:
- PBKDF2-HMAC-SHA512 derivation of the key-encryption-key
- opdata01 container authentication and decryption
- master/overview/item key unwrapping
- item-level integrity tag verification
"""

from .kdf import derive_kek
from .opdata import decode as decode_opdata01, pad_length
from .keys import unwrap_master_key, unwrap_overview_key, unwrap_item_key
from .integrity import verify_item_tag, verify_item_tags

__all__ = [
    "derive_kek",
    "decode_opdata01",
    "pad_length",
    "unwrap_master_key",
    "unwrap_overview_key",
    "unwrap_item_key",
    "verify_item_tag",
    "verify_item_tags",
]
