"""Item-level integrity tags.

Every item record carries an `hmac` field: HMAC-SHA256 under the overview MAC
key over all other fields, sorted by name, each written as name followed by
value with nothing in between. Adjacent values are not delimited, so field
boundaries are ambiguous; existing vaults are signed this way and the message
must be rebuilt byte for byte.
"""
import logging
from typing import Any, Iterable

from opvault.core.exceptions import MalformedRecord, TagMismatch
from opvault.core.models import KeyMac
from .primitives import decode64, hmac_sha256, tags_match


logger = logging.getLogger(__name__)

TAG_FIELD = "hmac"


def _field_text(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise MalformedRecord(f"Item field '{name}' has unsupported type {type(value).__name__}")


def tag_message(item: dict) -> bytes:
    names = sorted(name for name in item if name != TAG_FIELD)
    return "".join(name + _field_text(name, item[name]) for name in names).encode("utf-8")


def verify_item_tag(item: dict, overview_key: KeyMac) -> None:
    item_id = item.get("uuid")
    if TAG_FIELD not in item:
        raise MalformedRecord(f"Item {item_id} has no '{TAG_FIELD}' field")

    stored = decode64(item[TAG_FIELD], "item hmac")
    computed = hmac_sha256(overview_key.mac_key, tag_message(item))
    if not tags_match(stored, computed):
        raise TagMismatch(f"Item tag doesn't match for item {item_id}", item_id=item_id)


def verify_item_tags(items: Iterable[dict], overview_key: KeyMac) -> None:
    """Verify every item's tag; the first mismatch raises and nothing is skipped."""
    count = 0
    for item in items:
        verify_item_tag(item, overview_key)
        count += 1
    logger.debug("verified %d item tags", count)
