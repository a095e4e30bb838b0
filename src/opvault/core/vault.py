"""
Vault assembly: turns raw profile/folder/item records into Accounts and Folders

Pipeline for reference:
==============================
 password --PBKDF2--> KEK
 KEK --opdata01 + SHA-512--> master key, overview key
 overview key --> folder overviews, item tags, item overviews (title, url)
 master key --112-byte wrap--> item key --opdata01--> item details
==============================
All item tags are verified as one batch before any item is decrypted. Any
failure aborts the whole open; there is no best-effort mode.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from opvault.security import (
    derive_kek,
    unwrap_item_key,
    unwrap_master_key,
    unwrap_overview_key,
    verify_item_tags,
)
from opvault.security.opdata import decode_base64

from .exceptions import ContainerCorrupt, MalformedRecord
from .loader import DEFAULT_PROFILE, load_folders, load_items, load_profile
from .models import NO_FOLDER, Account, Folder, FolderRef, KeyMac, Profile, VaultContents


logger = logging.getLogger(__name__)

# 001 is a login item
LOGIN_CATEGORY = "001"


def _records(records: Mapping[str, dict] | Iterable[dict]) -> List[dict]:
    if isinstance(records, Mapping):
        records = list(records.values())
    else:
        records = list(records)
    for record in records:
        if not isinstance(record, dict):
            raise MalformedRecord(f"Record is not a JSON object: {type(record).__name__}")
    return records


def _require(record: dict, name: str, kind: str = "Item") -> Any:
    if name not in record:
        raise MalformedRecord(f"{kind} {record.get('uuid')} has no '{name}' field")
    return record[name]


def _decrypt_json(blob_base64: Any, key: KeyMac, field: str) -> Dict[str, Any]:
    raw = decode_base64(blob_base64, key, field)
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedRecord(f"Decrypted {field} is not valid JSON") from e
    if not isinstance(data, dict):
        raise MalformedRecord(f"Decrypted {field} is not a JSON object")
    return data


def select_active_items(items: Mapping[str, dict] | Iterable[dict]) -> List[dict]:
    """Logins that are not in the trash, in input order."""
    return [
        item
        for item in _records(items)
        if item.get("category") == LOGIN_CATEGORY and not item.get("trashed")
    ]


def decrypt_folder(record: dict, overview_key: KeyMac) -> Folder:
    folder_id = _require(record, "uuid", "Folder")
    overview = _decrypt_json(_require(record, "overview", "Folder"), overview_key, "folder overview")
    return Folder(id=folder_id, name=overview.get("title"))


def decrypt_folders(folders: Mapping[str, dict] | Iterable[dict], overview_key: KeyMac) -> Dict[str, Folder]:
    """Decrypt the live folders and index them by id; trashed folders are left out."""
    result: Dict[str, Folder] = {}
    for record in _records(folders):
        if record.get("trashed"):
            continue
        folder = decrypt_folder(record, overview_key)
        result[folder.id] = folder
    return result


def find_detail_field(details: Dict[str, Any], designation: str) -> Optional[str]:
    fields = details.get("fields", [])
    if not isinstance(fields, list):
        raise MalformedRecord("Item details 'fields' is not a list")
    for entry in fields:
        if isinstance(entry, dict) and entry.get("designation") == designation:
            return entry.get("value")
    return None


def resolve_folder(folder_id: Any, folders_by_id: Mapping[str, Folder]) -> FolderRef:
    if not isinstance(folder_id, str):
        return NO_FOLDER
    return folders_by_id.get(folder_id, NO_FOLDER)


def decrypt_item(
    record: dict,
    master_key: KeyMac,
    overview_key: KeyMac,
    folders_by_id: Mapping[str, Folder],
) -> Account:
    item_id = _require(record, "uuid")
    overview = _decrypt_json(_require(record, "o"), overview_key, "item overview")
    item_key = unwrap_item_key(record, master_key)
    details = _decrypt_json(_require(record, "d"), item_key, "item details")

    return Account(
        id=item_id,
        name=overview.get("title"),
        username=find_detail_field(details, "username"),
        password=find_detail_field(details, "password"),
        url=overview.get("url"),
        note=details.get("notesPlain"),
        folder=resolve_folder(record.get("folder"), folders_by_id),
    )


def decrypt_items(
    items: Iterable[dict],
    master_key: KeyMac,
    overview_key: KeyMac,
    folders_by_id: Mapping[str, Folder],
) -> List[Account]:
    return [decrypt_item(item, master_key, overview_key, folders_by_id) for item in items]


def decrypt_vault(
    profile_record: Dict[str, Any],
    folder_records: Mapping[str, dict] | Iterable[dict],
    item_records: Mapping[str, dict] | Iterable[dict],
    password: bytes | str,
) -> VaultContents:
    """
    Run the whole decryption pipeline over already-loaded records.

    A wrong password can't be told apart from a damaged profile: both show up
    as a ContainerCorrupt while unwrapping the master or overview key.
    """
    profile = Profile.from_dict(profile_record)
    kek = derive_kek(profile, password)

    try:
        master_key = unwrap_master_key(profile, kek)
        overview_key = unwrap_overview_key(profile, kek)
    except ContainerCorrupt as e:
        raise ContainerCorrupt("Wrong password or corrupted vault") from e

    folders = decrypt_folders(folder_records, overview_key)
    account_items = select_active_items(item_records)
    logger.info("decrypted %d folders, %d active logins selected", len(folders), len(account_items))

    verify_item_tags(account_items, overview_key)
    accounts = decrypt_items(account_items, master_key, overview_key, folders)
    return VaultContents(accounts=accounts, folders=folders)


def open_vault(path: str | Path, password: bytes | str, profile: str = DEFAULT_PROFILE) -> VaultContents:
    """Load an .opvault directory and decrypt every active login in it."""
    logger.info("opening vault %s (profile %s)", path, profile)
    return decrypt_vault(
        load_profile(path, profile),
        load_folders(path, profile),
        load_items(path, profile),
        password,
    )
