"""
Reads the raw records out of an OPVault directory

Structure Map for reference:
==============================
 - <vault>.opvault/
      - <profile>/            ("default" unless told otherwise)
          - profile.js        var profile={...};
          - folders.js        loadFolders({...});
          - band_0.js         ld({...});
          - ...
          - band_F.js
==============================
Every file is JSON wrapped in a bit of JavaScript. This module only strips the
wrapper and parses; nothing here touches keys or ciphertext.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .exceptions import VaultFormatError, VaultNotFoundError


logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
BAND_NAMES = "0123456789ABCDEF"

PROFILE_WRAPPER = ("var profile=", ";")
FOLDERS_WRAPPER = ("loadFolders(", ");")
BAND_WRAPPER = ("ld(", ");")


def profile_dir(path: str | Path, profile: str = DEFAULT_PROFILE) -> Path:
    root = Path(path).expanduser()
    if not root.is_dir():
        raise VaultNotFoundError(f"Vault directory not found: {root}")
    directory = root / profile
    if not directory.is_dir():
        raise VaultNotFoundError(f"Profile '{profile}' not found in {root}")
    return directory


def load_js_as_json(filename: Path, prefix: str, suffix: str) -> Any:
    content = filename.read_text(encoding="utf-8").strip()

    if not content.startswith(prefix):
        raise VaultFormatError(f"Unsupported format: {filename.name} must start with {prefix}")
    if not content.endswith(suffix):
        raise VaultFormatError(f"Unsupported format: {filename.name} must end with {suffix}")

    try:
        return json.loads(content[len(prefix) : len(content) - len(suffix)])
    except json.JSONDecodeError as e:
        raise VaultFormatError(f"Invalid JSON in {filename.name}: {e}") from e


def _load_mapping(filename: Path, wrapper: tuple[str, str]) -> Dict[str, Dict[str, Any]]:
    data = load_js_as_json(filename, *wrapper)
    if not isinstance(data, dict):
        raise VaultFormatError(f"{filename.name} must contain a JSON object")
    return data


def load_profile(path: str | Path, profile: str = DEFAULT_PROFILE) -> Dict[str, Any]:
    filename = profile_dir(path, profile) / "profile.js"
    if not filename.is_file():
        raise VaultNotFoundError(f"Missing profile.js in {filename.parent}")
    data = load_js_as_json(filename, *PROFILE_WRAPPER)
    if not isinstance(data, dict):
        raise VaultFormatError("profile.js must contain a JSON object")
    return data


def load_folders(path: str | Path, profile: str = DEFAULT_PROFILE) -> Dict[str, Dict[str, Any]]:
    filename = profile_dir(path, profile) / "folders.js"
    # a vault that never had a folder has no folders.js
    if not filename.is_file():
        return {}
    folders = _load_mapping(filename, FOLDERS_WRAPPER)
    logger.debug("loaded %d folder records", len(folders))
    return folders


def load_items(path: str | Path, profile: str = DEFAULT_PROFILE) -> Dict[str, Dict[str, Any]]:
    """Merge all band files, in band order, into one id -> item mapping."""
    directory = profile_dir(path, profile)
    items: Dict[str, Dict[str, Any]] = {}

    for band in BAND_NAMES:
        filename = directory / f"band_{band}.js"
        if filename.is_file():
            items.update(_load_mapping(filename, BAND_WRAPPER))

    logger.debug("loaded %d item records", len(items))
    return items
