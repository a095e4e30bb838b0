"""
Data models for the decrypted vault and the keys used to get there
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .exceptions import MalformedRecord


KEY_SIZE = 32


@dataclass(frozen=True)
class KeyMac:
    """An AES-256 key and an HMAC-SHA256 key derived together from one 64-byte secret."""

    cipher_key: bytes = field(repr=False)
    mac_key: bytes = field(repr=False)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "KeyMac":
        """
            Split 64 bytes into cipher key (first half) and MAC key (second half)
        """
        if len(raw) != 2 * KEY_SIZE:
            raise ValueError(f"KeyMac needs {2 * KEY_SIZE} bytes, got {len(raw)}")
        return cls(cipher_key=bytes(raw[:KEY_SIZE]), mac_key=bytes(raw[KEY_SIZE:]))


@dataclass(frozen=True)
class Profile:
    """
    Key derivation parameters and wrapped keys from profile.js

    salt, master_key and overview_key are kept base64-encoded exactly as stored.
    """

    salt: str
    iterations: int
    master_key: str
    overview_key: str
    uuid: Optional[str] = None
    profile_name: Optional[str] = None
    password_hint: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """
            Create a profile from the raw profile record
        """
        for name in ("salt", "masterKey", "overviewKey"):
            if not isinstance(data.get(name), str):
                raise MalformedRecord(f"Profile field '{name}' is missing or not a string")

        iterations = data.get("iterations")
        # bool is an int subclass; a boolean iteration count is still malformed
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
            raise MalformedRecord("Profile field 'iterations' is missing or not a positive integer")

        return cls(
            salt=data["salt"],
            iterations=iterations,
            master_key=data["masterKey"],
            overview_key=data["overviewKey"],
            uuid=data.get("uuid"),
            profile_name=data.get("profileName"),
            password_hint=data.get("passwordHint"),
        )


@dataclass(frozen=True)
class Folder:
    id: str
    name: Optional[str]


class NoFolder(Enum):
    """Marks an account that isn't in any (live) folder, instead of using None."""

    NO_FOLDER = "-"

    @property
    def id(self) -> str:
        return self.value

    @property
    def title(self) -> str:
        return self.value


NO_FOLDER = NoFolder.NO_FOLDER

FolderRef = Union[Folder, NoFolder]


@dataclass(frozen=True)
class Account:
    """A decrypted login item."""

    id: str
    name: Optional[str]
    username: Optional[str]
    password: Optional[str] = field(repr=False)
    url: Optional[str]
    note: Optional[str] = field(repr=False)
    folder: FolderRef = NO_FOLDER

    @property
    def in_folder(self) -> bool:
        return isinstance(self.folder, Folder)

    @property
    def folder_name(self) -> Optional[str]:
        if isinstance(self.folder, Folder):
            return self.folder.name
        return self.folder.title

    def to_dict(self) -> Dict[str, Any]:
        """
            Convert account to dict, folder flattened to its name
        """
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "password": self.password,
            "url": self.url,
            "note": self.note,
            "folder": self.folder_name,
        }


@dataclass(frozen=True)
class VaultContents:
    """Everything open_vault returns: accounts in item order and live folders by id."""

    accounts: List[Account]
    folders: Dict[str, Folder]

    def folder_accounts(self, folder: FolderRef) -> List[Account]:
        # identity/type check, not id equality, so NO_FOLDER never matches a real folder
        if isinstance(folder, NoFolder):
            return [a for a in self.accounts if isinstance(a.folder, NoFolder)]
        return [a for a in self.accounts if isinstance(a.folder, Folder) and a.folder.id == folder.id]
