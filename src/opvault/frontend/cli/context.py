"""Small helper to build the runtime context shared by the CLI and the viewer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import getpass
import os

from opvault.core.exceptions import VaultNotFoundError
from opvault.core.loader import DEFAULT_PROFILE, load_profile
from opvault.core.models import Profile, VaultContents
from opvault.core.vault import open_vault


ENV_PATH = "OPVAULT_PATH"
ENV_PROFILE = "OPVAULT_PROFILE"
ENV_PASSWORD = "OPVAULT_PASSWORD"


@dataclass
class AppContext:
    """Container for what the frontends need: where the vault is and, once unlocked, its contents."""

    vault_path: Path
    profile: str = DEFAULT_PROFILE
    password_hint: Optional[str] = None
    contents: VaultContents | None = None

    @property
    def unlocked(self) -> bool:
        return self.contents is not None

    def unlock(self, password: bytes | str) -> VaultContents:
        # Decrypted data only lives on this object; nothing is written anywhere.
        self.contents = open_vault(self.vault_path, password, self.profile)
        return self.contents

    def lock(self) -> None:
        self.contents = None


def build_context(
    vault_path: Optional[str | Path] = None,
    profile: Optional[str] = None,
) -> AppContext:
    """
    Resolve the vault location and read the (unencrypted) password hint.

    Configuration:

    - ``vault_path`` falls back to ``OPVAULT_PATH``.
    - ``profile`` falls back to ``OPVAULT_PROFILE`` and then to ``default``.

    Nothing is decrypted here; call :meth:`AppContext.unlock` with the password.
    """
    vault_path = vault_path or os.getenv(ENV_PATH)
    if not vault_path:
        raise VaultNotFoundError(f"No vault given; pass a path or set {ENV_PATH}")
    profile = profile or os.getenv(ENV_PROFILE) or DEFAULT_PROFILE

    path = Path(vault_path).expanduser()
    hint = Profile.from_dict(load_profile(path, profile)).password_hint
    return AppContext(vault_path=path, profile=profile, password_hint=hint)


def read_password(prompt: str = "Master password: ") -> str:
    """Password from ``OPVAULT_PASSWORD`` if set, otherwise prompt without echo."""
    password = os.getenv(ENV_PASSWORD)
    if password is not None:
        return password
    return getpass.getpass(prompt)
