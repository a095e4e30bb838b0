"""Clipboard utilities for the viewer.

Uses pyperclip for cross-platform clipboard access.
"""

from __future__ import annotations

import pyperclip


def copy_secret(text: str | None) -> bool:
    """Copy a username/password to the system clipboard.

    Returns False (and leaves the clipboard alone) when there is nothing to copy.

    Raises:
        pyperclip.PyperclipException: If clipboard access fails.
    """
    if not text:
        return False
    pyperclip.copy(text)
    return True


def clear_if_unchanged(text: str) -> bool:
    """Empty the clipboard, but only if it still holds what we put there."""
    if pyperclip.paste() != text:
        return False
    pyperclip.copy("")
    return True
