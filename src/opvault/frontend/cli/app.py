"""Read-only Textual viewer for a decrypted OPVault.

Start here with `opvault --tui path/to/vault.opvault`
"""

from __future__ import annotations

from functools import partial
from typing import Optional

import pyperclip
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
)
from textual.worker import Worker, WorkerState

from opvault.core.exceptions import OpVaultError
from opvault.core.models import NO_FOLDER, Account, FolderRef, NoFolder
from opvault.frontend.cli.clipboard import clear_if_unchanged, copy_secret
from opvault.frontend.cli.context import AppContext, build_context


# seconds before a copied secret is wiped from the clipboard
CLIPBOARD_CLEAR_SECONDS = 30.0

UNLOCK_WORKER = "_unlock_worker"


def _cell(value: Optional[str]) -> str:
    return value or ""


def matches_filter(account: Account, text: str) -> bool:
    """Case-insensitive substring match on name, username and url."""
    needle = text.strip().lower()
    if not needle:
        return True
    return any(needle in _cell(v).lower() for v in (account.name, account.username, account.url))


def detail_text(account: Account, reveal: bool = False) -> str:
    password = _cell(account.password) if reveal else ("••••••••" if account.password else "")
    return "\n".join(
        [
            f"Name:     {_cell(account.name)}",
            f"Username: {_cell(account.username)}",
            f"Password: {password}",
            f"URL:      {_cell(account.url)}",
            f"Folder:   {_cell(account.folder_name)}",
            "",
            _cell(account.note),
        ]
    )


# === Modal definitions ===


class UnlockModal(ModalScreen[Optional[str]]):
    """Ask for the master password; dismisses with None on Esc."""

    def __init__(self, hint: str | None = None, error: str | None = None):
        super().__init__()
        self.hint = hint
        self.error = error

    def compose(self) -> ComposeResult:  # pragma: no cover - UI only
        with Vertical(classes="dialog"):
            yield Static("Unlock Vault", classes="title")
            if self.error:
                yield Label(self.error, classes="error")
            yield Label("Master password (Enter to unlock, Esc to quit)")
            self.password_input = Input(password=True, placeholder="••••••")
            yield self.password_input
            if self.hint:
                yield Label(f"Hint: {self.hint}", classes="section-label")
            with Horizontal():
                yield Button("Quit (Esc)", id="cancel")
                yield Button("Unlock (Enter)", id="ok", variant="primary")

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.password_input)

    def _submit(self) -> None:
        password = self.password_input.value
        self.dismiss(password if password else None)

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "cancel":
            self.dismiss(None)
        else:
            self._submit()

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)
        elif event.key == "enter":
            self._submit()


class FilterModal(ModalScreen[Optional[str]]):
    def __init__(self, current: str = ""):
        super().__init__()
        self.current = current

    def compose(self) -> ComposeResult:  # pragma: no cover
        with Vertical(classes="dialog"):
            yield Static("Filter", classes="title")
            yield Label("Name, username or URL contains (empty shows all)")
            self.filter_input = Input(value=self.current, placeholder="github")
            yield self.filter_input

    def on_mount(self) -> None:  # pragma: no cover
        self.set_focus(self.filter_input)

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key == "escape":
            self.dismiss(None)
        elif event.key == "enter":
            self.dismiss(self.filter_input.value)


class OpVaultApp(App):
    """Folders on the left, logins on the right, details below."""

    TITLE = "OPVault"

    CSS = """
    #sidebar { width: 30%; min-width: 24; border: heavy $surface; }
    #main { border: heavy $surface; }
    .title { padding: 1 1; text-style: bold; }
    #detail { padding: 0 1; height: 10; border-top: solid $surface; }
    #status { padding: 0 1 1 1; height: 3; color: $text-muted; }
    .section-label { padding: 0 1; color: $text-muted; }
    .error { padding: 0 1; color: $error; }
    ModalScreen { align: center middle; background: rgba(0,0,0,0.45); }
    .dialog { width: 60%; height: auto; padding: 1; border: heavy $surface; background: $boost; }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("u", "copy_username", "Copy User"),
        ("p", "copy_password", "Copy Pass"),
        ("s", "toggle_reveal", "Show/Hide"),
        ("/", "filter", "Filter"),
        ("l", "lock", "Lock"),
    ]

    def __init__(self, ctx: AppContext | None = None):
        self.ctx = ctx or build_context()
        super().__init__()

        self.folders: ListView | None = None
        self.table: DataTable | None = None
        self.detail: Static | None = None
        self.status: Static | None = None
        # index in the folder list -> folder (None means "All")
        self.folder_entries: list[FolderRef | None] = []
        self.folder_filter: FolderRef | None = None
        self.text_filter: str = ""
        self.rows: list[Account] = []
        self.reveal: bool = False

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal():
            with Vertical(id="sidebar"):
                yield Static("Folders", classes="title")
                self.folders = ListView(id="folders")
                yield self.folders
            with Vertical(id="main"):
                yield Static("Logins", classes="title")
                self.table = DataTable(id="accounts", cursor_type="row")
                yield self.table
                self.detail = Static("", id="detail")
                yield self.detail
                self.status = Static("", id="status")
                yield self.status
        yield Footer()

    def on_mount(self) -> None:
        assert self.table is not None
        self.table.add_columns("Name", "Username", "URL", "Folder")
        if self.ctx.unlocked:
            self.refresh_all()
        else:
            self.prompt_unlock()

    # ------------------------------------------------------------------
    # Unlocking
    # ------------------------------------------------------------------

    def prompt_unlock(self, error: str | None = None) -> None:
        self.push_screen(UnlockModal(self.ctx.password_hint, error), self._handle_unlock)

    def _handle_unlock(self, password: Optional[str]) -> None:
        if password is None:
            self.exit()
            return
        self._set_status("Decrypting…")
        self.run_worker(
            partial(self._unlock_worker, password),
            name=UNLOCK_WORKER,
            exclusive=True,
            thread=True,
        )

    def _unlock_worker(self, password: str) -> dict:
        """Runs the key derivation and decryption off the UI thread."""
        try:
            contents = self.ctx.unlock(password)
        except OpVaultError as exc:
            return {"success": False, "error": str(exc)}
        return {"success": True, "contents": contents}

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker.name != UNLOCK_WORKER or event.state != WorkerState.SUCCESS:
            return
        result = event.worker.result or {}
        if result.get("success"):
            self.refresh_all()
        else:
            self.ctx.lock()
            self.prompt_unlock(f"Unlock failed: {result.get('error')}")

    def action_lock(self) -> None:
        self.ctx.lock()
        self.rows = []
        self.reveal = False
        if self.table is not None:
            self.table.clear()
        if self.folders is not None:
            self.folders.clear()
        if self.detail is not None:
            self.detail.update("")
        self.prompt_unlock()

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def visible_accounts(self) -> list[Account]:
        contents = self.ctx.contents
        if contents is None:
            return []
        if self.folder_filter is None:
            accounts = contents.accounts
        else:
            accounts = contents.folder_accounts(self.folder_filter)
        return [a for a in accounts if matches_filter(a, self.text_filter)]

    def folder_choices(self) -> list[FolderRef | None]:
        contents = self.ctx.contents
        if contents is None:
            return []
        folders = sorted(contents.folders.values(), key=lambda f: _cell(f.name).lower())
        return [None, *folders, NO_FOLDER]

    @staticmethod
    def folder_label(folder: FolderRef | None) -> str:
        if folder is None:
            return "All"
        if isinstance(folder, NoFolder):
            return "No folder"
        return _cell(folder.name) or folder.id

    def refresh_all(self) -> None:
        self.refresh_folders()
        self.refresh_accounts()

    def refresh_folders(self) -> None:
        self.folder_entries = self.folder_choices()
        if self.folders is None:
            return
        self.folders.clear()
        for folder in self.folder_entries:
            self.folders.append(ListItem(Label(self.folder_label(folder))))

    def refresh_accounts(self) -> None:
        self.rows = self.visible_accounts()
        if self.table is not None:
            self.table.clear()
            for index, account in enumerate(self.rows):
                self.table.add_row(
                    _cell(account.name),
                    _cell(account.username),
                    _cell(account.url),
                    _cell(account.folder_name),
                    key=str(index),
                )
        self._show_detail(self.rows[0] if self.rows else None)
        total = len(self.ctx.contents.accounts) if self.ctx.contents else 0
        self._set_status(f"{len(self.rows)} of {total} logins")

    def selected_account(self) -> Account | None:
        if not self.rows:
            return None
        row = self.table.cursor_row if self.table is not None else 0
        if row is None or not 0 <= row < len(self.rows):
            return None
        return self.rows[row]

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        index = event.list_view.index
        if index is None or not 0 <= index < len(self.folder_entries):
            return
        self.folder_filter = self.folder_entries[index]
        self.refresh_accounts()

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        row = event.cursor_row
        if 0 <= row < len(self.rows):
            self._show_detail(self.rows[row])

    def _show_detail(self, account: Account | None) -> None:
        if self.detail is None:
            return
        self.detail.update(detail_text(account, self.reveal) if account else "")

    def _set_status(self, text: str) -> None:
        if self.status is not None:
            self.status.update(text)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_toggle_reveal(self) -> None:
        self.reveal = not self.reveal
        self._show_detail(self.selected_account())

    def action_filter(self) -> None:
        self.push_screen(FilterModal(self.text_filter), self._handle_filter)

    def _handle_filter(self, text: Optional[str]) -> None:
        if text is None:
            return
        self.text_filter = text
        self.refresh_accounts()

    def action_copy_username(self) -> None:
        account = self.selected_account()
        self._copy(account.username if account else None, "Username")

    def action_copy_password(self) -> None:
        account = self.selected_account()
        self._copy(account.password if account else None, "Password")

    def _copy(self, text: str | None, what: str) -> None:
        try:
            copied = copy_secret(text)
        except pyperclip.PyperclipException as e:
            self.notify(f"Clipboard unavailable: {e}", severity="error")
            return
        if not copied:
            self.notify(f"{what} is empty", severity="warning")
            return
        self.set_timer(CLIPBOARD_CLEAR_SECONDS, partial(self._clear_clipboard, text))
        self.notify(f"{what} copied; clipboard clears in {int(CLIPBOARD_CLEAR_SECONDS)}s")

    def _clear_clipboard(self, text: str) -> None:
        try:
            clear_if_unchanged(text)
        except pyperclip.PyperclipException:
            pass

    def action_quit(self) -> None:
        self.ctx.lock()
        self.exit()


if __name__ == "__main__":  # pragma: no cover
    OpVaultApp().run()
