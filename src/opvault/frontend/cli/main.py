"""Command-line entry point: decrypt an .opvault and print its logins.

Run with `opvault path/to/vault.opvault` or `python -m opvault.frontend.cli.main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence, TextIO

from opvault.core.exceptions import OpVaultError
from opvault.core.models import Account

from .context import ENV_PATH, ENV_PROFILE, build_context, read_password
from .logging_config import configure_logging


logger = logging.getLogger(__name__)


def _text(value: Optional[str]) -> str:
    return "" if value is None else value


def format_account(index: int, account: Account) -> str:
    # index is 1-based in the output
    return (
        f"{index}: {account.id}, {_text(account.name)} {_text(account.username)}, "
        f"{_text(account.password)}, {_text(account.url)}, {_text(account.note)}, "
        f"{_text(account.folder_name)}"
    )


def print_accounts(accounts: Sequence[Account], out: TextIO) -> None:
    for index, account in enumerate(accounts, start=1):
        print(format_account(index, account), file=out)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opvault",
        description="Decrypt an OPVault password vault and list its logins.",
    )
    parser.add_argument(
        "vault",
        nargs="?",
        default=None,
        help=f"Path to the .opvault directory (default: ${ENV_PATH})",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help=f"Profile directory inside the vault (default: ${ENV_PROFILE} or 'default')",
    )
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Open the interactive viewer instead of printing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        ctx = build_context(args.vault, args.profile)
        if args.tui:
            # imported lazily so plain dumps don't pay for Textual
            from .app import OpVaultApp

            OpVaultApp(ctx).run()
            return 0

        contents = ctx.unlock(read_password())
    except OpVaultError as e:
        logger.debug("open failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("", file=sys.stderr)
        return 130

    print_accounts(contents.accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
