"""Convenience entry point to run the OPVault reader.

Allows `python main.py path/to/vault.opvault [--tui]` from the project root.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import opvault` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from opvault.frontend.cli.main import main


if __name__ == "__main__":
    sys.exit(main())
