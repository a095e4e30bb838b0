"""Logging setup shared by the dump command and the viewer."""

import logging
import sys
from typing import TextIO


def configure_logging(level: int = logging.WARNING, stream: TextIO | None = None) -> None:
    # Root logger only; library modules just call getLogger(__name__).
    # stderr by default so dumped accounts on stdout stay clean.
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=stream or sys.stderr,
    )
