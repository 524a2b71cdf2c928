"""Logging-related utilities.

This module has no dependencies on the rest of the package so both the CLI and
the transport layer can use it.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Optional

# A reasonably complete ANSI escape sequence matcher (CSI + single-character).
_ANSI_ESCAPE_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def sanitize_log(text: str) -> str:
    """Make captured remote output readable in error messages.

    - Normalize carriage returns (``\\r``) into newlines, so rsync/cargo
      progress output becomes one update per line.
    - Strip ANSI escape sequences (colors, cursor movement, etc.).
    - Drop trailing whitespace and empty lines produced by progress redraws.

    Content is never filtered otherwise.
    """

    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_ESCAPE_RE.sub("", text)

    out_lines: list[str] = []
    for line in text.split("\n"):
        s = line.rstrip()
        if s:
            out_lines.append(s)
    return "\n".join(out_lines)


def format_duration(seconds: float) -> str:
    """``75.5`` -> ``"1m 15.500s"``, ``2.0`` -> ``"2.000s"``."""

    total_ms = int(round(max(0.0, seconds) * 1000))
    minutes, rem_ms = divmod(total_ms, 60_000)
    secs, millis = divmod(rem_ms, 1000)
    if minutes > 0:
        return f"{minutes}m {secs}.{millis:03d}s"
    return f"{secs}.{millis:03d}s"


def configure_logging(verbosity: int = 0, stream: Optional[object] = None) -> None:
    """Configure console logging for the CLI.

    Does nothing when the root logger already has handlers (e.g. under pytest
    or when embedded in another tool).
    """

    root = logging.getLogger()
    if root.handlers:
        return

    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stderr)],
    )
