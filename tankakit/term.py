"""Interactive confirmation prompts and colored unified diff output."""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO


class ConfirmationFailed(Exception):
    """Raised when the user does not confirm an action."""

    def __init__(self, message: str = "aborted by user") -> None:
        super().__init__(message)


def confirm(msg: str, approval: str) -> None:
    """Ask on the terminal for confirmation; raise ConfirmationFailed if refused."""
    confirm_from(sys.stdin, sys.stdout, msg, approval)


def confirm_from(reader: TextIO, writer: TextIO, msg: str, approval: str) -> None:
    """Print ``msg`` to ``writer`` and require ``approval`` to be typed on ``reader``."""
    writer.write(f"{msg}\n")
    writer.write(f"Please type '{approval}' to confirm: ")
    writer.flush()

    line = reader.readline()
    if not line:
        raise ConfirmationFailed()

    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]

    if line != approval:
        raise ConfirmationFailed()


_GREEN = "32"
_RED = "31"
_BLUE_BOLD = "34;1"
_MAGENTA_BOLD = "35;1"

_RULES = (
    ("+", _GREEN),
    ("-", _RED),
    ("diff -u -N", _BLUE_BOLD),
    ("@", _MAGENTA_BOLD),
)


def _color_enabled() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _paint(line: str, use_color: bool) -> str:
    if not use_color:
        return line
    for prefix, code in _RULES:
        if line.startswith(prefix):
            return f"\x1b[{code}m{line}\x1b[0m"
    return line


def colordiff(diff: str, use_color: Optional[bool] = None) -> str:
    """Colorize unified diff output, one line per input line.

    When ``use_color`` is None, color is used only when stdout is a terminal.
    """
    if use_color is None:
        use_color = _color_enabled()
    return "".join(f"{_paint(line, use_color)}\n" for line in diff.split("\n"))