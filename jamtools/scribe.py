"""An indenting logger for progress output."""

from __future__ import annotations

import sys
from typing import Any, TextIO

__all__ = ["Logger"]


class Logger:
    """Writes messages at fixed indent levels: title, process, subprocess, action, detail."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def _out(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _emit(self, level: int, message: str, args: tuple[Any, ...]) -> None:
        text = message % args if args else message
        indent = "  " * level
        lines = (indent + line if line else line for line in text.split("\n"))
        self._out.write("\n".join(lines) + "\n")

    def title(self, message: str, *args: Any) -> None:
        """Write a message without indentation."""
        self._emit(0, message, args)

    def process(self, message: str, *args: Any) -> None:
        """Write a message indented one level."""
        self._emit(1, message, args)

    def subprocess(self, message: str, *args: Any) -> None:
        """Write a message indented two levels."""
        self._emit(2, message, args)

    def action(self, message: str, *args: Any) -> None:
        """Write a message indented three levels."""
        self._emit(3, message, args)

    def detail(self, message: str, *args: Any) -> None:
        """Write a message indented four levels."""
        self._emit(4, message, args)

    def break_(self) -> None:
        """Write an empty line."""
        self._out.write("\n")