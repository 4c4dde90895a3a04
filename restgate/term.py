"""Line input from a terminal."""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO


class Term:
    """Reads prompted lines from a stream when it is an interactive terminal."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        fd: Optional[int]
        try:
            fd = stream.fileno()
        except (AttributeError, OSError, ValueError):
            fd = None
        self._fd = fd
        self.interactive = fd is not None and bool(stream.isatty())

    def size(self) -> tuple[int, int]:
        """Return the terminal's width and height, or (0, 0) if unknown."""
        if self.interactive and self._fd is not None:
            try:
                columns, lines = os.get_terminal_size(self._fd)
            except OSError:
                return 0, 0
            return columns, lines
        return 0, 0

    def read_line(self, prompt: str) -> str:
        """Show prompt and return the next line, without its line ending.

        Raises EOFError at end of input, or when the stream is not a terminal.
        """
        if not self.interactive:
            raise EOFError("not an interactive terminal")
        if self.stream is sys.stdin:
            return input(prompt)
        sys.stdout.write(prompt)
        sys.stdout.flush()
        line = self.stream.readline()
        if not line:
            raise EOFError("end of input")
        return line.rstrip("\r\n")