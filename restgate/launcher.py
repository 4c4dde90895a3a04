"""Open files or URLs with the operating system's default application."""

from __future__ import annotations

import subprocess
import sys
from typing import Iterable


def open_command(platform: str, paths: Iterable[str]) -> list[str]:
    """Return the command line that opens paths on the given platform."""
    if platform in ("windows", "win32", "cygwin"):
        command = ["cmd", "/c", "start"]
    elif platform == "darwin":
        command = ["open"]
    else:
        command = ["xdg-open"]
    return command + list(paths)


def open_paths(*args: str) -> subprocess.Popen:
    """Start opening the paths with the default application, without waiting."""
    return subprocess.Popen(open_command(sys.platform, args))