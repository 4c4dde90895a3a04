"""Install symbolic links so each command set can be called by its own name."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


def stat_equals(a: os.stat_result, b: os.stat_result) -> bool:
    """Return True if two files have the same size and modification time."""
    return a.st_size == b.st_size and a.st_mtime_ns == b.st_mtime_ns


def install(names: Iterable[str], executable: Optional[PathLike] = None) -> None:
    """Link each name, beside the executable, to the executable.

    Names that already link to the executable are left alone. All failures
    are collected and raised together as one OSError.
    """
    exe = Path(executable if executable is not None else sys.argv[0]).resolve()
    info = os.stat(exe)
    directory = exe.parent

    errors: list[str] = []
    for name in names:
        target = directory / name
        quoted = json.dumps(name)
        try:
            existing = os.stat(target)
        except FileNotFoundError:
            pass
        except OSError as exc:
            errors.append(f"failed to install {quoted}: {exc}")
        else:
            if stat_equals(info, existing):
                continue
            errors.append(f"failed to install {quoted}: file exists but doesn't match")
        try:
            os.symlink(exe, target)
        except OSError as exc:
            errors.append(f"failed to install {quoted}: {exc}")

    if errors:
        raise OSError("\n".join(errors))