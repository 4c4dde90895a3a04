"""Parsing of image sizes written as <width>x<height>."""

from __future__ import annotations

import re

_SIZE = re.compile(r"(\d+)x(\d+)", re.ASCII)
_MAX = 2**64


def parse_size(value: str) -> tuple[int, int]:
    """Return (width, height) from a size such as "1024x1024"."""
    match = _SIZE.fullmatch(value)
    if match is None:
        raise ValueError("invalid size, should be <width>x<height>")
    width, height = int(match.group(1)), int(match.group(2))
    for number, text in ((width, match.group(1)), (height, match.group(2))):
        if number >= _MAX:
            raise ValueError(f"parse error: {text!r}: value out of range")
    return width, height