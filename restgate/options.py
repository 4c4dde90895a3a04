"""Command-line options for the namespace-based command runner."""

from __future__ import annotations

import enum
import posixpath
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from restgate.flags import (
    FlagNotFoundError,
    HelpRequested,
    _expand_env,
    _ext,
    _format_duration,
    _format_float,
    _parse_bool,
    _parse_float,
    _parse_uint,
    parse_duration,
)

Register = Callable[["Options"], None]


class _Kind(enum.Enum):
    BOOL = "bool"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    DURATION = "duration"


def _parse_int(text: str, any_base: bool = False) -> int:
    """Parse a signed 64-bit integer; any_base allows 0x, 0o, 0b and 0 prefixes."""
    sign = 1
    body = text
    if body.startswith(("+", "-")):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if not body or body[0] in "+-":
        raise ValueError(f"parse error: {text!r}: invalid syntax")
    try:
        magnitude = _parse_uint(body, any_base=any_base)
    except ValueError:
        raise ValueError(f"parse error: {text!r}: invalid syntax") from None
    number = sign * magnitude
    if not -(2**63) <= number < 2**63:
        raise ValueError(f"parse error: {text!r}: value out of range")
    return number


_PARSERS: dict[_Kind, Callable[[str], Any]] = {
    _Kind.BOOL: _parse_bool,
    _Kind.STRING: str,
    _Kind.INT: lambda text: _parse_int(text, any_base=True),
    _Kind.FLOAT: _parse_float,
    _Kind.DURATION: parse_duration,
}
_FORMATTERS: dict[_Kind, Callable[[Any], str]] = {
    _Kind.BOOL: lambda value: "true" if value else "false",
    _Kind.STRING: str,
    _Kind.INT: str,
    _Kind.FLOAT: _format_float,
    _Kind.DURATION: _format_duration,
}


@dataclass
class _Option:
    name: str
    kind: _Kind
    usage: str
    value: Any

    @property
    def text(self) -> str:
        return _FORMATTERS[self.kind](self.value)


def _base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


class Options:
    """Parsed command-line options, with the remaining arguments in ``args``.

    Functions given after the arguments are called with the options before
    parsing, so they can define further options.
    """

    def __init__(self, name: str, args: Sequence[str] = (), *register: Register) -> None:
        self.name = name
        self.args: list[str] = []
        self._options: dict[str, _Option] = {}

        self.add_bool("debug", False, "Enable debug logging")
        self._define("timeout", _Kind.DURATION, 0.0, "Timeout")
        self.add_string("out", "", "Output format or file name")
        self.add_string("cols", "", "Comma-separated list of columns to output")
        for fn in register:
            fn(self)

        self._parse(args)

    def add_string(self, name: str, value: str, usage: str) -> None:
        """Define a string option."""
        self._define(name, _Kind.STRING, str(value), usage)

    def add_bool(self, name: str, value: bool, usage: str) -> None:
        """Define a boolean option."""
        self._define(name, _Kind.BOOL, bool(value), usage)

    def add_int(self, name: str, value: int, usage: str) -> None:
        """Define an integer option."""
        self._define(name, _Kind.INT, int(value), usage)

    def add_float(self, name: str, value: float, usage: str) -> None:
        """Define a floating-point option."""
        self._define(name, _Kind.FLOAT, float(value), usage)

    def is_debug(self) -> bool:
        """Return True if debug logging was asked for."""
        return bool(self._options["debug"].value)

    def timeout(self) -> float:
        """Return the client timeout in seconds, zero if not set."""
        return float(self._options["timeout"].value)

    def get_out(self) -> str:
        """Return the output format or file name, or ""."""
        return self.get_string("out")

    def get_out_ext(self) -> str:
        """Return the output file extension without the dot, or the output itself if it has none."""
        out = self.get_out()
        if out == "":
            return ""
        ext = _ext(out)
        if ext == "":
            return out
        return ext[1:]

    def get_out_filename(self, default: str, n: int = 0) -> str:
        """Return an output file name, or "" if it has no extension.

        Without an output option the base name of default is used. A
        positive n is appended to the stem, as in "name-2.ext".
        """
        filename = self.get_out()
        if filename == "":
            filename = _base(default)
        if filename == "":
            return ""
        ext = _ext(filename)
        if ext == "":
            return ""
        stem = filename[: len(filename) - len(ext)]
        if n > 0:
            filename = f"{stem}-{n}{ext}"
        else:
            filename = stem + ext
        return posixpath.normpath(filename)

    def get_string(self, key: str) -> str:
        """Return an option's value as text, with environment variables expanded."""
        option = self._options.get(key)
        if option is None:
            return ""
        return _expand_env(option.text)

    def get_uint(self, key: str) -> int:
        """Return an option's value as an unsigned integer."""
        text = self._require(key)
        try:
            return _parse_uint(text)
        except ValueError:
            raise ValueError(f"bad parameter: {key}") from None

    def get_int(self, key: str) -> int:
        """Return an option's value as a signed integer."""
        text = self._require(key)
        try:
            return _parse_int(text)
        except ValueError:
            raise ValueError(f"bad parameter: {key}") from None

    def get_bool(self, key: str) -> bool:
        """Return an option's value as a boolean, False if missing or not a boolean."""
        option = self._options.get(key)
        if option is None:
            return False
        try:
            return _parse_bool(_expand_env(option.text))
        except ValueError:
            return False

    def get_float(self, key: str) -> Optional[float]:
        """Return an option's value as a float, or None if missing or not a number."""
        option = self._options.get(key)
        if option is None:
            return None
        try:
            return _parse_float(_expand_env(option.text))
        except ValueError:
            return None

    def _require(self, key: str) -> str:
        option = self._options.get(key)
        if option is None:
            raise FlagNotFoundError(key)
        return _expand_env(option.text)

    def _define(self, name: str, kind: _Kind, value: Any, usage: str) -> None:
        if name in self._options:
            raise ValueError(f"flag redefined: {name}")
        self._options[name] = _Option(name=name, kind=kind, usage=usage, value=value)

    def _parse(self, args: Sequence[str]) -> None:
        remaining = list(args)
        while remaining:
            arg = remaining[0]
            if len(arg) < 2 or arg[0] != "-":
                break
            minuses = 1
            if arg[1] == "-":
                minuses = 2
                if len(arg) == 2:
                    remaining.pop(0)
                    break
            body = arg[minuses:]
            if not body or body[0] in "-=":
                raise ValueError(f"bad flag syntax: {arg}")
            remaining.pop(0)
            name, sep, value = body.partition("=")

            option = self._options.get(name)
            if option is None:
                if name in ("help", "h"):
                    raise HelpRequested("help")
                raise ValueError(f"flag provided but not defined: -{name}")

            if option.kind is _Kind.BOOL:
                raw = value if sep else "true"
                try:
                    option.value = _parse_bool(raw)
                except ValueError as exc:
                    raise ValueError(f"invalid boolean value {raw!r} for -{name}: {exc}") from None
                continue
            if not sep:
                if not remaining:
                    raise ValueError(f"flag needs an argument: -{name}")
                value = remaining.pop(0)
            try:
                option.value = _PARSERS[option.kind](value)
            except ValueError as exc:
                raise ValueError(f"invalid value {value!r} for flag -{name}: {exc}") from None
        self.args = remaining