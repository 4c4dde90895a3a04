"""Command-line flags, command-set selection and usage output."""

from __future__ import annotations

import enum
import json
import math
import os
import platform
import re
import sys
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, Optional, Sequence, TextIO

from restgate.commands import Cmd, Fn


class HelpRequested(Exception):
    """Help, usage or version was asked for, or no command could be run."""


class InstallRequested(Exception):
    """The install command was given."""


class FlagNotFoundError(LookupError):
    """The flag was not set on the command line."""


class FlagType(enum.Enum):
    BOOL = "bool"
    STRING = "string"
    DURATION = "duration"
    FLOAT = "float"
    UNSIGNED = "unsigned"


_EXT = re.compile(r"[a-zA-Z0-9]{1,32}")
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": Fraction(1, 10**9),
    "us": Fraction(1, 10**6),
    "µs": Fraction(1, 10**6),
    "μs": Fraction(1, 10**6),
    "ms": Fraction(1, 1000),
    "s": Fraction(1),
    "m": Fraction(60),
    "h": Fraction(3600),
}
_ENV = re.compile(r"\$(?:\{([^}]*)\}|([*#$@!?\-0-9])|([A-Za-z0-9_]+))")
_BOOLS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}
_NS = 10**9


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _quote_list(values: Sequence[str]) -> str:
    return "[" + " ".join(_quote(v) for v in values) + "]"


def parse_duration(value: str) -> float:
    """Parse a duration such as "300ms", "1.5h" or "2h45m" into seconds."""
    text = value
    sign = 1
    if text.startswith(("+", "-")):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f"time: invalid duration {_quote(value)}")
    total = Fraction(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f"time: invalid duration {_quote(value)}")
        total += Fraction(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * round(total * _NS) / _NS


def _fixed(count: int, scale: int) -> str:
    whole, frac = divmod(count, scale)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(scale)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def _format_duration(seconds: float) -> str:
    ns = round(seconds * _NS)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_fixed(ns, 1000)}µs"
    if ns < _NS:
        return f"{sign}{_fixed(ns, 1_000_000)}ms"
    hours, rest = divmod(ns, 3600 * _NS)
    minutes, rest = divmod(rest, 60 * _NS)
    secs = _fixed(rest, _NS)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _parse_bool(text: str) -> bool:
    try:
        return _BOOLS[text]
    except KeyError:
        raise ValueError(f"parse error: {_quote(text)}: invalid syntax") from None


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"parse error: {_quote(text)}: invalid syntax")
    try:
        if "0x" in text.lower():
            return float.fromhex(text)
        return float(text)
    except ValueError:
        raise ValueError(f"parse error: {_quote(text)}: invalid syntax") from None


def _parse_uint(text: str, any_base: bool = False) -> int:
    lower = text.lower()
    if any_base and re.fullmatch(r"0x[0-9a-f_]+|0o[0-7_]+|0b[01_]+", lower):
        number = int(text, 0)
    elif any_base and re.fullmatch(r"0[0-7_]*", text):
        number = int(text.replace("_", "") or "0", 8)
    elif any_base and re.fullmatch(r"[1-9][0-9_]*", text) and "__" not in text and not text.endswith("_"):
        number = int(text.replace("_", ""))
    elif re.fullmatch(r"[0-9]+", text):
        number = int(text)
    else:
        raise ValueError(f"parse error: {_quote(text)}: invalid syntax")
    if number >= 2**64:
        raise ValueError(f"parse error: {_quote(text)}: value out of range")
    return number


def _expand_env(text: str) -> str:
    def replace(match: re.Match) -> str:
        name = next(g for g in match.groups() if g is not None)
        return os.environ.get(name, "") if name else ""

    return _ENV.sub(replace, text)


def _ext(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    index = base.rfind(".")
    return base[index:] if index >= 0 else ""


_SETTERS: dict[FlagType, Callable[[str], Any]] = {
    FlagType.BOOL: _parse_bool,
    FlagType.STRING: str,
    FlagType.DURATION: parse_duration,
    FlagType.FLOAT: _parse_float,
    FlagType.UNSIGNED: lambda text: _parse_uint(text, any_base=True),
}
_FORMATTERS: dict[FlagType, Callable[[Any], str]] = {
    FlagType.BOOL: lambda value: "true" if value else "false",
    FlagType.STRING: str,
    FlagType.DURATION: _format_duration,
    FlagType.FLOAT: _format_float,
    FlagType.UNSIGNED: str,
}
_VALUE_PARSERS: dict[FlagType, Callable[[str], Any]] = {
    FlagType.BOOL: _parse_bool,
    FlagType.STRING: str,
    FlagType.DURATION: parse_duration,
    FlagType.FLOAT: _parse_float,
    FlagType.UNSIGNED: _parse_uint,
}


@dataclass
class _Flag:
    name: str
    cmd: str
    type: FlagType
    usage: str
    value: Any
    default: str = ""
    visited: bool = False

    @property
    def text(self) -> str:
        return _FORMATTERS[self.type](self.value)

    def set(self, raw: str) -> None:
        self.value = _SETTERS[self.type](raw)


class Flags:
    """Flags for the command-line tool, grouped by the command set they belong to."""

    def __init__(self, name: str, output: Optional[TextIO] = None) -> None:
        self.name = name
        self.output: TextIO = output if output is not None else sys.stderr
        self.cmd: Optional[Cmd] = None
        self.args: list[str] = []
        self._flags: dict[str, _Flag] = {}
        self._cmds: list[Cmd] = []
        self._root = name
        self._fn = ""
        self._fn_args: list[str] = []

        self.add_string("", "out", "", "Set output filename or type")
        self.add_bool("", "debug", False, "Enable debug logging")
        self.add_bool("", "verbose", False, "Enable verbose output")
        self.add_duration("", "timeout", 0, "Client timeout")

    @property
    def commands(self) -> tuple[Cmd, ...]:
        """The registered command sets, in registration order."""
        return tuple(self._cmds)

    def register(self, cmd: Cmd) -> None:
        """Add a command set."""
        self._cmds.append(cmd)

    def parse(self, args: Sequence[str]) -> tuple[Fn, list[str]]:
        """Parse the command line and return the function to run with its arguments."""
        error = self._parse_flags(args)
        rest = self.args

        if len(rest) == 1:
            if rest[0] == "version":
                self.print_version()
                raise HelpRequested("version")
            if rest[0] == "help":
                self.print_usage()
                raise HelpRequested("help")
            if rest[0] == "install":
                raise InstallRequested("install")

        cmd = self._command_set(self.name)
        if cmd is not None:
            self.cmd = cmd
            self._root = cmd.name
            if rest:
                self._fn = rest[0]
                self._fn_args = list(rest[1:])
        elif rest:
            cmd = self._command_set(rest[0])
            if cmd is not None:
                self.cmd = cmd
                self._root = f"{self.name} {cmd.name}"
                self._fn = rest[1] if len(rest) > 1 else ""
                self._fn_args = list(rest[2:])

        if self.get_bool("debug"):
            print(f"Function: {_quote(self._fn)} Args: {_quote_list(self._fn_args)}", file=self.output)

        if error is not None:
            if isinstance(error, HelpRequested):
                self.print_usage()
            raise error
        if self.cmd is None:
            print(f'Unknown command, try "{self.name} -help"', file=self.output)
            raise HelpRequested("unknown command")

        opts: dict[str, Any] = {}
        if self.get_bool("debug"):
            opts = {"trace": self.output, "verbose": self.get_bool("verbose")}

        if self.cmd.parse is not None:
            try:
                self.cmd.parse(self, **opts)
            except Exception as exc:
                print(f"{self.cmd.name}: {exc}", file=self.output)
                raise

        fn = self.cmd.get(self._fn)
        if fn is None:
            print(f'Unknown command, try "{self.name} -help"', file=self.output)
            raise HelpRequested("unknown command")

        try:
            fn_args = fn.check_args(self._fn_args)
        except ValueError as exc:
            print(exc, file=self.output)
            raise
        return fn, fn_args

    def get(self, name: str) -> tuple[str, bool]:
        """Return a flag's value as text, and whether it was set on the command line."""
        flag = self._flags.get(name)
        if flag is None:
            return "", False
        return flag.text, flag.visited

    def add_bool(self, cmd: str, name: str, value: bool, usage: str) -> None:
        """Define a boolean flag for a command set ("" for global)."""
        self._define(cmd, name, FlagType.BOOL, bool(value), usage)

    def add_string(self, cmd: str, name: str, value: str, usage: str) -> None:
        """Define a string flag for a command set ("" for global)."""
        self._define(cmd, name, FlagType.STRING, value, usage)

    def add_duration(self, cmd: str, name: str, value: float, usage: str) -> None:
        """Define a duration flag, in seconds, for a command set ("" for global)."""
        self._define(cmd, name, FlagType.DURATION, float(value), usage)

    def add_float(self, cmd: str, name: str, value: float, usage: str) -> None:
        """Define a float flag for a command set ("" for global)."""
        self._define(cmd, name, FlagType.FLOAT, float(value), usage)

    def add_unsigned(self, cmd: str, name: str, value: int, usage: str) -> None:
        """Define an unsigned integer flag for a command set ("" for global)."""
        if value < 0:
            raise ValueError(f"unsigned flag {_quote(name)} cannot default to {value}")
        self._define(cmd, name, FlagType.UNSIGNED, int(value), usage)

    def get_bool(self, name: str) -> bool:
        """Return the value of a boolean flag, or False if there is none."""
        flag = self._flags.get(name)
        return bool(flag.value) if flag is not None and flag.type is FlagType.BOOL else False

    def get_string(self, name: str) -> str:
        """Return a flag's value as text with environment variables expanded."""
        value, _ = self.get(name)
        return _expand_env(value)

    def get_value(self, name: str) -> Any:
        """Return a flag's typed value, if it was set on the command line."""
        value, visited = self.get(name)
        if not visited:
            raise FlagNotFoundError(name)
        return _VALUE_PARSERS[self._flags[name].type](_expand_env(value))

    def get_out_ext(self) -> str:
        """Return the output type or file extension, without the dot, or ""."""
        value, exists = self.get("out")
        if not exists:
            return ""
        ext = _ext(value)
        if ext == "" and _EXT.fullmatch(value):
            return value
        if len(ext) > 1 and ext[0] == "." and _EXT.fullmatch(ext[1:]):
            return ext[1:]
        return ""

    def get_out_path(self) -> str:
        """Return the output file path, or "" if no file was named."""
        value, exists = self.get("out")
        if not exists or self.get_out_ext() == value:
            return ""
        return value

    def print_version(self) -> None:
        """Write the program name and runtime version."""
        self.output.write(f"{self.name}\n")
        self.output.write(
            f"Python {platform.python_version()} {sys.platform}/{platform.machine()}\n"
        )

    def print_usage(self) -> None:
        """Write usage for the selected command set, or for the whole program."""
        if self.cmd is not None:
            self.print_command_usage(self.cmd)
            return
        w = self.output
        print("Name:", self._root, file=w)
        print("  General command-line interface to API clients", file=w)
        print(file=w)

        print("Command Sets:", file=w)
        for cmd in self._cmds:
            print("  ", self._root, cmd.name, file=w)
            print("    ", cmd.description, file=w)
            print(file=w)

        print("Help:", file=w)
        print("  ", self._root, "version", file=w)
        print("    ", "Return the version of the application", file=w)
        print(file=w)
        print("  ", self._root, "install", file=w)
        print("    ", "Install symlinks for command calling", file=w)
        print(file=w)

        for cmd in self._cmds:
            print("  ", self._root, "-help", cmd.name, file=w)
            print("    ", "Display", cmd.name, "command syntax", file=w)
            print(file=w)

        print(file=w)
        self.print_global_flags()

    def print_global_flags(self) -> None:
        """Write the flags that belong to no command set."""
        self.print_command_flags("")

    def print_command_usage(self, cmd: Cmd) -> None:
        """Write the functions and flags of a command set."""
        w = self.output
        print("Name:", self._root, file=w)
        print("  ", cmd.description, file=w)
        print(file=w)

        print("Commands:", file=w)
        for fn in cmd.fn:
            print("  ", self._root, fn.name, fn.syntax, file=w)
            print("    ", fn.description, file=w)
            print(file=w)
        self.print_command_flags(cmd.name)
        print(file=w)
        self.print_global_flags()

    def print_command_flags(self, cmd: str) -> None:
        """Write the flags of one command set ("" for global flags)."""
        w = self.output
        if cmd == "":
            print("Global flags:", file=w)
        else:
            print(f"Flags for {cmd}:", file=w)
        for flag in sorted(self._flags.values(), key=lambda f: f.name):
            if flag.cmd == cmd:
                w.write(f"  -{flag.name}")
                if flag.default and flag.default not in ("false", "0", "0s"):
                    w.write(f" (default {_quote(flag.default)})")
                w.write(f"\n    {flag.usage}\n\n")

    def _define(self, cmd: str, name: str, kind: FlagType, value: Any, usage: str) -> None:
        if name in self._flags:
            raise ValueError(f"flag redefined: {_quote(name)}")
        flag = _Flag(name=name, cmd=cmd, type=kind, usage=usage, value=value)
        flag.default = flag.text
        self._flags[name] = flag

    def _command_set(self, name: str) -> Optional[Cmd]:
        return next((cmd for cmd in self._cmds if cmd.name == name), None)

    def _fail(self, message: str) -> ValueError:
        print(message, file=self.output)
        return ValueError(message)

    def _parse_flags(self, args: Sequence[str]) -> Optional[Exception]:
        """Consume flags from args, leaving the rest in self.args; return any error."""
        self.args = remaining = list(args)
        while remaining:
            arg = remaining[0]
            if len(arg) < 2 or arg[0] != "-":
                return None
            minuses = 1
            if arg[1] == "-":
                minuses = 2
                if len(arg) == 2:
                    remaining.pop(0)
                    return None
            name = arg[minuses:]
            if not name or name[0] in "-=":
                return self._fail(f"bad flag syntax: {arg}")
            remaining.pop(0)
            name, sep, value = name.partition("=")
            has_value = bool(sep)

            flag = self._flags.get(name)
            if flag is None:
                if name in ("help", "h"):
                    return HelpRequested("help")
                return self._fail(f"flag provided but not defined: -{name}")

            if flag.type is FlagType.BOOL:
                raw = value if has_value else "true"
                try:
                    flag.set(raw)
                except ValueError as exc:
                    return self._fail(f"invalid boolean value {_quote(raw)} for -{name}: {exc}")
            else:
                if not has_value:
                    if not remaining:
                        return self._fail(f"flag needs an argument: -{name}")
                    value = remaining.pop(0)
                try:
                    flag.set(value)
                except ValueError as exc:
                    return self._fail(f"invalid value {_quote(value)} for flag -{name}: {exc}")
            flag.visited = True
        return None