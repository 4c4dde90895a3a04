"""Dispatch of command lines to functions grouped by namespace."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, TextIO

from restgate.flags import HelpRequested


class NoCommandMatched(LookupError):
    """No command of the namespace matches the arguments."""


@dataclass
class Command:
    """A command: its name, argument limits and the function it runs.

    Limits count every argument, the namespace included.
    """

    name: str = ""
    description: str = ""
    syntax: str = ""
    min_args: int = 0
    max_args: int = 0
    fn: Optional[Callable[[], Any]] = None


@dataclass
class Namespace:
    """A named group of commands."""

    ns: str
    description: str = ""
    commands: list[Command] = field(default_factory=list)


def _matches(command: Command, args: Sequence[str]) -> bool:
    count = len(args)
    if count < command.min_args:
        return False
    if command.max_args >= command.min_args and count > command.max_args:
        return False
    second = args[1] if count > 1 else ""
    return not command.name or command.name == second


def run(namespaces: Sequence[Namespace], args: Sequence[str]) -> Any:
    """Run the first command matching args and return its result.

    Raises HelpRequested when there are no arguments or the namespace is unknown.
    """
    by_name = {namespace.ns: namespace.commands for namespace in namespaces}
    if not args:
        raise HelpRequested("no arguments")
    commands = by_name.get(args[0])
    if commands is None:
        raise HelpRequested(f"unknown namespace {json.dumps(args[0])}")

    command = next((c for c in commands if _matches(c, args)), None)
    if command is None or command.fn is None:
        quoted = "[" + " ".join(json.dumps(arg) for arg in args) + "]"
        raise NoCommandMatched(f"no command matched for: {quoted}")
    return command.fn()


def print_commands(out: TextIO, name: str, namespaces: Sequence[Namespace]) -> None:
    """Write the commands of every namespace."""
    for index, namespace in enumerate(namespaces):
        if not namespace.commands:
            continue
        if index > 0:
            out.write("\n")
        out.write(f"  {namespace.ns}:\n")
        if namespace.description:
            out.write(f"   {namespace.description}\n")
        for command in namespace.commands:
            if command.min_args == 0 and command.max_args == 0:
                out.write(f"    {name} {namespace.ns}")
            else:
                out.write(f"    {name} {namespace.ns} {command.name}")
            if command.syntax:
                out.write(f" {command.syntax}")
            if command.description:
                out.write(f"\n      {command.description}")
            out.write("\n")