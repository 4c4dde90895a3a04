"""Command sets and the functions they dispatch to."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

CallFn = Callable[[Any, list[str]], Any]
ParseFn = Callable[..., Any]


@dataclass
class Fn:
    """One function of a command set, called with a writer and its arguments.

    A limit of zero means the number of arguments is not limited that way.
    """

    name: str = ""
    description: str = ""
    min_args: int = 0
    max_args: int = 0
    syntax: str = ""
    call: Optional[CallFn] = None

    def check_args(self, args: Sequence[str]) -> list[str]:
        """Return args as a list if their count is within the limits."""
        count = len(args)
        too_few = self.min_args != 0 and count < self.min_args
        too_many = self.max_args != 0 and count > self.max_args
        if too_few or too_many:
            raise ValueError(f"syntax error: {self.name} {self.syntax}")
        return list(args)


@dataclass
class Cmd:
    """A named set of functions sharing flags and a client.

    ``parse`` is called with the flags and keyword options for the client
    before any function of the set runs.
    """

    name: str
    description: str = ""
    parse: Optional[ParseFn] = None
    fn: list[Fn] = field(default_factory=list)

    def get(self, name: str) -> Optional[Fn]:
        """Return the function with this name, or None."""
        return next((fn for fn in self.fn if fn.name == name), None)