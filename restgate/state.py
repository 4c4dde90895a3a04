"""Persisted choice of agent and model for the agent command-line tool."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

STATE_FILE = "state.json"

PathLike = Union[str, "os.PathLike[str]"]


def _user_config_dir() -> Path:
    """Return the per-user configuration directory for this platform."""
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA", "")
        if not appdata:
            raise OSError("%AppData% is not defined")
        return Path(appdata)
    if sys.platform == "darwin":
        home = os.environ.get("HOME", "")
        if not home:
            raise OSError("$HOME is not defined")
        return Path(home) / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        if not os.path.isabs(xdg):
            raise OSError("path in $XDG_CONFIG_HOME is relative")
        return Path(xdg)
    home = os.environ.get("HOME", "")
    if not home:
        raise OSError("neither $XDG_CONFIG_HOME nor $HOME are defined")
    return Path(home) / ".config"


@dataclass
class State:
    """The agent and model last used, stored as JSON at ``path``."""

    agent: str = ""
    model: str = ""
    path: str = ""

    def load(self) -> None:
        """Read the state file; a missing or unreadable file leaves the state as it is."""
        try:
            handle = open(self.path, encoding="utf-8")
        except OSError:
            return
        with handle:
            data: Any = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"state: expected an object, got {type(data).__name__}")
        for key in ("agent", "model"):
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"state: {key} must be a string")
            setattr(self, key, value)

    def save(self) -> None:
        """Write the state file."""
        data = json.dumps({"agent": self.agent, "model": self.model}, separators=(",", ":"))
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write(data + "\n")

    def close(self) -> None:
        """Save the state."""
        self.save()

    def __enter__(self) -> "State":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def new_state(name: str, config_dir: Optional[PathLike] = None) -> State:
    """Create the state for an application, loading any saved state.

    The state lives in ``<config_dir>/<name>/state.json``; config_dir
    defaults to the user's configuration directory.
    """
    directory = Path(config_dir) if config_dir is not None else _user_config_dir()
    if name:
        directory = directory / name
    directory.mkdir(mode=0o700, parents=True, exist_ok=True)

    state = State(path=str(directory / STATE_FILE))
    try:
        state.load()
    except (OSError, ValueError):
        pass
    return state