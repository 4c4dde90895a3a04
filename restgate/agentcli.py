"""Agents, models and tools, and the session that lists them and chats."""

from __future__ import annotations

import json
import os
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, TextIO

from restgate.state import State
from restgate.term import Term


class Model(ABC):
    """A model served by an agent."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The model's name."""


@dataclass
class ToolCall:
    """A request from a model to run a tool."""

    name: str
    id: str = ""
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentResponse:
    """A generated response: text, or a tool call, with the context to continue from."""

    text: str = ""
    tool_call: Optional[ToolCall] = None
    context: list[Any] = field(default_factory=list)


class Tool(ABC):
    """A tool that a model may ask to run."""

    @property
    @abstractmethod
    def provider(self) -> str:
        """The name of the service providing the tool."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The tool's name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does."""

    @abstractmethod
    def run(self, call: ToolCall) -> Any:
        """Run the tool and return the result as context for the agent."""


class Agent(ABC):
    """A service that generates responses from models."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The agent's name."""

    @abstractmethod
    def models(self) -> Sequence[Model]:
        """Return the models the agent serves."""

    @abstractmethod
    def user_prompt(self, text: str) -> Any:
        """Return a context entry holding a user prompt."""

    @abstractmethod
    def generate(
        self,
        model: Model,
        context: Sequence[Any],
        *,
        stream: Optional[Callable[[AgentResponse], None]] = None,
        tools: Sequence[Tool] = (),
    ) -> AgentResponse:
        """Generate a response from the context."""


class ToolNotFoundError(LookupError):
    """No tool has the requested name."""


def env_or_default(name: str, default: str) -> str:
    """Return the environment variable's value, or default if it is unset or empty."""
    return os.environ.get(name, "") or default


class Session:
    """The agents, tools, saved state and terminal of one command-line run."""

    def __init__(
        self,
        agents: Sequence[Agent],
        tools: Sequence[Tool] = (),
        state: Optional[State] = None,
        term: Optional[Term] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        self.agents = list(agents)
        self.tools = list(tools)
        self.state = state if state is not None else State()
        self.term = term
        self.out: TextIO = out if out is not None else sys.stdout

    def find_model(self, agent: str = "", model: str = "") -> Optional[tuple[Agent, Model]]:
        """Return the first agent and model matching the names or the saved state.

        Names given override the state; the state is updated with the match.
        Agents whose models cannot be listed are skipped.
        """
        if agent:
            self.state.agent = agent
        if model:
            self.state.model = model

        for candidate in self.agents:
            if self.state.agent and candidate.name != self.state.agent:
                continue
            try:
                models = candidate.models()
            except Exception:
                continue
            for found in models:
                if self.state.model and found.name != self.state.model:
                    continue
                self.state.agent = candidate.name
                self.state.model = found.name
                return candidate, found
        return None

    def find_tool(self, name: str) -> Optional[Tool]:
        """Return the tool with this name, or None."""
        return next((tool for tool in self.tools if tool.name == name), None)

    def run_tool(self, call: ToolCall) -> Any:
        """Run the tool a call names and return its result."""
        tool = self.find_tool(call.name)
        if tool is None:
            raise ToolNotFoundError(f"tool {json.dumps(call.name)} not found")
        return tool.run(call)

    def _emit(self, value: Any) -> Any:
        print(json.dumps(value, indent=2), file=self.out)
        return value

    def list_agents(self) -> list[str]:
        """Print and return the agent names."""
        return self._emit([agent.name for agent in self.agents])

    def list_models(self) -> list[dict[str, str]]:
        """Print and return every agent's models."""
        result = [
            {"agent": agent.name, "model": model.name}
            for agent in self.agents
            for model in agent.models()
        ]
        return self._emit(result)

    def list_tools(self) -> list[dict[str, str]]:
        """Print and return the tools."""
        result = [
            {"provider": tool.provider, "name": tool.name, "description": tool.description}
            for tool in self.tools
        ]
        return self._emit(result)

    def chat(self, prompt: str = "", agent: str = "", model: str = "", stream: bool = False) -> None:
        """Chat with a model, running tools it calls, until there is no more input.

        With an empty prompt, prompts are read from the terminal until an
        empty line is entered.
        """
        found = self.find_model(agent, model)
        if found is None:
            raise LookupError(
                f"model {json.dumps(self.state.model)} not found, or not set on command line"
            )
        chat_agent, chat_model = found

        callback: Optional[Callable[[AgentResponse], None]] = None
        if stream:
            def callback(response: AgentResponse) -> None:
                print(response, file=self.out)

        context: list[Any] = []
        if not prompt:
            if self.term is None:
                raise ValueError("prompt is empty and not in interactive mode")
        else:
            context.append(chat_agent.user_prompt(prompt))

        while True:
            if not context:
                if self.term is None:
                    break
                line = self.term.read_line(chat_model.name + "> ")
                if line == "":
                    break
                context.append(chat_agent.user_prompt(line))

            response = chat_agent.generate(chat_model, context, stream=callback, tools=self.tools)
            if response.tool_call is not None:
                result = self.run_tool(response.tool_call)
                context = list(response.context) + [result]
            else:
                print(response.text, file=self.out)
                context = []