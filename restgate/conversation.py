"""Chat messages made of content blocks, and the rules for keeping a history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
TYPE_TEXT = "text"
TYPE_TOOL_USE = "tool_use"
TYPE_TOOL_RESULT = "tool_result"
DEFAULT_HISTORY = 10


@dataclass
class Content:
    """One block of a message: text, a tool call, or the result of a tool call."""

    type: str
    text: str = ""
    id: str = ""
    name: str = ""
    input: dict[str, Any] = field(default_factory=dict)
    tool_use_id: str = ""
    result: str = ""

    def get_string(self, name: str) -> Optional[str]:
        """Return the string input argument with this name, or None."""
        value = self.input.get(name)
        return value if isinstance(value, str) else None


def text(value: str) -> Content:
    """Return a text content block."""
    return Content(type=TYPE_TEXT, text=value)


def tool_result(tool_id: str, value: str) -> Content:
    """Return the result of the tool call with the given id."""
    return Content(type=TYPE_TOOL_RESULT, tool_use_id=tool_id, result=value)


@dataclass
class Message:
    """A message from one role, holding content blocks in order."""

    role: str
    content: list[Content] = field(default_factory=list)

    def add(self, *args: Any) -> "Message":
        """Append content blocks, strings (as text) or sequences of them; return self."""
        for arg in args:
            if isinstance(arg, Content):
                self.content.append(arg)
            elif isinstance(arg, str):
                self.content.append(text(arg))
            elif isinstance(arg, (list, tuple)):
                self.add(*arg)
            else:
                raise TypeError(f"cannot add {type(arg).__name__} to a message")
        return self


def append_message(messages: list[Message], message: Message) -> list[Message]:
    """Append message, merging it into the last one when both have the same role."""
    if messages and messages[-1].role == message.role:
        messages[-1].add(message.content)
    else:
        messages.append(message)
    return messages


def _starts_conversation(message: Message) -> bool:
    if message.role != ROLE_USER:
        return False
    return bool(message.content) and message.content[0].type != TYPE_TOOL_RESULT


def curtail_history(messages: Iterable[Message], limit: int = DEFAULT_HISTORY) -> list[Message]:
    """Return at most the last limit messages, starting with a user message.

    When the history is cut, leading messages are dropped until the first is
    from the user and does not begin with a tool result.
    """
    history = list(messages)
    if len(history) <= limit:
        return history
    history = history[len(history) - limit:] if limit > 0 else []
    while history and not _starts_conversation(history[0]):
        history.pop(0)
    return history