import io
import json

import pytest

from restgate.agentcli import (
    Agent,
    AgentResponse,
    Model,
    Session,
    Tool,
    ToolCall,
    ToolNotFoundError,
    env_or_default,
)
from restgate.state import State


class FakeModel(Model):
    def __init__(self, name):
        self._name = name

    @property
    def name(self):
        return self._name


class FakeTool(Tool):
    def __init__(self, name, result="sunny"):
        self._name = name
        self.result = result
        self.calls = []

    @property
    def provider(self):
        return "weather"

    @property
    def name(self):
        return self._name

    @property
    def description(self):
        return "Get the weather"

    def run(self, call):
        self.calls.append(call)
        return {"tool_result": self.result}


class FakeAgent(Agent):
    def __init__(self, name, models, fail=False, tool_first=False):
        self._name = name
        self._models = [FakeModel(m) for m in models]
        self.fail = fail
        self.tool_first = tool_first
        self.contexts = []

    @property
    def name(self):
        return self._name

    def models(self):
        if self.fail:
            raise RuntimeError("unreachable")
        return self._models

    def user_prompt(self, text):
        return {"user": text}

    def generate(self, model, context, *, stream=None, tools=()):
        self.contexts.append(list(context))
        last = context[-1]
        if self.tool_first and "user" in last:
            response = AgentResponse(tool_call=ToolCall(name="weather"), context=list(context))
        else:
            response = AgentResponse(text=f"{model.name}: {last}")
        if stream is not None:
            stream(response)
        return response


class FakeTerm:
    def __init__(self, lines):
        self.lines = list(lines)
        self.prompts = []

    def read_line(self, prompt):
        self.prompts.append(prompt)
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


def make_session(**kwargs):
    out = io.StringIO()
    agents = kwargs.pop("agents", [FakeAgent("ollama", ["llama3", "mistral"]), FakeAgent("openai", ["gpt-4o"])])
    return Session(agents, out=out, **kwargs), out


def test_env_or_default(monkeypatch):
    monkeypatch.setenv("RESTGATE_TEST_VAR", "value")
    assert env_or_default("RESTGATE_TEST_VAR", "def") == "value"
    monkeypatch.setenv("RESTGATE_TEST_VAR", "")
    assert env_or_default("RESTGATE_TEST_VAR", "def") == "def"
    monkeypatch.delenv("RESTGATE_TEST_VAR")
    assert env_or_default("RESTGATE_TEST_VAR", "def") == "def"


def test_find_model_first_when_unset():
    session, _ = make_session()
    agent, model = session.find_model()
    assert (agent.name, model.name) == ("ollama", "llama3")
    assert (session.state.agent, session.state.model) == ("ollama", "llama3")


def test_find_model_by_name():
    session, _ = make_session()
    agent, model = session.find_model(model="gpt-4o")
    assert (agent.name, model.name) == ("openai", "gpt-4o")
    assert session.state.agent == "openai"


def test_find_model_uses_state():
    session, _ = make_session(state=State(agent="ollama", model="mistral"))
    agent, model = session.find_model()
    assert (agent.name, model.name) == ("ollama", "mistral")


def test_find_model_skips_failing_agent():
    agents = [FakeAgent("broken", ["x"], fail=True), FakeAgent("openai", ["gpt-4o"])]
    session, _ = make_session(agents=agents)
    agent, _ = session.find_model()
    assert agent.name == "openai"


def test_find_model_not_found():
    session, _ = make_session()
    assert session.find_model(agent="ollama", model="gpt-4o") is None
    assert session.state.model == "gpt-4o"


def test_list_agents_prints_json():
    session, out = make_session()
    assert session.list_agents() == ["ollama", "openai"]
    assert json.loads(out.getvalue()) == ["ollama", "openai"]


def test_list_models():
    session, out = make_session()
    expected = [
        {"agent": "ollama", "model": "llama3"},
        {"agent": "ollama", "model": "mistral"},
        {"agent": "openai", "model": "gpt-4o"},
    ]
    assert session.list_models() == expected
    assert json.loads(out.getvalue()) == expected


def test_list_models_propagates_errors():
    session, _ = make_session(agents=[FakeAgent("broken", [], fail=True)])
    with pytest.raises(RuntimeError):
        session.list_models()


def test_list_tools_empty():
    session, out = make_session()
    assert session.list_tools() == []
    assert out.getvalue().strip() == "[]"


def test_list_tools():
    session, out = make_session(tools=[FakeTool("weather")])
    expected = [{"provider": "weather", "name": "weather", "description": "Get the weather"}]
    assert session.list_tools() == expected
    assert json.loads(out.getvalue()) == expected


def test_run_tool_not_found():
    session, _ = make_session()
    with pytest.raises(ToolNotFoundError, match="missing"):
        session.run_tool(ToolCall(name="missing"))


def test_run_tool():
    tool = FakeTool("weather")
    session, _ = make_session(tools=[tool])
    call = ToolCall(name="weather", args={"location": "auto:ip"})
    assert session.run_tool(call) == {"tool_result": "sunny"}
    assert tool.calls == [call]


def test_chat_with_prompt():
    session, out = make_session()
    session.chat("hello")
    assert out.getvalue() == "llama3: {'user': 'hello'}\n"


def test_chat_model_not_found():
    session, _ = make_session()
    with pytest.raises(LookupError, match="nothing"):
        session.chat("hi", model="nothing")


def test_chat_empty_prompt_without_terminal():
    session, _ = make_session()
    with pytest.raises(ValueError):
        session.chat("")


def test_chat_runs_tool_then_answers():
    agent = FakeAgent("ollama", ["llama3"], tool_first=True)
    tool = FakeTool("weather", result="rain")
    session, out = make_session(agents=[agent], tools=[tool])
    session.chat("weather?")
    assert len(tool.calls) == 1
    assert agent.contexts[1] == [{"user": "weather?"}, {"tool_result": "rain"}]
    assert "rain" in out.getvalue()


def test_chat_interactive_until_empty_line():
    agent = FakeAgent("ollama", ["llama3"])
    term = FakeTerm(["one", "two", ""])
    session, out = make_session(agents=[agent], term=term)
    session.chat()
    assert term.prompts == ["llama3> "] * 3
    assert out.getvalue().splitlines() == ["llama3: {'user': 'one'}", "llama3: {'user': 'two'}"]


def test_chat_interactive_eof_propagates():
    session, _ = make_session(term=FakeTerm([]))
    with pytest.raises(EOFError):
        session.chat()


def test_chat_stream_prints_response():
    session, out = make_session()
    session.chat("hi", stream=True)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("AgentResponse(")
    assert lines[-1] == "llama3: {'user': 'hi'}"