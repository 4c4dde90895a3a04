import pytest

from restgate.commands import Cmd, Fn


def _cmd():
    return Cmd(
        name="voices",
        description="Voice API",
        fn=[
            Fn(description="Default call"),
            Fn(name="voice", min_args=1, max_args=1, syntax="<voice-id>"),
            Fn(name="say", min_args=2, syntax="<voice-id> <text>..."),
        ],
    )


def test_get_returns_named_function():
    fn = _cmd().get("voice")
    assert fn.name == "voice"
    assert fn.syntax == "<voice-id>"


def test_get_empty_name_returns_default_function():
    assert _cmd().get("").description == "Default call"


def test_get_unknown_returns_none():
    assert _cmd().get("missing") is None


def test_check_args_too_few():
    fn = _cmd().get("say")
    with pytest.raises(ValueError, match="syntax error: say <voice-id> <text>..."):
        fn.check_args(["one"])


def test_check_args_too_many():
    fn = _cmd().get("voice")
    with pytest.raises(ValueError, match="syntax error: voice"):
        fn.check_args(["one", "two"])


def test_check_args_within_limits_returns_args():
    fn = _cmd().get("voice")
    assert fn.check_args(("one",)) == ["one"]


def test_check_args_unlimited_accepts_many():
    fn = _cmd().get("")
    args = ["a", "b", "c", "d"]
    assert fn.check_args(args) == args


def test_check_args_min_only_accepts_many():
    fn = _cmd().get("say")
    args = ["v", "hello", "world"]
    assert fn.check_args(args) == args