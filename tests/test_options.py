import pytest

from restgate.flags import FlagNotFoundError, HelpRequested
from restgate.options import Options


def _register(options):
    options.add_string("model", "", "Model")
    options.add_int("count", 0, "Count")
    options.add_bool("hd", False, "HD")
    options.add_float("temperature", 0, "Temperature")
    options.add_string("api-key", "${RESTGATE_TEST_KEY}", "Key")


def test_defaults():
    options = Options("test", [], _register)
    assert options.is_debug() is False
    assert options.timeout() == 0.0
    assert options.get_out() == ""
    assert options.get_out_ext() == ""
    assert options.args == []


def test_global_flags_and_remaining_args():
    options = Options("test", ["-debug", "-timeout", "1.5s", "openai", "models"])
    assert options.is_debug() is True
    assert options.timeout() == 1.5
    assert options.args == ["openai", "models"]


def test_registered_flags():
    options = Options(
        "test", ["-model=dall-e-3", "-count", "3", "-hd", "-temperature", "0.5"], _register
    )
    assert options.get_string("model") == "dall-e-3"
    assert options.get_int("count") == 3
    assert options.get_uint("count") == 3
    assert options.get_bool("hd") is True
    assert options.get_float("temperature") == 0.5


def test_environment_expansion(monkeypatch):
    monkeypatch.setenv("RESTGATE_TEST_KEY", "placeholder")
    options = Options("test", [], _register)
    assert options.get_string("api-key") == "placeholder"


def test_missing_key_lookups():
    options = Options("test", [])
    assert options.get_string("nothing") == ""
    assert options.get_bool("nothing") is False
    assert options.get_float("nothing") is None
    with pytest.raises(FlagNotFoundError):
        options.get_uint("nothing")
    with pytest.raises(FlagNotFoundError):
        options.get_int("nothing")


def test_bad_numbers():
    options = Options("test", ["-model", "abc"], _register)
    with pytest.raises(ValueError):
        options.get_uint("model")
    with pytest.raises(ValueError):
        options.get_int("model")
    assert options.get_float("model") is None
    assert options.get_bool("model") is False


def test_negative_int_is_not_uint():
    options = Options("test", ["-count", "-4"], _register)
    assert options.get_int("count") == -4
    with pytest.raises(ValueError):
        options.get_uint("count")


def test_out_type_without_extension():
    options = Options("test", ["-out", "json"])
    assert options.get_out_ext() == "json"
    assert options.get_out_filename("speech.mp3") == ""


def test_out_file_with_extension():
    options = Options("test", ["-out", "dir/file.csv"])
    assert options.get_out_ext() == "csv"
    assert options.get_out_filename("speech.mp3") == "dir/file.csv"
    assert options.get_out_filename("speech.mp3", 2) == "dir/file-2.csv"


def test_out_filename_default():
    options = Options("test", [])
    assert options.get_out_filename("/tmp/speech.mp3", 0) == "speech.mp3"
    assert options.get_out_filename("/tmp/speech.mp3", 1) == "speech-1.mp3"
    assert options.get_out_filename("noext", 0) == ""


def test_help_flag():
    with pytest.raises(HelpRequested):
        Options("test", ["-help"])


def test_undefined_flag():
    with pytest.raises(ValueError):
        Options("test", ["-nope"])


def test_flag_needs_argument():
    with pytest.raises(ValueError):
        Options("test", ["-out"])


def test_invalid_duration():
    with pytest.raises(ValueError):
        Options("test", ["-timeout", "soon"])


def test_redefined_flag():
    def register(options):
        options.add_string("out", "", "again")

    with pytest.raises(ValueError):
        Options("test", [], register)


def test_double_dash_ends_flags():
    options = Options("test", ["--", "-debug"])
    assert options.is_debug() is False
    assert options.args == ["-debug"]