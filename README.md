# restgate

`restgate` is a set of building blocks for command-line tools that sit in
front of REST APIs. It provides flag parsing and command-set dispatch, table
output, a chat session loop for agents and tools, and a few small helpers.

## Flags and command sets

- `restgate.commands`: `Cmd` is a named set of `Fn` functions. `Cmd.get`
  looks up a function by name. `Fn.check_args` raises `ValueError` if the
  number of arguments is outside `min_args`/`max_args`, where a limit of zero
  means no limit.
- `restgate.flags.Flags`: typed flags (`add_bool`, `add_string`,
  `add_duration`, `add_float`, `add_unsigned`), each belonging to a command set
  or to none, which makes it global. The global flags `-out`, `-debug`,
  `-verbose` and `-timeout` are always defined. `Flags.parse` chooses the
  command set, either from the program name or from the first argument, calls
  the set's `parse` hook, and returns the `Fn` to run together with its
  arguments.
  - The arguments `help` and `version`, and an unknown command, raise
    `HelpRequested`. The argument `install` raises `InstallRequested`.
  - `get_value` returns the typed value of a flag that was set, and raises
    `FlagNotFoundError` for one that was not.
  - `get_string` expands `$VAR` and `${VAR}` in the value.
  - `get_out_ext` and `get_out_path` read the `-out` flag as either a format
    name or a file path.
  - `print_usage`, `print_command_usage` and `print_version` write help text.
  - `parse_duration` reads durations such as `"300ms"` or `"1h30m"` and
    returns seconds.
- `restgate.router`: a `Namespace` holds `Command`s. `run` calls the first
  command that matches the arguments by name and argument count, and raises
  `HelpRequested` or `NoCommandMatched` otherwise. `print_commands` lists them.
- `restgate.options.Options`: a simpler flag holder. It parses when it is
  created, and its typed getters include `get_out_filename`, which builds
  names such as `speech-2.mp3`.

```python
from restgate.commands import Cmd, Fn
from restgate.flags import Flags, HelpRequested
from restgate.output import new_table_writer, run

flags = Flags("api")
flags.register(Cmd("greet", "Say hello", fn=[
    Fn("hello", "Greet someone", min_args=1, max_args=1, syntax="<name>",
       call=lambda w, args: w.write({"greeting": f"hello {args[0]}"})),
]))
try:
    fn, args = flags.parse(["greet", "hello", "world"])
except HelpRequested:
    pass
else:
    with new_table_writer(flags.get_out_path(), flags.get_out_ext()) as writer:
        run(fn, writer, args)
```

## Output

`restgate.output.TableWriter` writes mappings or dataclass instances, or lists
of them, as a text table (using `tabulate`), as CSV or as TSV.
`new_table_writer` opens the named file, or uses standard output, and picks the
format from the extension. `run` calls an `Fn` with the writer and its
arguments.

## Agents and conversations

- `restgate.agentcli`: `Agent`, `Model` and `Tool` are abstract interfaces.
  `Session` works with a list of agents and tools:
  - `list_agents`, `list_models` and `list_tools` print their lists as JSON.
  - `find_model` chooses an agent and model, using the saved state.
  - `chat` runs a conversation. When the model answers with a `ToolCall`, the
    session runs the named tool and sends the result back. An unknown tool
    raises `ToolNotFoundError`.
- `restgate.state`: `new_state` loads a `State` (agent and model) from
  `<config dir>/<name>/state.json`. `State.close` saves it.
- `restgate.term.Term` reads prompted lines from an interactive terminal and
  raises `EOFError` when the input is not a terminal.
- `restgate.conversation`: `Message` and `Content` blocks, with `text` and
  `tool_result` to build them. `append_message` merges consecutive messages
  from the same role. `curtail_history` keeps the last messages and makes sure
  the history starts with a user turn that is not a tool result.

## Other helpers

- `restgate.hafilter`: `filter_states` filters `EntityState`s by name and by
  domain or class, and `summarize_domains` lists each class with the services
  of its domain.
- `restgate.speech`: `resolve_voice_id` maps a voice name to its id and raises
  `VoiceNotFoundError` when no voice matches. `WavWriter` wraps 16-bit
  little-endian PCM in a WAV container on a seekable stream.
- `restgate.install.install` links each command-set name, next to an
  executable, to that executable.
- `restgate.launcher.open_paths` opens files with the operating system's
  default application. `open_command` returns the command line it would use.
- `restgate.imagesize.parse_size` reads a `WIDTHxHEIGHT` size.

## What it does not do

This package contains no HTTP client. It does not talk to any API itself:
agents, tools, voices and entity states come from code you supply. It also
installs no command-line programs. You build the command from the pieces
above.