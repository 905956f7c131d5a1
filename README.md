# runbook

A small library that reads TOML runbooks. A runbook describes four kinds of
entry:

- **commands**: what a user can invoke, with an argument spec and default values
- **pipelines**: an ordered list of phases, each running a shell command, an
  agent or a strategy
- **workers**: which pipelines they process, and how many at once
- **agents**: the command to run, a prompt, environment variables, and what to
  do when the agent goes idle, exits or reports an error

The package uses only the standard library. TOML is read with `tomllib`.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Parsing a runbook

```python
from runbook.parser import parse_runbook

text = '''
[command.build]
args = "<name> <prompt>"
run = { pipeline = "build" }

[command.build.defaults]
branch = "main"

[worker.builds]
concurrency = 2
pipelines = ["build"]

[pipeline.build]
inputs = ["name", "prompt"]

[[pipeline.build.phase]]
name = "plan"
run = { agent = "planner" }

[[pipeline.build.phase]]
name = "execute"
run = "echo 'Building {name}'"

[agent.planner]
run = "claude -p \\"{prompt}\\""
on_idle = { action = "nudge", message = "Keep going" }
on_exit = "escalate"

[[agent.planner.on_error]]
match = "rate_limited"
action = "recover"

[[agent.planner.on_error]]
action = "escalate"
'''

book = parse_runbook(text)
command = book.get_command("build")
pipeline = book.get_pipeline("build")
agent = book.get_agent("planner")
worker = book.get_worker("builds")
```

The `get_*` methods return `None` for an unknown name. The same entries are
also available as the dicts `commands`, `pipelines`, `agents` and `workers`.

A malformed runbook raises `ParseError`. Invalid TOML raises `ParseError`
itself. Its subclasses `MissingFieldError` and `InvalidFormatError` report a
command without `run`, a value of the wrong shape, an unreadable argument spec
or a bad agent table.

The parser is lenient in a few places:

- The phases of a pipeline may be given under `phase` or `phases`.
- A phase that cannot be parsed, such as one with no name or no run, is
  skipped.
- A phase may name its agent with `agent = "name"` in place of
  `run = { agent = "name" }`.
- A worker's `concurrency` defaults to 1.
- Entries that are not strings are dropped from `inputs`, `pipelines` and
  `defaults`.

## Run directives

`RunDirective` says what a command or phase executes. `RunDirective.from_value`
turns a string into a shell command. It turns a table with a `pipeline`,
`agent` or `strategy` key into a reference of that kind (`RunKind`). Use
`is_shell()`, `is_pipeline()`, `is_agent()` and `is_strategy()` to test the
kind. `shell_command()`, `pipeline_name()`, `agent_name()` and
`strategy_name()` return the target, or `None` when the directive is of
another kind.

## Argument specs

A command's `args` is a short spec string:

| Syntax              | Meaning                                |
|---------------------|----------------------------------------|
| `<name>`            | required positional                    |
| `[name]`            | optional positional                    |
| `<files...>`        | required variadic (must come last)     |
| `[files...]`        | optional variadic                      |
| `--flag`            | boolean flag                           |
| `-f/--flag`         | flag with a short alias                |
| `--opt <val>`       | required option with a value           |
| `[-o/--opt <val>]`  | optional option with a short alias     |

```python
from runbook.command import parse_arg_spec

spec = parse_arg_spec("<env> [-t/--tag <version>] [-f/--force] [targets...]")
spec.positional_names()        # ['env']
spec.options[0].name, spec.options[0].short   # ('tag', 't')
spec.variadic.name             # 'targets'
```

`args` may also be a table of the form `{ positional = [...], named = {...} }`.
In that form every positional is required and every named entry becomes an
optional option (`ArgSpec.from_value`).

A spec that cannot be parsed raises an `ArgSpecError`: `InvalidSyntaxError`,
`VariadicNotLastError`, `OptionalBeforeRequiredError` or `DuplicateNameError`.

`CommandDef.validate_args(positional, named)` raises `MissingPositionalError`,
`MissingOptionError` or `MissingVariadicError` when a required value is
absent. A value counts as present when it is given by position, by name or as
a default. `CommandDef.parse_args(positional, named)` merges the given values
over the command's defaults and returns a dict:

```python
command.validate_args(["feature", "Add login"], {})
command.parse_args(["feature", "Add login"], {})
# {'branch': 'main', 'name': 'feature', 'prompt': 'Add login'}
```

Values for a variadic argument are joined with single spaces. Named values
take precedence over positional values and defaults.

## Pipelines

```python
first = pipeline.first_phase()
following = pipeline.next_phase(first.name)
```

`next_phase` follows a phase's explicit `next` when it has one. Otherwise it
moves to the phase that comes next in the list. It returns `None` at the end
of the list or for an unknown phase. `PhaseDef` has `is_shell()`, `is_agent()`,
`is_strategy()`, `agent_name()` and `shell_command()`, all taken from its run
directive.

## Agents

```python
from runbook.agent import ErrorType

variables = {"prompt": "Add login"}
agent.build_command(variables)     # 'claude -p "Add login"'
agent.build_env(variables)         # list of (name, value) pairs
agent.get_prompt(variables)        # reads prompt_file if set, else prompt
agent.on_error.action_for(ErrorType.RATE_LIMITED).action
```

`get_prompt` returns an empty string when neither `prompt_file` nor `prompt`
is set. It raises `OSError` when the prompt file cannot be read.

Each agent event is set to an `ActionConfig`, which holds an `AgentAction`
(`nudge`, `done`, `fail`, `restart`, `recover` or `escalate`). An
`ActionConfig` may also carry a message. When `append` is true the message
extends the prompt; otherwise it replaces it. The defaults are:

- `on_idle`: nudge
- `on_exit`: escalate
- `on_error`: escalate

`on_error` takes either one action for every error or an ordered list of
`ErrorMatch` rules. A rule without `match` catches every error. When no rule
applies, `action_for` returns an escalation.

## Templates

```python
from runbook.template import interpolate

interpolate("${EDITOR:-vi} {file}", {"file": "notes.md"})
```

`${VAR:-default}` is expanded from the environment first. After that, each
`{name}` is replaced from the mapping you pass in. A placeholder with no
matching name is left unchanged.

## What it does not do

This package only reads and describes runbooks. It has no command line. It
does not run shell commands, pipelines or agents, does not schedule workers,
and keeps no state between runs.