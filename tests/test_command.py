import tomllib

import pytest

from runbook.command import (
    ArgDef,
    ArgSpec,
    ArgSpecError,
    CommandDef,
    DuplicateNameError,
    FlagDef,
    InvalidSyntaxError,
    MissingOptionError,
    MissingPositionalError,
    MissingVariadicError,
    OptionalBeforeRequiredError,
    OptionDef,
    RunDirective,
    RunKind,
    VariadicDef,
    VariadicNotLastError,
    parse_arg_spec,
)


# Argument validation


def test_validate_required_positional_missing():
    cmd = CommandDef(
        name="build",
        args=parse_arg_spec("<name> <prompt>"),
        run=RunDirective.shell("echo"),
    )
    with pytest.raises(MissingPositionalError) as info:
        cmd.validate_args([], {})
    assert info.value.name == "name"

    with pytest.raises(MissingPositionalError) as info:
        cmd.validate_args(["foo"], {})
    assert info.value.name == "prompt"

    assert cmd.validate_args(["foo", "bar"], {}) is None


def test_validate_required_positional_with_default():
    cmd = CommandDef(
        name="build",
        args=parse_arg_spec("<name>"),
        defaults={"name": "default-name"},
        run=RunDirective.shell("echo"),
    )
    assert cmd.validate_args([], {}) is None
    assert cmd.parse_args([], {}) == {"name": "default-name"}


def test_validate_required_option_missing():
    cmd = CommandDef(
        name="deploy",
        args=parse_arg_spec("--env <environment>"),
        run=RunDirective.shell("deploy.sh"),
    )
    with pytest.raises(MissingOptionError) as info:
        cmd.validate_args([], {})
    assert info.value.name == "env"

    assert cmd.validate_args([], {"env": "prod"}) is None


def test_validate_required_variadic_missing():
    cmd = CommandDef(
        name="copy",
        args=parse_arg_spec("<files...>"),
        run=RunDirective.shell("cp"),
    )
    with pytest.raises(MissingVariadicError) as info:
        cmd.validate_args([], {})
    assert info.value.name == "files"

    assert cmd.validate_args(["file1"], {}) is None


def test_validate_optional_args_not_required():
    cmd = CommandDef(
        name="test",
        args=parse_arg_spec("[name] [-v/--verbose] [files...]"),
        run=RunDirective.shell("test.sh"),
    )
    assert cmd.validate_args([], {}) is None
    assert cmd.parse_args([], {}) == {}


def test_validation_error_messages():
    assert str(MissingPositionalError("name")) == "missing required argument: <name>"
    assert str(MissingOptionError("env")) == "missing required option: --env"
    assert str(MissingVariadicError("files")) == "missing required argument: <files...>"


# ArgSpec parsing


def test_parse_simple_positional():
    spec = parse_arg_spec("<name> <prompt>")
    assert len(spec.positional) == 2
    assert spec.positional[0].required
    assert spec.positional[0].name == "name"
    assert spec.positional[1].required
    assert spec.positional[1].name == "prompt"
    assert spec.positional_names() == ["name", "prompt"]


def test_parse_optional_positional():
    spec = parse_arg_spec("<name> [description]")
    assert spec.positional[0].required
    assert not spec.positional[1].required


def test_parse_flags_and_options():
    spec = parse_arg_spec("<env> [-t/--tag <version>] [-f/--force]")
    assert len(spec.positional) == 1
    assert spec.options == [OptionDef("tag", "t", False)]
    assert spec.flags == [FlagDef("force", "f")]


def test_parse_variadic():
    spec = parse_arg_spec("<cmd> [args...]")
    assert spec.variadic == VariadicDef("args", False)


def test_parse_required_variadic():
    spec = parse_arg_spec("<cmd> <files...>")
    assert spec.variadic == VariadicDef("files", True)


def test_parse_empty_spec():
    assert parse_arg_spec("") == ArgSpec()
    assert parse_arg_spec("   ") == ArgSpec()


def test_parse_required_flag():
    spec = parse_arg_spec("--verbose")
    assert spec.flags == [FlagDef("verbose", None)]


def test_parse_required_option():
    spec = parse_arg_spec("--config <file>")
    assert len(spec.options) == 1
    assert spec.options[0].name == "config"
    assert spec.options[0].required


def test_parse_short_only_flag():
    spec = parse_arg_spec("[-q]")
    assert spec.flags == [FlagDef("q", "q")]


def test_parse_complex_spec():
    spec = parse_arg_spec("<env> [-t/--tag <version>] [-f/--force] [targets...]")
    assert spec.positional_names() == ["env"]
    assert len(spec.options) == 1
    assert len(spec.flags) == 1
    assert spec.variadic == VariadicDef("targets", False)


def test_parse_error_variadic_not_last():
    with pytest.raises(VariadicNotLastError):
        parse_arg_spec("<files...> <other>")


def test_parse_error_optional_before_required():
    with pytest.raises(OptionalBeforeRequiredError):
        parse_arg_spec("[optional] <required>")


def test_parse_error_duplicate_name():
    with pytest.raises(DuplicateNameError) as info:
        parse_arg_spec("<name> <name>")
    assert str(info.value) == "duplicate argument name: name"


def test_parse_error_duplicate_between_flag_and_positional():
    with pytest.raises(DuplicateNameError):
        parse_arg_spec("<force> [-f/--force]")


def test_parse_error_unexpected_character():
    with pytest.raises(InvalidSyntaxError) as info:
        parse_arg_spec("name")
    assert str(info.value) == "invalid argument syntax: unexpected character: n"


@pytest.mark.parametrize(
    "spec",
    ["[--a/--b]", "[-a/-b]", "[-a/--b/--c]"],
)
def test_parse_error_bad_flag_syntax(spec):
    with pytest.raises(ArgSpecError):
        parse_arg_spec(spec)


# RunDirective


def test_run_directive_shell():
    directive = RunDirective.shell("echo hello")
    assert directive.is_shell()
    assert not directive.is_pipeline()
    assert directive.shell_command() == "echo hello"
    assert directive.pipeline_name() is None


def test_run_directive_pipeline():
    directive = RunDirective.pipeline("build")
    assert directive.is_pipeline()
    assert not directive.is_shell()
    assert directive.pipeline_name() == "build"


def test_run_directive_agent():
    directive = RunDirective.agent("planning")
    assert directive.is_agent()
    assert directive.agent_name() == "planning"


def test_run_directive_strategy():
    directive = RunDirective.strategy("merge")
    assert directive.is_strategy()
    assert directive.strategy_name() == "merge"
    assert directive.kind is RunKind.STRATEGY


# TOML deserialisation


def test_deserialize_shell_run():
    data = tomllib.loads('run = "echo hello"')
    run = RunDirective.from_value(data["run"])
    assert run.is_shell()
    assert run.shell_command() == "echo hello"


def test_deserialize_pipeline_run():
    data = tomllib.loads('run = { pipeline = "build" }')
    assert RunDirective.from_value(data["run"]).pipeline_name() == "build"


def test_deserialize_agent_run():
    data = tomllib.loads('run = { agent = "planning" }')
    assert RunDirective.from_value(data["run"]).agent_name() == "planning"


def test_deserialize_run_rejects_unknown_table():
    with pytest.raises(ValueError):
        RunDirective.from_value({"unknown": "x"})


def test_deserialize_arg_spec_string():
    data = tomllib.loads('args = "<name> <prompt>"')
    args = ArgSpec.from_value(data["args"])
    assert len(args.positional) == 2
    assert args.positional[0].name == "name"


def test_deserialize_arg_spec_struct():
    data = tomllib.loads('[args]\npositional = ["name", "prompt"]\n')
    args = ArgSpec.from_value(data["args"])
    assert len(args.positional) == 2
    assert args.positional[0].name == "name"
    assert all(arg.required for arg in args.positional)


def test_deserialize_arg_spec_struct_named():
    args = ArgSpec.from_value({"named": {"branch": "main"}})
    assert args.options == [OptionDef("branch", None, False)]


def test_deserialize_arg_spec_bad_string():
    with pytest.raises(ArgSpecError):
        ArgSpec.from_value("<a> <a>")


# CommandDef


def test_command_parse_args():
    cmd = CommandDef(
        name="build",
        args=ArgSpec(positional=[ArgDef("name", True), ArgDef("prompt", True)]),
        defaults={"branch": "main"},
        run=RunDirective.pipeline("build"),
    )
    result = cmd.parse_args(["feature", "Add login"], {})
    assert result["name"] == "feature"
    assert result["prompt"] == "Add login"
    assert result["branch"] == "main"


def test_command_named_overrides():
    cmd = CommandDef(
        name="build",
        args=ArgSpec(
            positional=[ArgDef("name", True)],
            options=[OptionDef("branch", None, False)],
        ),
        defaults={"branch": "main"},
        run=RunDirective.pipeline("build"),
    )
    result = cmd.parse_args(["feature"], {"branch": "develop"})
    assert result["branch"] == "develop"
    assert cmd.defaults == {"branch": "main"}


def test_command_variadic_args():
    cmd = CommandDef(
        name="deploy",
        args=ArgSpec(
            positional=[ArgDef("env", True)],
            variadic=VariadicDef("targets", False),
        ),
        run=RunDirective.shell("deploy.sh"),
    )
    result = cmd.parse_args(["prod", "api", "worker"], {})
    assert result["env"] == "prod"
    assert result["targets"] == "api worker"