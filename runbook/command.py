"""Command definitions and argument specifications."""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


class ArgSpecError(ValueError):
    """An argument specification string could not be parsed."""

    _prefix = "invalid argument spec"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self._prefix}: {detail}")


class InvalidSyntaxError(ArgSpecError):
    _prefix = "invalid argument syntax"


class VariadicNotLastError(ArgSpecError):
    _prefix = "variadic must be last"


class OptionalBeforeRequiredError(ArgSpecError):
    _prefix = "optional positional cannot precede required"


class DuplicateNameError(ArgSpecError):
    _prefix = "duplicate argument name"


class ArgValidationError(ValueError):
    """Supplied arguments do not satisfy a command's specification."""

    _template = "missing required argument: {}"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(self._template.format(name))


class MissingPositionalError(ArgValidationError):
    _template = "missing required argument: <{}>"


class MissingOptionError(ArgValidationError):
    _template = "missing required option: --{}"


class MissingVariadicError(ArgValidationError):
    _template = "missing required argument: <{}...>"


@dataclass
class ArgDef:
    """A positional argument."""

    name: str
    required: bool


@dataclass
class FlagDef:
    """A boolean switch."""

    name: str
    short: str | None = None


@dataclass
class OptionDef:
    """A switch that takes a value."""

    name: str
    short: str | None = None
    required: bool = False


@dataclass
class VariadicDef:
    """A trailing argument that accepts several values."""

    name: str
    required: bool


@dataclass
class ArgSpec:
    """The argument specification of a command."""

    positional: list[ArgDef] = field(default_factory=list)
    flags: list[FlagDef] = field(default_factory=list)
    options: list[OptionDef] = field(default_factory=list)
    variadic: VariadicDef | None = None

    def positional_names(self) -> list[str]:
        """Names of the positional arguments, in order."""
        return [arg.name for arg in self.positional]

    @classmethod
    def from_value(cls, value: Any) -> ArgSpec:
        """Build a spec from a spec string or the table form ``{positional, named}``."""
        if isinstance(value, str):
            return parse_arg_spec(value)
        if isinstance(value, Mapping):
            positional = value.get("positional", [])
            named = value.get("named", {})
            if not isinstance(positional, list) or not all(
                isinstance(name, str) for name in positional
            ):
                raise ValueError("args.positional must be a list of strings")
            if not isinstance(named, Mapping) or not all(
                item is None or isinstance(item, str) for item in named.values()
            ):
                raise ValueError("args.named must be a table of strings")
            return cls(
                positional=[ArgDef(name, required=True) for name in positional],
                options=[OptionDef(name, short=None, required=False) for name in named],
            )
        raise ValueError("args must be a string or a table")


class _Cursor:
    """Character reader over a spec string."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def peek(self) -> str | None:
        return self._text[self._pos] if self._pos < len(self._text) else None

    def next(self) -> str | None:
        char = self.peek()
        if char is not None:
            self._pos += 1
        return char

    def read_until(self, stop: str) -> str:
        """Read up to *stop*, consuming it; read to the end if it never appears."""
        end = self._text.find(stop, self._pos)
        if end == -1:
            chunk, self._pos = self._text[self._pos :], len(self._text)
        else:
            chunk, self._pos = self._text[self._pos : end], end + 1
        return chunk

    def read_bracketed(self) -> str:
        """Read the body of a ``[...]`` group whose opening bracket was consumed."""
        chunk: list[str] = []
        depth = 1
        while (char := self.next()) is not None:
            if char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
                if depth == 0:
                    break
            chunk.append(char)
        return "".join(chunk)

    def read_word(self) -> str:
        chunk: list[str] = []
        while (char := self.peek()) is not None and not char.isspace():
            chunk.append(char)
            self._pos += 1
        return "".join(chunk)

    def skip_whitespace(self) -> None:
        while (char := self.peek()) is not None and char.isspace():
            self._pos += 1


def _strip_ellipsis(name: str) -> str:
    while name.endswith("..."):
        name = name[:-3]
    return name


def _parse_flag_names(flag_part: str) -> tuple[str | None, str]:
    flag_part = flag_part.strip()
    if "/" in flag_part:
        parts = flag_part.split("/")
        if len(parts) != 2:
            raise InvalidSyntaxError(f"invalid flag syntax: {flag_part}")
        short_part, long_part = (part.strip() for part in parts)
        if not (short_part.startswith("-") and not short_part.startswith("--")):
            raise InvalidSyntaxError(f"invalid short flag: {short_part}")
        short = short_part[1] if len(short_part) > 1 else None
        if not long_part.startswith("--"):
            raise InvalidSyntaxError(f"invalid long flag: {long_part}")
        return short, long_part[2:]
    if flag_part.startswith("--"):
        return None, flag_part[2:]
    if flag_part.startswith("-"):
        if len(flag_part) < 2:
            raise InvalidSyntaxError("empty flag")
        return flag_part[1], flag_part[1]
    raise InvalidSyntaxError(f"flag must start with -: {flag_part}")


class _SpecBuilder:
    """Accumulates a spec while enforcing naming and ordering rules."""

    def __init__(self) -> None:
        self.spec = ArgSpec()
        self._names: set[str] = set()
        self._seen_optional_positional = False

    def _claim(self, name: str) -> None:
        if name in self._names:
            raise DuplicateNameError(name)
        self._names.add(name)

    def add_variadic(self, name: str, required: bool) -> None:
        self._claim(name)
        if self.spec.variadic is not None:
            raise VariadicNotLastError(name)
        self.spec.variadic = VariadicDef(name, required)

    def add_positional(self, name: str, required: bool) -> None:
        if self.spec.variadic is not None:
            raise VariadicNotLastError(name)
        if required and self._seen_optional_positional:
            raise OptionalBeforeRequiredError(name)
        self._claim(name)
        if not required:
            self._seen_optional_positional = True
        self.spec.positional.append(ArgDef(name, required))

    def add_flag_or_option(self, content: str, required: bool) -> None:
        content = content.strip()
        value_start = content.find("<")
        if value_start != -1:
            short, name = _parse_flag_names(content[:value_start])
            self._claim(name)
            self.spec.options.append(OptionDef(name, short, required))
        else:
            short, name = _parse_flag_names(content)
            self._claim(name)
            self.spec.flags.append(FlagDef(name, short))


def parse_arg_spec(spec: str) -> ArgSpec:
    """Parse an argument specification string.

    Supports ``<name>``, ``[name]``, ``<files...>``, ``[files...]``, ``--flag``,
    ``-f/--flag``, ``--opt <val>``, ``[--opt <val>]`` and ``[-o/--opt <val>]``.
    """
    builder = _SpecBuilder()
    cursor = _Cursor(spec.strip())

    while (char := cursor.next()) is not None:
        if char == "<":
            name = cursor.read_until(">").strip()
            if name.endswith("..."):
                builder.add_variadic(_strip_ellipsis(name), required=True)
            else:
                builder.add_positional(name, required=True)
        elif char == "[":
            content = cursor.read_bracketed().strip()
            if content.startswith("-"):
                builder.add_flag_or_option(content, required=False)
            elif content.endswith("..."):
                builder.add_variadic(_strip_ellipsis(content), required=False)
            else:
                builder.add_positional(content, required=False)
        elif char == "-":
            token = "-" + cursor.read_word()
            cursor.skip_whitespace()
            if cursor.peek() == "<":
                cursor.next()
                value_name = cursor.read_until(">")
                builder.add_flag_or_option(f"{token} <{value_name}>", required=True)
            else:
                builder.add_flag_or_option(token, required=True)
        elif char.isspace():
            continue
        else:
            raise InvalidSyntaxError(f"unexpected character: {char}")

    return builder.spec


class RunKind(enum.Enum):
    """What a run directive refers to."""

    SHELL = "shell"
    PIPELINE = "pipeline"
    AGENT = "agent"
    STRATEGY = "strategy"


_REFERENCE_KINDS = (RunKind.PIPELINE, RunKind.AGENT, RunKind.STRATEGY)


@dataclass(frozen=True)
class RunDirective:
    """What a command or phase executes: a shell command or a named reference."""

    kind: RunKind
    target: str

    @classmethod
    def shell(cls, command: str) -> RunDirective:
        return cls(RunKind.SHELL, command)

    @classmethod
    def pipeline(cls, name: str) -> RunDirective:
        return cls(RunKind.PIPELINE, name)

    @classmethod
    def agent(cls, name: str) -> RunDirective:
        return cls(RunKind.AGENT, name)

    @classmethod
    def strategy(cls, name: str) -> RunDirective:
        return cls(RunKind.STRATEGY, name)

    @classmethod
    def from_value(cls, value: Any) -> RunDirective:
        """Build from a string or a table such as ``{pipeline = "build"}``."""
        if isinstance(value, str):
            return cls.shell(value)
        if isinstance(value, Mapping):
            for kind in _REFERENCE_KINDS:
                target = value.get(kind.value)
                if isinstance(target, str):
                    return cls(kind, target)
        raise ValueError("data did not match any variant of untagged enum RunDirective")

    def is_shell(self) -> bool:
        return self.kind is RunKind.SHELL

    def is_pipeline(self) -> bool:
        return self.kind is RunKind.PIPELINE

    def is_agent(self) -> bool:
        return self.kind is RunKind.AGENT

    def is_strategy(self) -> bool:
        return self.kind is RunKind.STRATEGY

    def _target_if(self, kind: RunKind) -> str | None:
        return self.target if self.kind is kind else None

    def shell_command(self) -> str | None:
        return self._target_if(RunKind.SHELL)

    def pipeline_name(self) -> str | None:
        return self._target_if(RunKind.PIPELINE)

    def agent_name(self) -> str | None:
        return self._target_if(RunKind.AGENT)

    def strategy_name(self) -> str | None:
        return self._target_if(RunKind.STRATEGY)


@dataclass
class CommandDef:
    """A command definition from a runbook."""

    name: str
    run: RunDirective
    args: ArgSpec = field(default_factory=ArgSpec)
    defaults: dict[str, str] = field(default_factory=dict)

    def _is_supplied(self, name: str, named: Mapping[str, str]) -> bool:
        return name in named or name in self.defaults

    def validate_args(self, positional: Sequence[str], named: Mapping[str, str]) -> None:
        """Raise an ArgValidationError if a required argument is missing."""
        for index, arg in enumerate(self.args.positional):
            if arg.required and not (
                index < len(positional) or self._is_supplied(arg.name, named)
            ):
                raise MissingPositionalError(arg.name)

        for option in self.args.options:
            if option.required and not self._is_supplied(option.name, named):
                raise MissingOptionError(option.name)

        variadic = self.args.variadic
        if variadic is not None and variadic.required:
            if not (
                len(positional) > len(self.args.positional)
                or self._is_supplied(variadic.name, named)
            ):
                raise MissingVariadicError(variadic.name)

    def parse_args(
        self, positional: Sequence[str], named: Mapping[str, str]
    ) -> dict[str, str]:
        """Map CLI arguments to names, merged over the command defaults."""
        result = dict(self.defaults)
        for arg, value in zip(self.args.positional, positional):
            result[arg.name] = value

        variadic = self.args.variadic
        extra = positional[len(self.args.positional) :]
        if variadic is not None and extra:
            result[variadic.name] = " ".join(extra)

        result.update(named)
        return result