"""Parsing of runbook TOML documents."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .agent import AgentDef
from .command import ArgSpec, CommandDef, RunDirective
from .pipeline import PhaseDef, PipelineDef
from .worker import WorkerDef


class ParseError(ValueError):
    """A runbook could not be parsed."""


class MissingFieldError(ParseError):
    """A required field is absent."""

    def __init__(self, field_path: str) -> None:
        self.field = field_path
        super().__init__(f"missing required field: {field_path}")


class InvalidFormatError(ParseError):
    """A value has the wrong shape."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"invalid format: {detail}")


@dataclass
class Runbook:
    """A parsed runbook."""

    commands: dict[str, CommandDef] = field(default_factory=dict)
    workers: dict[str, WorkerDef] = field(default_factory=dict)
    pipelines: dict[str, PipelineDef] = field(default_factory=dict)
    agents: dict[str, AgentDef] = field(default_factory=dict)

    def get_command(self, name: str) -> CommandDef | None:
        return self.commands.get(name)

    def get_pipeline(self, name: str) -> PipelineDef | None:
        return self.pipelines.get(name)

    def get_agent(self, name: str) -> AgentDef | None:
        return self.agents.get(name)

    def get_worker(self, name: str) -> WorkerDef | None:
        return self.workers.get(name)


def _section(table: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = table.get(key)
    return value if isinstance(value, Mapping) else {}


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _string_table(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {key: item for key, item in value.items() if isinstance(item, str)}


def _require_table(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidFormatError(f"{where} must be a table")
    return value


def parse_runbook(content: str) -> Runbook:
    """Parse a runbook from TOML text, raising ParseError on failure."""
    try:
        table = tomllib.loads(content)
    except tomllib.TOMLDecodeError as error:
        raise ParseError(f"TOML parse error: {error}") from error

    runbook = Runbook()
    for name, value in _section(table, "command").items():
        runbook.commands[name] = _parse_command(name, value)
    for name, value in _section(table, "worker").items():
        runbook.workers[name] = _parse_worker(name, value)
    for name, value in _section(table, "pipeline").items():
        runbook.pipelines[name] = _parse_pipeline(name, value)
    for name, value in _section(table, "agent").items():
        runbook.agents[name] = _parse_agent(name, value)
    return runbook


def _parse_command(name: str, value: Any) -> CommandDef:
    table = _require_table(value, f"command.{name}")
    if "run" not in table:
        raise MissingFieldError(f"command.{name}.run")
    try:
        run = RunDirective.from_value(table["run"])
    except ValueError as error:
        raise InvalidFormatError(f"command.{name}.run: {error}") from error

    args = ArgSpec()
    if "args" in table:
        try:
            args = ArgSpec.from_value(table["args"])
        except ValueError as error:
            raise InvalidFormatError(f"command.{name}.args: {error}") from error

    return CommandDef(
        name=name,
        run=run,
        args=args,
        defaults=_string_table(table.get("defaults")),
    )


def _parse_worker(name: str, value: Any) -> WorkerDef:
    table = _require_table(value, f"worker.{name}")
    concurrency = table.get("concurrency")
    if not isinstance(concurrency, int) or isinstance(concurrency, bool):
        concurrency = 1
    return WorkerDef(
        name=name,
        concurrency=concurrency,
        pipelines=_strings(table.get("pipelines")),
    )


def _parse_pipeline(name: str, value: Any) -> PipelineDef:
    table = _require_table(value, f"pipeline.{name}")

    raw_phases = table.get("phase")
    if not isinstance(raw_phases, list):
        raw_phases = table.get("phases")
    phases = []
    if isinstance(raw_phases, list):
        for raw in raw_phases:
            try:
                phases.append(_parse_phase(raw))
            except ParseError:
                continue

    return PipelineDef(
        name=name,
        inputs=_strings(table.get("inputs")),
        defaults=_string_table(table.get("defaults")),
        phases=phases,
    )


def _parse_phase(value: Any) -> PhaseDef:
    table = _require_table(value, "phase")
    name = table.get("name")
    if not isinstance(name, str):
        raise MissingFieldError("phase.name")

    if "run" in table:
        try:
            run = RunDirective.from_value(table["run"])
        except ValueError as error:
            raise InvalidFormatError(f"phase.{name}.run: {error}") from error
    elif isinstance(table.get("agent"), str):
        run = RunDirective.agent(table["agent"])
    else:
        raise MissingFieldError(f"phase.{name}.run")

    next_phase = table.get("next")
    on_fail = table.get("on_fail")
    return PhaseDef(
        name=name,
        run=run,
        next=next_phase if isinstance(next_phase, str) else None,
        on_fail=on_fail if isinstance(on_fail, str) else None,
    )


def _parse_agent(name: str, value: Any) -> AgentDef:
    try:
        return AgentDef.from_value(name, value)
    except ValueError as error:
        raise InvalidFormatError(f"agent.{name}: {error}") from error