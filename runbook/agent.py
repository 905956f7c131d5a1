"""Agent definitions and the actions taken when an agent idles, exits or errors."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .template import interpolate


class AgentAction(enum.Enum):
    """What to do in response to an agent event."""

    NUDGE = "nudge"
    DONE = "done"
    FAIL = "fail"
    RESTART = "restart"
    RECOVER = "recover"
    ESCALATE = "escalate"


class ErrorType(enum.Enum):
    """Kinds of API error an agent can run into."""

    UNAUTHORIZED = "unauthorized"
    OUT_OF_CREDITS = "out_of_credits"
    NO_INTERNET = "no_internet"
    RATE_LIMITED = "rate_limited"


def _optional_str(table: Mapping[str, Any], key: str) -> str | None:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"`{key}` must be a string")
    return value


def _bool(table: Mapping[str, Any], key: str) -> bool:
    value = table.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"`{key}` must be a boolean")
    return value


def _action(value: Any) -> AgentAction:
    if not isinstance(value, str):
        raise ValueError("action must be a string")
    return AgentAction(value)


@dataclass(frozen=True)
class ActionConfig:
    """An action, optionally with a message that replaces or extends the prompt."""

    action: AgentAction = AgentAction.NUDGE
    message: str | None = None
    append: bool = False

    @classmethod
    def simple(cls, action: AgentAction) -> ActionConfig:
        return cls(action)

    @classmethod
    def with_message(cls, action: AgentAction, message: str) -> ActionConfig:
        return cls(action, message, append=False)

    @classmethod
    def with_append(cls, action: AgentAction, message: str) -> ActionConfig:
        return cls(action, message, append=True)

    @classmethod
    def from_value(cls, value: Any) -> ActionConfig:
        """Build from ``"nudge"`` or ``{action = "...", message = "...", append = ...}``."""
        if isinstance(value, str):
            return cls.simple(_action(value))
        if isinstance(value, Mapping):
            if "action" not in value:
                raise ValueError("missing field `action`")
            return cls(
                _action(value["action"]),
                _optional_str(value, "message"),
                _bool(value, "append"),
            )
        raise ValueError("action config must be a string or a table")


@dataclass(frozen=True)
class ErrorMatch:
    """One per-error rule; a rule without ``error_match`` catches everything."""

    action: AgentAction
    error_match: ErrorType | None = None
    message: str | None = None
    append: bool = False

    @classmethod
    def from_value(cls, value: Any) -> ErrorMatch:
        if not isinstance(value, Mapping):
            raise ValueError("error rule must be a table")
        if "action" not in value:
            raise ValueError("missing field `action`")
        raw_match = value.get("match")
        if raw_match is not None and not isinstance(raw_match, str):
            raise ValueError("`match` must be a string")
        return cls(
            action=_action(value["action"]),
            error_match=None if raw_match is None else ErrorType(raw_match),
            message=_optional_str(value, "message"),
            append=_bool(value, "append"),
        )


def _escalate() -> ActionConfig:
    return ActionConfig.simple(AgentAction.ESCALATE)


@dataclass(frozen=True)
class ErrorActionConfig:
    """Either one action for every error, or an ordered list of per-error rules."""

    config: ActionConfig | None = field(default_factory=_escalate)
    matches: tuple[ErrorMatch, ...] = ()

    @classmethod
    def from_value(cls, value: Any) -> ErrorActionConfig:
        if isinstance(value, list):
            return cls(config=None, matches=tuple(ErrorMatch.from_value(v) for v in value))
        return cls(config=ActionConfig.from_value(value))

    def action_for(self, error_type: ErrorType | None) -> ActionConfig:
        """The action for *error_type*; escalate when no rule applies."""
        if self.config is not None:
            return self.config
        for rule in self.matches:
            if rule.error_match is None or rule.error_match == error_type:
                return ActionConfig(rule.action, rule.message, rule.append)
        return _escalate()


@dataclass
class AgentDef:
    """An agent definition from a runbook."""

    name: str = ""
    run: str = ""
    prompt: str | None = None
    prompt_file: Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    on_idle: ActionConfig = field(default_factory=ActionConfig)
    on_exit: ActionConfig = field(default_factory=_escalate)
    on_error: ErrorActionConfig = field(default_factory=ErrorActionConfig)

    @classmethod
    def from_value(cls, name: str, value: Any) -> AgentDef:
        """Build from a runbook table; *name* comes from the table key."""
        if not isinstance(value, Mapping):
            raise ValueError("agent must be a table")
        run = value.get("run")
        if run is None:
            raise ValueError("missing field `run`")
        if not isinstance(run, str):
            raise ValueError("`run` must be a string")

        env = value.get("env", {})
        if not isinstance(env, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in env.items()
        ):
            raise ValueError("`env` must be a table of strings")

        prompt_file = _optional_str(value, "prompt_file")
        agent = cls(
            name=name,
            run=run,
            prompt=_optional_str(value, "prompt"),
            prompt_file=None if prompt_file is None else Path(prompt_file),
            env=dict(env),
            cwd=_optional_str(value, "cwd"),
        )
        if "on_idle" in value:
            agent.on_idle = ActionConfig.from_value(value["on_idle"])
        if "on_exit" in value:
            agent.on_exit = ActionConfig.from_value(value["on_exit"])
        if "on_error" in value:
            agent.on_error = ErrorActionConfig.from_value(value["on_error"])
        return agent

    def build_command(self, variables: Mapping[str, str]) -> str:
        """The run command with variables interpolated."""
        return interpolate(self.run, variables)

    def build_env(self, variables: Mapping[str, str]) -> list[tuple[str, str]]:
        """Environment pairs with values interpolated."""
        return [(key, interpolate(value, variables)) for key, value in self.env.items()]

    def get_prompt(self, variables: Mapping[str, str]) -> str:
        """The prompt from ``prompt_file`` or ``prompt``, interpolated; empty if neither.

        Raises OSError if the prompt file cannot be read.
        """
        if self.prompt_file is not None:
            template = Path(self.prompt_file).read_text(encoding="utf-8")
        elif self.prompt is not None:
            template = self.prompt
        else:
            return ""
        return interpolate(template, variables)