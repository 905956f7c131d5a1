"""Pipeline and phase definitions."""

from __future__ import annotations

from dataclasses import dataclass, field

from .command import RunDirective


@dataclass
class PhaseDef:
    """A phase within a pipeline."""

    name: str
    run: RunDirective
    next: str | None = None
    on_fail: str | None = None

    def is_shell(self) -> bool:
        return self.run.is_shell()

    def is_agent(self) -> bool:
        return self.run.is_agent()

    def is_strategy(self) -> bool:
        return self.run.is_strategy()

    def agent_name(self) -> str | None:
        return self.run.agent_name()

    def shell_command(self) -> str | None:
        return self.run.shell_command()


@dataclass
class PipelineDef:
    """A pipeline definition from a runbook."""

    name: str
    inputs: list[str] = field(default_factory=list)
    defaults: dict[str, str] = field(default_factory=dict)
    phases: list[PhaseDef] = field(default_factory=list)

    def get_phase(self, name: str) -> PhaseDef | None:
        return next((phase for phase in self.phases if phase.name == name), None)

    def first_phase(self) -> PhaseDef | None:
        return self.phases[0] if self.phases else None

    def next_phase(self, current: str) -> PhaseDef | None:
        """The explicit ``next`` of *current*, otherwise the phase after it."""
        phase = self.get_phase(current)
        if phase is None:
            return None
        if phase.next is not None:
            return self.get_phase(phase.next)
        index = self.phases.index(phase)
        return self.phases[index + 1] if index + 1 < len(self.phases) else None