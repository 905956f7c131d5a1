"""Worker definitions."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WorkerDef:
    """A worker that runs up to ``concurrency`` of its pipelines at once."""

    name: str
    concurrency: int = 1
    pipelines: list[str] = field(default_factory=list)