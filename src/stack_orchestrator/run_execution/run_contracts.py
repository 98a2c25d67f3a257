"""Run execution entities."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from stack_orchestrator.event_aggregation.stack_events import EventCallback


class Operation(str, Enum):
    """Engine operation a run performs."""

    APPLY = "apply"
    DESTROY = "destroy"
    REFRESH = "refresh"


FilesCallback = Callable[[Sequence[Path]], None]


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one run."""

    operation: Operation
    on_event: EventCallback
    dev: bool = False
    on_files: FilesCallback | None = None
