"""Engine adapter contract and the event channel shared with the aggregator."""

from __future__ import annotations

import queue
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .engine_events import EngineEvent, StdOutEvent

ChannelItem = EngineEvent | StdOutEvent


class EngineError(Exception):
    """Raised when the engine fails to set up or run an operation."""


class EventChannel:
    """Unbounded, closeable, thread-safe queue of engine output.

    ``receive`` returns ``None`` once the channel is closed and drained and
    raises ``queue.Empty`` when nothing arrived within the timeout.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[ChannelItem | None] = queue.Queue()
        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: ChannelItem) -> None:
        self._queue.put(item)

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(None)

    def receive(self, timeout: float | None = None) -> ChannelItem | None:
        return self._queue.get(timeout=timeout)


@dataclass(frozen=True)
class WorkspaceSettings:
    """Everything the engine needs to bind a stack to the work directory."""

    project_name: str
    stage: str
    work_dir: Path
    home_dir: Path
    env: Mapping[str, str]
    main: Path | None = None
    create: bool = True


class EngineStack(Protocol):
    """A selected engine stack bound to a workspace."""

    def set_all_config(self, config: Mapping[str, str]) -> None: ...

    def up(self, channel: EventChannel) -> None: ...

    def destroy(self, channel: EventChannel) -> None: ...

    def refresh(
        self, channel: EventChannel | None = None, *, targets: Sequence[str] = ()
    ) -> None: ...

    def export_state(self) -> dict[str, Any]: ...

    def import_state(self, exported: Mapping[str, Any]) -> None: ...


class StackEngine(Protocol):  # pylint: disable=too-few-public-methods
    """Factory preparing workspaces and stacks for the engine."""

    state_dirname: str

    def prepare(self, workspace: WorkspaceSettings) -> EngineStack: ...
