"""Lock and state backend contract."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol


class BackendError(Exception):
    """Raised when a backend operation fails."""


class LockExistsError(BackendError):
    """Raised when the stage lock is already held by another run."""


class StateNotFoundError(BackendError):
    """Raised when the backend holds no state snapshot for the stage."""


@dataclass(frozen=True)
class StackKey:
    """Identifies the lock, the remote state blob and the engine stack of one stage."""

    home: str
    app: str
    stage: str

    def relative_path(self, suffix: str = "") -> str:
        return f"{self.app}/{self.stage}{suffix}"


class StageBackend(Protocol):
    """Interface implemented by lock/state persistence backends."""

    name: str

    def env(self) -> dict[str, str]: ...

    def lock(self, key: StackKey) -> None: ...

    def unlock(self, key: StackKey) -> None: ...

    def pull_state(self, key: StackKey, destination: Path) -> None: ...

    def push_state(self, key: StackKey, source: Path) -> None: ...

    def put_links(self, key: StackKey, links: Mapping[str, Any]) -> None: ...

    def passphrase(self, key: StackKey) -> str: ...

    def get_secrets(self, key: StackKey) -> dict[str, str]: ...
