"""Per-stage mutual exclusion around a run."""

from __future__ import annotations

import logging
from pathlib import Path

from stack_orchestrator.stage_backends.backend_contract import (
    LockExistsError,
    StackKey,
    StageBackend,
)

_LOGGER = logging.getLogger(__name__)

ENGINE_MARKER_PREFIX = "Pulumi"


class ConcurrentUpdateError(Exception):
    """Raised when another run already holds the stage lock."""


class StackLock:
    """Acquires and releases the backend lock for one stack key.

    Acquisition never waits or retries: a held lock surfaces as
    ``ConcurrentUpdateError``. Release first clears the engine's transient
    files from the work directory so a released stage leaves no stale local
    artifacts, then releases the remote lock.
    """

    def __init__(
        self,
        backend: StageBackend,
        key: StackKey,
        work_dir: Path,
        *,
        marker_prefix: str = ENGINE_MARKER_PREFIX,
    ) -> None:
        self._backend = backend
        self._key = key
        self._work_dir = Path(work_dir)
        self._marker_prefix = marker_prefix

    @property
    def key(self) -> StackKey:
        return self._key

    def acquire(self) -> None:
        try:
            self._backend.lock(self._key)
        except LockExistsError as exc:
            raise ConcurrentUpdateError(
                f"Another run is already updating {self._key.app}/{self._key.stage}"
            ) from exc

    def release(self) -> None:
        try:
            self._remove_markers()
        finally:
            self._backend.unlock(self._key)

    def _remove_markers(self) -> None:
        if not self._work_dir.is_dir():
            return
        for candidate in self._work_dir.iterdir():
            if candidate.is_file() and candidate.name.startswith(self._marker_prefix):
                try:
                    candidate.unlink(missing_ok=True)
                except OSError:
                    _LOGGER.warning("could not remove engine marker file %s", candidate)
