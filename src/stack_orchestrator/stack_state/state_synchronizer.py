"""Moves the stage state snapshot between the backend and the work directory."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from stack_orchestrator.stage_backends.backend_contract import (
    StackKey,
    StageBackend,
    StateNotFoundError,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_DIRNAME = ".state"


class StateSynchronizer:
    """Pulls the remote snapshot before a run and pushes it back afterwards."""

    def __init__(
        self,
        backend: StageBackend,
        key: StackKey,
        work_dir: Path,
        *,
        state_dirname: str = DEFAULT_STATE_DIRNAME,
    ) -> None:
        self._backend = backend
        self._key = key
        self._state_root = Path(work_dir) / state_dirname
        self._pulled = False

    @property
    def state_path(self) -> Path:
        """Deterministic local path of the working snapshot."""
        return self._state_root / "stacks" / self._key.app / f"{self._key.stage}.json"

    def pull(self) -> Path:
        """Replace the local cache with the remote snapshot.

        A stage without remote state still counts as pulled: the local cache is
        left empty for the engine to create a new stack in.

        Raises:
          StateNotFoundError: If the backend has no snapshot for the stage.
          BackendError: If the transfer fails.
        """
        self._pulled = False
        shutil.rmtree(self._state_root, ignore_errors=True)
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._backend.pull_state(self._key, self.state_path)
        except StateNotFoundError:
            self._pulled = True
            raise
        self._pulled = True
        _LOGGER.info("pulled state to %s", self.state_path)
        return self.state_path

    def push(self) -> None:
        """Upload the local snapshot; skipped when no pull completed first."""
        if not self._pulled:
            _LOGGER.warning("state was never pulled, not pushing %s", self.state_path)
            return
        if not self.state_path.exists():
            _LOGGER.warning("no local state at %s, nothing to push", self.state_path)
            return
        self._backend.push_state(self._key, self.state_path)
        _LOGGER.info("pushed state from %s", self.state_path)
