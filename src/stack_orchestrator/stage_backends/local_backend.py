"""Filesystem backend for single-machine use."""

from __future__ import annotations

import json
import logging
import secrets
import shutil
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .backend_contract import BackendError, LockExistsError, StackKey, StateNotFoundError

_LOGGER = logging.getLogger(__name__)


class LocalBackend:
    """Backend keeping locks, state, links, passphrases and secrets under one directory."""

    name = "local"

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def env(self) -> dict[str, str]:
        return {}

    def lock(self, key: StackKey) -> None:
        path = self._path("lock", key, ".lock")
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("x", encoding="utf-8") as handle:
                json.dump({"created": datetime.now(UTC).isoformat()}, handle)
        except FileExistsError as exc:
            raise LockExistsError(f"Stage {key.app}/{key.stage} is locked: {path}") from exc
        _LOGGER.info("acquired lock %s", path)

    def unlock(self, key: StackKey) -> None:
        path = self._path("lock", key, ".lock")
        path.unlink(missing_ok=True)
        _LOGGER.info("released lock %s", path)

    def pull_state(self, key: StackKey, destination: Path) -> None:
        source = self._path("state", key, ".json")
        if not source.exists():
            raise StateNotFoundError(f"No state found for {key.app}/{key.stage}")
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise BackendError(f"Failed to pull state from {source}: {exc}") from exc

    def push_state(self, key: StackKey, source: Path) -> None:
        destination = self._path("state", key, ".json")
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise BackendError(f"Failed to push state to {destination}: {exc}") from exc

    def put_links(self, key: StackKey, links: Mapping[str, Any]) -> None:
        destination = self._path("link", key, ".json")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(json.dumps(links, indent=2), encoding="utf-8")

    def passphrase(self, key: StackKey) -> str:
        path = self._path("passphrase", key)
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
        path.parent.mkdir(parents=True, exist_ok=True)
        value = secrets.token_urlsafe(32)
        path.write_text(value, encoding="utf-8")
        path.chmod(0o600)
        return value

    def get_secrets(self, key: StackKey) -> dict[str, str]:
        path = self._path("secret", key, ".json")
        if not path.exists():
            return {}
        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise BackendError(f"Secrets file is not valid JSON: {path}") from exc
        if not isinstance(parsed, Mapping):
            raise BackendError(f"Secrets file root must be an object: {path}")
        return {str(name): str(value) for name, value in parsed.items()}

    def _path(self, kind: str, key: StackKey, suffix: str = "") -> Path:
        return self._root / kind / key.relative_path(suffix)
