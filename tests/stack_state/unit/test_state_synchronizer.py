"""Tests for state pull/push around a run."""

from __future__ import annotations

from pathlib import Path

import pytest
from stack_orchestrator.stack_state import StateSynchronizer
from stack_orchestrator.stage_backends import (
    BackendError,
    LocalBackend,
    StackKey,
    StateNotFoundError,
)

KEY = StackKey(home="local", app="shop", stage="dev")


def _seed_remote_state(backend: LocalBackend, tmp_path: Path, contents: str) -> None:
    source = tmp_path / "seed.json"
    source.write_text(contents, encoding="utf-8")
    backend.push_state(KEY, source)


def test_state_path_is_deterministic(tmp_path: Path) -> None:
    synchronizer = StateSynchronizer(LocalBackend(tmp_path), KEY, tmp_path / "work")

    assert synchronizer.state_path == tmp_path / "work" / ".state" / "stacks" / "shop" / "dev.json"


def test_pull_replaces_local_cache(tmp_path: Path) -> None:
    backend = LocalBackend(tmp_path / "store")
    _seed_remote_state(backend, tmp_path, '{"version": 3}')
    work_dir = tmp_path / "work"
    stale = work_dir / ".pulumi" / "stacks" / "shop" / "old.json"
    stale.parent.mkdir(parents=True)
    stale.write_text("{}", encoding="utf-8")
    synchronizer = StateSynchronizer(backend, KEY, work_dir, state_dirname=".pulumi")

    pulled = synchronizer.pull()

    assert pulled.read_text(encoding="utf-8") == '{"version": 3}'
    assert not stale.exists()


def test_pull_without_remote_state_leaves_clean_directory(tmp_path: Path) -> None:
    synchronizer = StateSynchronizer(LocalBackend(tmp_path / "store"), KEY, tmp_path / "work")

    with pytest.raises(StateNotFoundError):
        synchronizer.pull()

    assert synchronizer.state_path.parent.is_dir()
    assert not synchronizer.state_path.exists()


def test_push_uploads_local_snapshot(tmp_path: Path) -> None:
    backend = LocalBackend(tmp_path / "store")
    _seed_remote_state(backend, tmp_path, '{"version": 3}')
    synchronizer = StateSynchronizer(backend, KEY, tmp_path / "work")
    synchronizer.pull()
    synchronizer.state_path.write_text('{"version": 4}', encoding="utf-8")

    synchronizer.push()

    stored = tmp_path / "store" / "state" / "shop" / "dev.json"
    assert stored.read_text(encoding="utf-8") == '{"version": 4}'


def test_push_without_local_snapshot_is_skipped(tmp_path: Path) -> None:
    synchronizer = StateSynchronizer(LocalBackend(tmp_path / "store"), KEY, tmp_path / "work")
    with pytest.raises(StateNotFoundError):
        synchronizer.pull()

    synchronizer.push()

    assert not (tmp_path / "store" / "state").exists()


class BrokenPullBackend(LocalBackend):
    def pull_state(self, key: StackKey, destination: Path) -> None:
        destination.write_text("{partial", encoding="utf-8")
        raise BackendError("connection reset")


def test_push_after_failed_pull_never_uploads_partial_snapshot(tmp_path: Path) -> None:
    backend = BrokenPullBackend(tmp_path / "store")
    synchronizer = StateSynchronizer(backend, KEY, tmp_path / "work")

    with pytest.raises(BackendError):
        synchronizer.pull()
    synchronizer.push()

    assert not (tmp_path / "store" / "state").exists()


def test_push_before_any_pull_is_skipped(tmp_path: Path) -> None:
    synchronizer = StateSynchronizer(LocalBackend(tmp_path / "store"), KEY, tmp_path / "work")
    synchronizer.state_path.parent.mkdir(parents=True)
    synchronizer.state_path.write_text("{}", encoding="utf-8")

    synchronizer.push()

    assert not (tmp_path / "store" / "state").exists()
