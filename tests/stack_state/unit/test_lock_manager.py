"""Tests for the per-stage lock."""

from __future__ import annotations

from pathlib import Path

import pytest
from stack_orchestrator.stack_state import ConcurrentUpdateError, StackLock
from stack_orchestrator.stage_backends import LocalBackend, StackKey

KEY = StackKey(home="local", app="shop", stage="dev")


def test_second_acquire_fails_with_concurrent_update(tmp_path: Path) -> None:
    backend = LocalBackend(tmp_path / "store")
    first = StackLock(backend, KEY, tmp_path / "work")
    second = StackLock(backend, KEY, tmp_path / "work")

    first.acquire()

    with pytest.raises(ConcurrentUpdateError, match="shop/dev"):
        second.acquire()


def test_release_allows_next_acquire(tmp_path: Path) -> None:
    backend = LocalBackend(tmp_path / "store")
    lock = StackLock(backend, KEY, tmp_path / "work")

    lock.acquire()
    lock.release()

    StackLock(backend, KEY, tmp_path / "work").acquire()


def test_release_removes_engine_marker_files_only(tmp_path: Path) -> None:
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    (work_dir / "Pulumi.yaml").write_text("name: shop", encoding="utf-8")
    (work_dir / "Pulumi.dev.yaml").write_text("config: {}", encoding="utf-8")
    (work_dir / "event.log").write_text("", encoding="utf-8")
    lock = StackLock(LocalBackend(tmp_path / "store"), KEY, work_dir)

    lock.acquire()
    lock.release()

    assert sorted(path.name for path in work_dir.iterdir()) == ["event.log"]


def test_release_tolerates_missing_work_dir(tmp_path: Path) -> None:
    lock = StackLock(LocalBackend(tmp_path / "store"), KEY, tmp_path / "missing")

    lock.acquire()
    lock.release()
