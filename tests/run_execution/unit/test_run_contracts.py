"""Tests for run execution domain entities."""

from __future__ import annotations

from stack_orchestrator.run_execution import Operation, RunRequest


def test_run_request_defaults_to_non_dev_without_file_callback() -> None:
    request = RunRequest(operation=Operation.APPLY, on_event=lambda event: None)

    assert request.dev is False
    assert request.on_files is None


def test_operation_values_are_command_names() -> None:
    assert [operation.value for operation in Operation] == ["apply", "destroy", "refresh"]
    assert Operation("refresh") is Operation.REFRESH
