"""Console rendering of stack events."""

from __future__ import annotations

import json
from typing import Any

from stack_orchestrator.engine.engine_events import (
    DiagnosticEvent,
    EngineEvent,
    ResourceOperationEvent,
    StdOutEvent,
    SummaryEvent,
)
from stack_orchestrator.event_aggregation.stack_events import (
    CompleteEvent,
    ConcurrentUpdateEvent,
    StackCommandEvent,
    StackEvent,
)


def render_stack_event(event: StackEvent, *, verbose: bool = False) -> list[str]:
    """Return the console lines for one event, possibly none."""
    match event:
        case StackCommandEvent(command=command):
            return [f"==> {command}"]
        case ConcurrentUpdateEvent():
            return ["Another deployment is in progress for this stage."]
        case StdOutEvent(text=text):
            return [text] if verbose and text.strip() else []
        case EngineEvent(resource_event=ResourceOperationEvent() as operation):
            return _render_resource_operation(operation)
        case EngineEvent(diagnostic_event=DiagnosticEvent(severity="error", message=message)):
            return [f"error: {message.rstrip()}"]
        case EngineEvent(diagnostic_event=DiagnosticEvent(severity="warning", message=message)):
            return [f"warning: {message.rstrip()}"]
        case EngineEvent(summary_event=SummaryEvent(resource_changes=changes)):
            counts = ", ".join(f"{op}: {count}" for op, count in sorted(changes.items()))
            return [f"summary: {counts or 'no changes'}"]
        case CompleteEvent():
            return _render_complete(event)
    return []


def _render_resource_operation(operation: ResourceOperationEvent) -> list[str]:
    name = operation.urn.rsplit("::", 1)[-1]
    if operation.stage == "resOpFailedEvent":
        return [f"  failed {operation.resource_type} {name}"]
    if operation.stage == "resOutputsEvent" and operation.op not in ("same", "read"):
        return [f"  {operation.op} {operation.resource_type} {name}"]
    return []


def _render_complete(complete: CompleteEvent) -> list[str]:
    lines: list[str] = []
    if complete.errors:
        lines.append("Errors:")
        for error in complete.errors:
            lines.append(f"  {error.urn or '<stack>'}: {error.message.rstrip()}")
    for name, hint in sorted(complete.hints.items()):
        lines.append(f"  {name}: {hint}")
    for name, value in sorted(complete.outputs.items()):
        lines.append(f"  {name}: {_format_value(value)}")
    lines.append("Complete" if complete.finished else "Incomplete")
    return lines


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)
