"""Engine progress event entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_RESOURCE_EVENT_KINDS = ("resourcePreEvent", "resOutputsEvent", "resOpFailedEvent")


@dataclass(frozen=True)
class DiagnosticEvent:
    """Diagnostic message reported by the engine."""

    message: str
    severity: str
    urn: str = ""
    prefix: str = ""


@dataclass(frozen=True)
class SummaryEvent:
    """Final summary emitted once an operation finished."""

    resource_changes: Mapping[str, int] = field(default_factory=dict)
    duration_seconds: int = 0
    maybe_corrupt: bool = False


@dataclass(frozen=True)
class ResourceOperationEvent:
    """Step taken on one resource (pre, outputs or failure)."""

    stage: str
    op: str
    urn: str
    resource_type: str


@dataclass(frozen=True)
class EngineEvent:
    """One progress notification emitted by the engine, kept with its raw payload."""

    payload: Mapping[str, Any]
    sequence: int = 0
    timestamp: int = 0
    diagnostic_event: DiagnosticEvent | None = None
    summary_event: SummaryEvent | None = None
    resource_event: ResourceOperationEvent | None = None

    @property
    def kind(self) -> str:
        for key in self.payload:
            if key.endswith("Event"):
                return key
        return "unknown"


@dataclass(frozen=True)
class StdOutEvent:
    """Line of plain text output produced by the engine process."""

    text: str


def parse_engine_event(payload: Mapping[str, Any]) -> EngineEvent:
    """Build an ``EngineEvent`` from one decoded event-log record."""
    return EngineEvent(
        payload=payload,
        sequence=_int(payload.get("sequence")),
        timestamp=_int(payload.get("timestamp")),
        diagnostic_event=_parse_diagnostic(payload.get("diagnosticEvent")),
        summary_event=_parse_summary(payload.get("summaryEvent")),
        resource_event=_parse_resource_event(payload),
    )


def _parse_diagnostic(value: Any) -> DiagnosticEvent | None:
    if not isinstance(value, Mapping):
        return None
    return DiagnosticEvent(
        message=str(value.get("message") or ""),
        severity=str(value.get("severity") or ""),
        urn=str(value.get("urn") or ""),
        prefix=str(value.get("prefix") or ""),
    )


def _parse_summary(value: Any) -> SummaryEvent | None:
    if not isinstance(value, Mapping):
        return None
    changes = value.get("resourceChanges") or {}
    return SummaryEvent(
        resource_changes={str(op): _int(count) for op, count in changes.items()}
        if isinstance(changes, Mapping)
        else {},
        duration_seconds=_int(value.get("durationSeconds")),
        maybe_corrupt=bool(value.get("maybeCorrupt", False)),
    )


def _parse_resource_event(payload: Mapping[str, Any]) -> ResourceOperationEvent | None:
    for kind in _RESOURCE_EVENT_KINDS:
        body = payload.get(kind)
        if not isinstance(body, Mapping):
            continue
        metadata = body.get("metadata")
        if not isinstance(metadata, Mapping):
            return None
        return ResourceOperationEvent(
            stage=kind,
            op=str(metadata.get("op") or ""),
            urn=str(metadata.get("urn") or ""),
            resource_type=str(metadata.get("type") or ""),
        )
    return None


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return 0
