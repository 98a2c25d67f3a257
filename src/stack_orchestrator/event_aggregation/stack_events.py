"""Stack event envelope and run result entities."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from stack_orchestrator.engine.engine_events import EngineEvent, StdOutEvent


@dataclass(frozen=True)
class StackCommandEvent:
    """Announces the command a run is about to execute."""

    command: str


@dataclass(frozen=True)
class ConcurrentUpdateEvent:
    """Another run holds the stage lock."""


@dataclass(frozen=True)
class RunError:
    """Error diagnostic captured during a run."""

    message: str
    urn: str


@dataclass(frozen=True)
class Receiver:
    """Links and environment a runtime consumer is bound to."""

    links: tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)

    @staticmethod
    def from_mapping(value: Mapping[str, Any]) -> Receiver:
        return Receiver(
            links=_string_tuple(_lookup(value, "links")),
            environment=_string_mapping(_lookup(value, "environment")),
        )


@dataclass(frozen=True)
class Warp:  # pylint: disable=too-many-instance-attributes
    """Instrumentation descriptor wiring runtime code to its declared infrastructure."""

    function_id: str = ""
    runtime: str = ""
    handler: str = ""
    bundle: str = ""
    properties: Any = None
    links: tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)

    @staticmethod
    def from_mapping(value: Mapping[str, Any]) -> Warp:
        return Warp(
            function_id=_string(_lookup(value, "functionID")),
            runtime=_string(_lookup(value, "runtime")),
            handler=_string(_lookup(value, "handler")),
            bundle=_string(_lookup(value, "bundle")),
            properties=_lookup(value, "properties"),
            links=_string_tuple(_lookup(value, "links")),
            environment=_string_mapping(_lookup(value, "environment")),
        )


@dataclass
class CompleteEvent:  # pylint: disable=too-many-instance-attributes
    """Run result accumulated over the run and delivered once when it ends.

    The event aggregator writes ``errors`` and ``finished`` while the engine
    runs; the output extractor writes the remaining fields afterwards.
    """

    links: dict[str, Any] = field(default_factory=dict)
    warps: dict[str, Warp] = field(default_factory=dict)
    receivers: dict[str, Receiver] = field(default_factory=dict)
    outputs: dict[str, Any] = field(default_factory=dict)
    hints: dict[str, str] = field(default_factory=dict)
    errors: list[RunError] = field(default_factory=list)
    finished: bool = False
    resources: list[Mapping[str, Any]] = field(default_factory=list)


StackEvent = EngineEvent | StdOutEvent | ConcurrentUpdateEvent | CompleteEvent | StackCommandEvent
EventCallback = Callable[[StackEvent], None]


def _lookup(value: Mapping[str, Any], name: str) -> Any:
    # Field names match case-insensitively, exact spelling first.
    if name in value:
        return value[name]
    lowered = name.lower()
    for key, item in value.items():
        if isinstance(key, str) and key.lower() == lowered:
            return item
    return None


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _string_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list | tuple):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _string_mapping(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(key): item for key, item in value.items() if isinstance(item, str)}
