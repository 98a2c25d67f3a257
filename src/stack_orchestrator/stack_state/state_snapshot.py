"""Access to exported state snapshots."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class SnapshotError(Exception):
    """Raised when an exported snapshot does not have the expected shape."""


@dataclass(frozen=True)
class ResourceRecord:
    """Fields of a snapshot resource that the orchestrator reads or writes."""

    urn: str
    type: str
    id: str = ""
    parent: str = ""
    custom: bool = False

    @staticmethod
    def from_mapping(value: Mapping[str, Any]) -> ResourceRecord:
        return ResourceRecord(
            urn=str(value.get("urn") or ""),
            type=str(value.get("type") or ""),
            id=str(value.get("id") or ""),
            parent=str(value.get("parent") or ""),
            custom=bool(value.get("custom", False)),
        )


def deployment_of(exported: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the deployment document inside an exported snapshot."""
    deployment = exported.get("deployment")
    if deployment is None:
        return {}
    if not isinstance(deployment, Mapping):
        raise SnapshotError("Exported snapshot deployment must be an object.")
    return deployment


def snapshot_resources(exported: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Return the resource list of an exported snapshot, empty for a new stack."""
    resources = deployment_of(exported).get("resources") or []
    if not isinstance(resources, list):
        raise SnapshotError("Exported snapshot resources must be a list.")
    return [resource for resource in resources if isinstance(resource, Mapping)]
