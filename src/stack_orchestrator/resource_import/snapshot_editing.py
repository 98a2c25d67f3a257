"""In-place adoption of a resource record into an exported snapshot."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from stack_orchestrator.stack_state.state_snapshot import ResourceRecord, SnapshotError


def upsert_resource(
    exported: Mapping[str, Any], record: ResourceRecord
) -> tuple[dict[str, Any], bool]:
    """Return a copy of ``exported`` holding ``record`` and whether it was appended.

    A resource with the same URN is updated in place, keeping every field
    the record does not set; otherwise a new resource is appended.
    """
    updated = copy.deepcopy(dict(exported))
    deployment = updated.setdefault("deployment", {})
    if not isinstance(deployment, dict):
        raise SnapshotError("Exported snapshot deployment must be an object.")
    resources = deployment.get("resources")
    if resources is None:
        resources = []
        deployment["resources"] = resources
    if not isinstance(resources, list):
        raise SnapshotError("Exported snapshot resources must be a list.")

    target: dict[str, Any] | None = None
    for resource in resources:
        if isinstance(resource, dict) and resource.get("urn") == record.urn:
            target = resource
            break
    created = target is None
    if target is None:
        target = {}
        resources.append(target)

    target["urn"] = record.urn
    if record.parent:
        target["parent"] = record.parent
    else:
        target.pop("parent", None)
    target["custom"] = record.custom
    target["id"] = record.id
    target["type"] = record.type
    return updated, created
