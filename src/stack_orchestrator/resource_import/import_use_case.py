"""Adoption of an existing resource into a stage's managed state."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stack_orchestrator.configuration.runtime_settings import Configuration
from stack_orchestrator.engine.engine_contract import StackEngine
from stack_orchestrator.engine.workspace_settings import (
    IMPORT_SKIPPED_KEYS,
    flatten_provider_config,
)
from stack_orchestrator.run_execution.stage_session import (
    resolve_engine_environment,
    stack_key_for,
    workspace_for,
)
from stack_orchestrator.stack_state.lock_manager import StackLock
from stack_orchestrator.stack_state.state_snapshot import ResourceRecord
from stack_orchestrator.stack_state.state_synchronizer import StateSynchronizer
from stack_orchestrator.stage_backends.backend_contract import StageBackend, StateNotFoundError

from .snapshot_editing import upsert_resource
from .urn_builder import build_import_urns, parse_type_token

_LOGGER = logging.getLogger(__name__)


class ResourceImportError(Exception):
    """Raised when a resource cannot be adopted."""


@dataclass(frozen=True)
class ImportRequest:
    """Resource to bring under management."""

    resource_type: str
    name: str
    id: str
    parent: str | None = None


@dataclass(frozen=True)
class ImportOutcome:
    """Adopted record and whether it was new to the snapshot."""

    record: ResourceRecord
    created: bool


def import_resource(
    request: ImportRequest,
    *,
    configuration: Configuration,
    backend: StageBackend,
    engine: StackEngine,
) -> ImportOutcome:
    """Adopt an out-of-band resource into the existing stack of the configured stage.

    The snapshot is edited in place, imported back into the engine and then
    refreshed for the adopted URN only. State is pushed only on success; the
    stage lock is always released.

    Raises:
      UrnError: If the type, name or parent cannot form a valid URN.
      ConcurrentUpdateError: If another run holds the stage lock.
      ResourceImportError: If the stage has no state to import into.
    """
    resource_type = parse_type_token(request.resource_type)
    urns = build_import_urns(
        stage=configuration.app.stage,
        app=configuration.app.name,
        resource_type=resource_type,
        name=request.name,
        parent=request.parent,
    )
    _LOGGER.info("importing %s (parent %s)", urns.urn, urns.parent_urn)

    key = stack_key_for(configuration, backend)
    work_dir = configuration.paths.work
    work_dir.mkdir(parents=True, exist_ok=True)
    lock = StackLock(backend, key, work_dir)
    lock.acquire()
    try:
        synchronizer = StateSynchronizer(
            backend, key, work_dir, state_dirname=engine.state_dirname
        )
        try:
            synchronizer.pull()
        except StateNotFoundError as exc:
            raise ResourceImportError(
                f"Stage {key.stage} of {key.app} has no state to import into"
            ) from exc

        env = resolve_engine_environment(backend, key, include_secrets=False)
        stack = engine.prepare(workspace_for(configuration, env, create=False))
        stack.set_all_config(
            flatten_provider_config(
                configuration.app.providers, skipped_keys=IMPORT_SKIPPED_KEYS
            )
        )

        record = ResourceRecord(
            urn=urns.urn,
            type=resource_type,
            id=request.id,
            parent=urns.parent_urn or "",
            custom=True,
        )
        updated, created = upsert_resource(stack.export_state(), record)
        stack.import_state(updated)
        _LOGGER.info("imported %s, refreshing", urns.urn)

        stack.refresh(targets=[urns.urn])
        synchronizer.push()
    finally:
        lock.release()
    return ImportOutcome(record=record, created=created)
