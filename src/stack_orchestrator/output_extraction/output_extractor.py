"""Partitioning of decrypted stack outputs into the run result."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from stack_orchestrator.event_aggregation.stack_events import CompleteEvent, Receiver, Warp
from stack_orchestrator.stack_state.state_snapshot import snapshot_resources

from .secret_decryption import decrypt_outputs

_LOGGER = logging.getLogger(__name__)

LINKS_KEY = "_links"
HINTS_KEY = "_hints"
WARPS_KEY = "_warps"
RECEIVERS_KEY = "_receivers"
RESERVED_PREFIX = "_"


def extract_stack_outputs(exported: Mapping[str, Any], complete: CompleteEvent) -> None:
    """Fill ``complete`` from the final snapshot.

    The first resource of the snapshot is the stack itself and carries the
    program outputs. Reserved keys feed links, hints, warps and receivers;
    every other key that does not start with an underscore lands in
    ``outputs``.
    """
    resources = snapshot_resources(exported)
    if not resources:
        return
    complete.resources = list(resources)

    raw_outputs = resources[0].get("outputs") or {}
    if not isinstance(raw_outputs, Mapping):
        _LOGGER.warning("stack outputs are not an object, skipping extraction")
        return
    outputs = decrypt_outputs(raw_outputs)

    links = _reserved_mapping(outputs, LINKS_KEY)
    complete.links.update(links)

    for name, hint in _reserved_mapping(outputs, HINTS_KEY).items():
        if isinstance(hint, str):
            complete.hints[name] = hint

    for name, definition in _reserved_mapping(outputs, WARPS_KEY).items():
        if isinstance(definition, Mapping):
            complete.warps[name] = Warp.from_mapping(definition)

    for name, definition in _reserved_mapping(outputs, RECEIVERS_KEY).items():
        if isinstance(definition, Mapping):
            complete.receivers[name] = Receiver.from_mapping(definition)

    for name, value in outputs.items():
        if name.startswith(RESERVED_PREFIX):
            continue
        complete.outputs[name] = value


def _reserved_mapping(outputs: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = outputs.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        _LOGGER.warning("output %s is not an object, ignoring it", key)
        return {}
    return value
