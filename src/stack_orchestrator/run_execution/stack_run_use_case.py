"""Run execution use-case service."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from pathlib import Path
from types import TracebackType
from typing import Any

from stack_orchestrator.configuration.runtime_settings import Configuration
from stack_orchestrator.engine.engine_contract import (
    EngineError,
    EngineStack,
    EventChannel,
    StackEngine,
)
from stack_orchestrator.engine.workspace_settings import (
    RUN_SKIPPED_CONFIG,
    flatten_provider_config,
)
from stack_orchestrator.event_aggregation.event_aggregator import EventAggregator
from stack_orchestrator.event_aggregation.stack_events import (
    CompleteEvent,
    ConcurrentUpdateEvent,
    StackCommandEvent,
)
from stack_orchestrator.output_extraction.link_type_inference import write_link_types
from stack_orchestrator.output_extraction.output_extractor import extract_stack_outputs
from stack_orchestrator.program_build.build_contracts import BuildRequest, ProgramBuilder
from stack_orchestrator.stack_state.lock_manager import ConcurrentUpdateError, StackLock
from stack_orchestrator.stack_state.state_synchronizer import StateSynchronizer
from stack_orchestrator.stage_backends.backend_contract import (
    StackKey,
    StageBackend,
    StateNotFoundError,
)

from .run_contracts import Operation, RunRequest
from .stage_session import resolve_engine_environment, stack_key_for, workspace_for

_LOGGER = logging.getLogger(__name__)

EVENT_LOG_FILENAME = "event.log"

ExitCallback = Callable[
    [type[BaseException] | None, BaseException | None, TracebackType | None], bool
]


class StageNotFoundError(Exception):
    """Raised when a non-apply operation targets a stage without state."""


class StackRunFailedError(Exception):
    """Raised when the engine operation itself reported failure.

    The per-resource diagnostics stay available in the delivered
    ``CompleteEvent.errors``.
    """


def execute_stack_run(
    request: RunRequest,
    *,
    configuration: Configuration,
    backend: StageBackend,
    engine: StackEngine,
    builder: ProgramBuilder,
    cancelled: threading.Event | None = None,
) -> None:
    """Execute one locked, state-synchronized engine run.

    Once the lock is held, the run result is delivered through
    ``request.on_event``, the state pushed and the stage released, in that
    order, on every exit path.

    Raises:
      ConcurrentUpdateError: If another run holds the stage lock.
      StageNotFoundError: If a destroy or refresh targets a stage without state.
      StackRunFailedError: If the engine operation failed.
    """
    command = request.operation.value
    _LOGGER.info("stack command %s requested", command)
    request.on_event(StackCommandEvent(command=command))

    key = stack_key_for(configuration, backend)
    work_dir = configuration.paths.work
    work_dir.mkdir(parents=True, exist_ok=True)

    lock = StackLock(backend, key, work_dir)
    try:
        lock.acquire()
    except ConcurrentUpdateError:
        request.on_event(ConcurrentUpdateEvent())
        raise

    complete = CompleteEvent()
    with ExitStack() as finalizers:
        synchronizer = StateSynchronizer(
            backend, key, work_dir, state_dirname=engine.state_dirname
        )
        finalizers.push(_finalizer("release stack lock", lock.release))
        finalizers.push(_finalizer("push state", synchronizer.push))
        finalizers.push(_finalizer("deliver run result", lambda: request.on_event(complete)))

        try:
            synchronizer.pull()
        except StateNotFoundError as exc:
            if request.operation is not Operation.APPLY:
                raise StageNotFoundError(
                    f"Stage {key.stage} of {key.app} has no state to {command}"
                ) from exc
            _LOGGER.info("no state for stage %s, creating a new stack", key.stage)

        env = resolve_engine_environment(backend, key)
        build = builder.build(
            BuildRequest(
                root=configuration.paths.root,
                work_dir=work_dir,
                platform_dir=configuration.paths.platform,
                defines=_program_defines(configuration, request, env),
            )
        )
        if request.on_files is not None:
            request.on_files(build.input_files)
        _LOGGER.info("tracked files")

        stack = engine.prepare(
            workspace_for(configuration, env, create=True, main=build.output_file)
        )
        stack.set_all_config(
            flatten_provider_config(configuration.app.providers, skipped=RUN_SKIPPED_CONFIG)
        )

        event_log = finalizers.enter_context(
            (work_dir / EVENT_LOG_FILENAME).open("w", encoding="utf-8")
        )
        channel = EventChannel()
        aggregator = EventAggregator(
            complete=complete, on_event=request.on_event, event_log=event_log
        )
        executor = finalizers.enter_context(ThreadPoolExecutor(max_workers=1))
        consumer = executor.submit(aggregator.consume, channel, cancelled)
        finalizers.push(
            _finalizer(
                "extract outputs",
                lambda: _extract_outputs(
                    stack, complete, backend=backend, key=key, work_dir=work_dir
                ),
            )
        )
        finalizers.push(_finalizer("drain engine events", consumer.result))

        _LOGGER.info("running stack command %s", command)
        try:
            _run_operation(stack, request.operation, channel)
        except EngineError as exc:
            raise StackRunFailedError(f"Stack {command} had errors") from exc
        finally:
            channel.close()
            _LOGGER.info("done running stack command %s", command)


def unlock_stage(configuration: Configuration, backend: StageBackend) -> StackKey:
    """Force-release the stage lock left behind by an interrupted run."""
    key = stack_key_for(configuration, backend)
    StackLock(backend, key, configuration.paths.work).release()
    return key


def _run_operation(stack: EngineStack, operation: Operation, channel: EventChannel) -> None:
    if operation is Operation.APPLY:
        stack.up(channel)
    elif operation is Operation.DESTROY:
        stack.destroy(channel)
    else:
        stack.refresh(channel)


def _extract_outputs(
    stack: EngineStack,
    complete: CompleteEvent,
    *,
    backend: StageBackend,
    key: StackKey,
    work_dir: Path,
) -> None:
    _LOGGER.info("stack command complete")
    try:
        exported = stack.export_state()
    except EngineError:
        _LOGGER.warning("could not export the final state, outputs are unavailable", exc_info=True)
        return
    extract_stack_outputs(exported, complete)
    if complete.links:
        write_link_types(work_dir, complete.links)
        backend.put_links(key, complete.links)


def _program_defines(
    configuration: Configuration, request: RunRequest, env: dict[str, str]
) -> dict[str, str]:
    cli: dict[str, Any] = {
        "command": request.operation.value,
        "dev": request.dev,
        "paths": {
            "home": str(configuration.paths.home),
            "root": str(configuration.paths.root),
            "work": str(configuration.paths.work),
            "platform": str(configuration.paths.platform),
        },
        "env": env,
    }
    return {
        "$app": json.dumps(configuration.app.to_json_dict()),
        "$cli": json.dumps(cli),
        "$dev": "true" if request.dev else "false",
    }


def _finalizer(label: str, action: Callable[[], object]) -> ExitCallback:
    """Wrap ``action`` so its failure never replaces an error already propagating."""

    def _exit(
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        try:
            action()
        except Exception:
            if exc is None:
                raise
            _LOGGER.exception("%s failed while handling another error", label)
        return False

    return _exit
