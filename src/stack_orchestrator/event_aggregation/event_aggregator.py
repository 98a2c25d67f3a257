"""Background consumer classifying, forwarding and persisting engine events."""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import TextIO

from stack_orchestrator.engine.engine_contract import ChannelItem, EventChannel
from stack_orchestrator.engine.engine_events import EngineEvent, StdOutEvent

from .stack_events import CompleteEvent, EventCallback, RunError

_LOGGER = logging.getLogger(__name__)

# The engine closes a failed operation with this generic diagnostic; the
# failing resources already reported the specific errors.
GENERIC_FAILURE_PREFIX = "update failed"


def is_generic_failure(message: str) -> bool:
    return message.startswith(GENERIC_FAILURE_PREFIX)


class EventAggregator:
    """Single consumer of one run's event channel.

    Every item is forwarded to the caller in arrival order. Engine events
    are additionally classified into the run result and appended as one
    JSON object per line to the event log.
    """

    def __init__(
        self,
        *,
        complete: CompleteEvent,
        on_event: EventCallback,
        event_log: TextIO,
        poll_interval: float = 0.1,
    ) -> None:
        self._complete = complete
        self._on_event = on_event
        self._event_log = event_log
        self._poll_interval = poll_interval

    def consume(self, channel: EventChannel, cancelled: threading.Event | None = None) -> None:
        """Drain ``channel`` until it closes or ``cancelled`` is set."""
        stop = cancelled or threading.Event()
        while not stop.is_set():
            try:
                item = channel.receive(timeout=self._poll_interval)
            except queue.Empty:
                continue
            if item is None:
                return
            self.handle(item)
        _LOGGER.info("event consumption cancelled")

    def handle(self, item: ChannelItem) -> None:
        if isinstance(item, StdOutEvent):
            self._on_event(item)
            return
        self._record_error(item)
        self._on_event(item)
        if item.summary_event is not None:
            self._complete.finished = True
        self._event_log.write(json.dumps(item.payload))
        self._event_log.write("\n")
        self._event_log.flush()

    def _record_error(self, event: EngineEvent) -> None:
        diagnostic = event.diagnostic_event
        if diagnostic is None or diagnostic.severity != "error":
            return
        if is_generic_failure(diagnostic.message):
            return
        self._complete.errors.append(RunError(message=diagnostic.message, urn=diagnostic.urn))
