"""Tests for the engine event channel."""

from __future__ import annotations

import queue

import pytest
from stack_orchestrator.engine import EventChannel, StdOutEvent


def test_items_are_received_in_order_then_none_after_close() -> None:
    channel = EventChannel()
    channel.put(StdOutEvent(text="one"))
    channel.put(StdOutEvent(text="two"))
    channel.close()

    assert channel.receive(timeout=1) == StdOutEvent(text="one")
    assert channel.receive(timeout=1) == StdOutEvent(text="two")
    assert channel.receive(timeout=1) is None
    assert channel.closed


def test_close_is_idempotent() -> None:
    channel = EventChannel()

    channel.close()
    channel.close()

    assert channel.receive(timeout=1) is None
    with pytest.raises(queue.Empty):
        channel.receive(timeout=0.01)


def test_receive_times_out_while_open() -> None:
    with pytest.raises(queue.Empty):
        EventChannel().receive(timeout=0.01)
