"""Tests for stack event entities."""

from __future__ import annotations

from stack_orchestrator.event_aggregation import CompleteEvent, Receiver, Warp


def test_warp_fields_match_case_insensitively() -> None:
    warp = Warp.from_mapping(
        {
            "functionId": "Api",
            "Runtime": "nodejs20.x",
            "handler": "src/api.handler",
            "bundle": ".build/api",
            "properties": {"memory": 1024},
            "links": ["Bucket", 3],
            "environment": {"STAGE": "dev", "PORT": 3000},
        }
    )

    assert warp.function_id == "Api"
    assert warp.runtime == "nodejs20.x"
    assert warp.properties == {"memory": 1024}
    assert warp.links == ("Bucket",)
    assert warp.environment == {"STAGE": "dev"}


def test_receiver_defaults_for_missing_fields() -> None:
    receiver = Receiver.from_mapping({})

    assert receiver.links == ()
    assert receiver.environment == {}


def test_complete_event_starts_empty_and_unfinished() -> None:
    complete = CompleteEvent()

    assert complete.finished is False
    assert complete.errors == []
    assert complete.links == {}
    assert CompleteEvent().errors is not complete.errors
