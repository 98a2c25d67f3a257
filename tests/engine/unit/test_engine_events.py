"""Tests for engine event parsing."""

from __future__ import annotations

from stack_orchestrator.engine import parse_engine_event


def test_parses_diagnostic_event() -> None:
    event = parse_engine_event(
        {
            "sequence": 4,
            "timestamp": 1700000000,
            "diagnosticEvent": {
                "message": "bucket name taken\n",
                "severity": "error",
                "urn": "urn:pulumi:dev::shop::aws:s3/bucket:Bucket::assets",
                "prefix": "error: ",
            },
        }
    )

    assert event.kind == "diagnosticEvent"
    assert event.sequence == 4
    assert event.timestamp == 1700000000
    assert event.diagnostic_event is not None
    assert event.diagnostic_event.severity == "error"
    assert event.diagnostic_event.urn.endswith("::assets")
    assert event.summary_event is None


def test_parses_summary_event() -> None:
    event = parse_engine_event(
        {
            "summaryEvent": {
                "resourceChanges": {"create": 2, "same": 5},
                "durationSeconds": 12,
                "maybeCorrupt": False,
            }
        }
    )

    assert event.summary_event is not None
    assert event.summary_event.resource_changes == {"create": 2, "same": 5}
    assert event.summary_event.duration_seconds == 12


def test_parses_resource_step_metadata() -> None:
    event = parse_engine_event(
        {
            "resOutputsEvent": {
                "metadata": {
                    "op": "create",
                    "urn": "urn:pulumi:dev::shop::aws:s3/bucket:Bucket::assets",
                    "type": "aws:s3/bucket:Bucket",
                }
            }
        }
    )

    assert event.resource_event is not None
    assert event.resource_event.stage == "resOutputsEvent"
    assert event.resource_event.op == "create"
    assert event.resource_event.resource_type == "aws:s3/bucket:Bucket"


def test_unknown_payload_keeps_raw_content() -> None:
    payload = {"sequence": "x", "cancelEvent": {}}

    event = parse_engine_event(payload)

    assert event.payload is payload
    assert event.kind == "cancelEvent"
    assert event.sequence == 0
    assert event.diagnostic_event is None
    assert event.resource_event is None
