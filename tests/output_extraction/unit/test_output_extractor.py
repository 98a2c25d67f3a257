"""Tests for partitioning stack outputs into the run result."""

from __future__ import annotations

import json

from stack_orchestrator.event_aggregation import CompleteEvent, Receiver
from stack_orchestrator.output_extraction import extract_stack_outputs


def _exported(outputs: dict, extra_resources: int = 0) -> dict:
    resources = [{"urn": "urn:pulumi:dev::shop::pulumi:pulumi:Stack::shop-dev", "outputs": outputs}]
    resources.extend({"urn": f"child-{index}"} for index in range(extra_resources))
    return {"version": 3, "deployment": {"resources": resources}}


def test_reserved_keys_are_routed_and_plain_outputs_kept() -> None:
    complete = CompleteEvent()
    outputs = {
        "_links": {"Bucket": {"name": "assets"}},
        "_hints": {"Site": "https://shop.example.com", "Bad": 1},
        "_warps": {"Api": {"functionID": "Api", "runtime": "nodejs20.x"}},
        "_receivers": {"Web": {"links": ["Bucket"], "environment": {"A": "b"}}},
        "_internal": "hidden",
        "url": "https://api.example.com",
    }

    extract_stack_outputs(_exported(outputs, extra_resources=2), complete)

    assert complete.links == {"Bucket": {"name": "assets"}}
    assert complete.hints == {"Site": "https://shop.example.com"}
    assert complete.warps["Api"].function_id == "Api"
    assert complete.receivers == {"Web": Receiver(links=("Bucket",), environment={"A": "b"})}
    assert complete.outputs == {"url": "https://api.example.com"}
    assert len(complete.resources) == 3


def test_secret_outputs_are_decrypted_before_routing() -> None:
    complete = CompleteEvent()
    secret_links = {"plaintext": json.dumps({"Db": {"password": "pw"}})}

    extract_stack_outputs(
        _exported({"_links": secret_links, "token": {"plaintext": '"t0k"'}}), complete
    )

    assert complete.links == {"Db": {"password": "pw"}}
    assert complete.outputs == {"token": "t0k"}


def test_snapshot_without_resources_leaves_result_empty() -> None:
    complete = CompleteEvent()

    extract_stack_outputs({"version": 3, "deployment": {"resources": []}}, complete)

    assert complete == CompleteEvent()


def test_non_object_reserved_values_are_ignored() -> None:
    complete = CompleteEvent()

    extract_stack_outputs(_exported({"_links": ["not", "an", "object"], "x": 1}), complete)

    assert complete.links == {}
    assert complete.outputs == {"x": 1}
