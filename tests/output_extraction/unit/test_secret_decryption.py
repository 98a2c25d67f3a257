"""Tests for secret unwrapping in stack outputs."""

from __future__ import annotations

import json

from stack_orchestrator.output_extraction import decrypt, decrypt_outputs


def test_plaintext_wrapper_is_replaced_by_parsed_value() -> None:
    assert decrypt({"plaintext": '{"url": "https://x"}'}) == {"url": "https://x"}


def test_nested_wrappers_are_unwrapped_recursively() -> None:
    value = {
        "a": {"plaintext": '"s"'},
        "b": {"c": {"plaintext": "1"}},
        "d": [{"plaintext": "true"}, 2],
    }

    assert decrypt(value) == {"a": "s", "b": {"c": 1}, "d": [True, 2]}


def test_decrypted_content_is_returned_as_parsed() -> None:
    inner = json.dumps({"plaintext": '"x"', "other": 1})

    assert decrypt_outputs({"a": {"plaintext": inner}}) == {
        "a": {"plaintext": '"x"', "other": 1}
    }


def test_null_plaintext_is_an_ordinary_object() -> None:
    assert decrypt({"plaintext": None, "other": 1}) == {"plaintext": None, "other": 1}


def test_scalars_pass_through() -> None:
    assert decrypt("text") == "text"
    assert decrypt(3) == 3
    assert decrypt(None) is None


def test_invalid_plaintext_is_dropped() -> None:
    assert decrypt({"plaintext": "{not json"}) is None
    assert decrypt({"plaintext": 42}) is None


def test_input_is_not_mutated() -> None:
    outputs = {"secret": {"plaintext": '"v"'}}

    assert decrypt_outputs(outputs) == {"secret": "v"}
    assert outputs == {"secret": {"plaintext": '"v"'}}
