"""Unwrapping of secret values in exported stack outputs."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

_LOGGER = logging.getLogger(__name__)

PLAINTEXT_FIELD = "plaintext"


def decrypt(value: Any) -> Any:
    """Return ``value`` with every secret wrapper replaced by its decoded content.

    An object carrying a non-null ``plaintext`` field is a wrapper; it is
    replaced by the JSON value parsed from its string content, as is. Other
    objects and arrays are rebuilt from their decrypted members, scalars pass
    through unchanged.
    """
    if isinstance(value, Mapping):
        if value.get(PLAINTEXT_FIELD) is not None:
            return _parse_plaintext(value[PLAINTEXT_FIELD])
        return {key: decrypt(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decrypt(item) for item in value]
    return value


def decrypt_outputs(outputs: Mapping[str, Any]) -> dict[str, Any]:
    """Decrypt a top-level output map."""
    return {key: decrypt(item) for key, item in outputs.items()}


def _parse_plaintext(plaintext: Any) -> Any:
    if not isinstance(plaintext, str):
        _LOGGER.warning("secret wrapper carries a non-string plaintext, dropping it")
        return None
    try:
        return json.loads(plaintext)
    except json.JSONDecodeError:
        _LOGGER.warning("secret plaintext is not valid JSON, dropping it")
        return None
