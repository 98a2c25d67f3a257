"""Canonical resource identifiers for adopted resources."""

from __future__ import annotations

from dataclasses import dataclass

URN_SCHEME = "urn:pulumi:"
URN_DELIMITER = "::"
PARENT_TYPE_DELIMITER = "$"


class UrnError(Exception):
    """Raised when a URN, type token or parent reference is malformed."""


@dataclass(frozen=True)
class ImportUrns:
    """URN of the adopted resource and, when nested, of its parent."""

    urn: str
    parent_urn: str | None = None


def urn_prefix(stage: str, app: str) -> str:
    return f"{URN_SCHEME}{stage}{URN_DELIMITER}{app}{URN_DELIMITER}"


def parse_urn(text: str) -> str:
    """Validate ``urn:pulumi:<stage>::<app>::<qualified type>::<name>``."""
    if not text.startswith(URN_SCHEME):
        raise UrnError(f"URN must start with {URN_SCHEME!r}: {text}")
    parts = text[len(URN_SCHEME) :].split(URN_DELIMITER, 3)
    if len(parts) != 4 or not all(parts):
        raise UrnError(f"URN must contain stage, app, type and name: {text}")
    return text


def parse_type_token(text: str) -> str:
    """Validate a ``<package>:<module>:<member>`` type token."""
    parts = text.split(":")
    if len(parts) != 3 or not parts[0] or not parts[2]:
        raise UrnError(f"Type token must look like <package>:<module>:<member>: {text}")
    return text


def build_import_urns(
    *,
    stage: str,
    app: str,
    resource_type: str,
    name: str,
    parent: str | None = None,
) -> ImportUrns:
    """Build the URN of a resource to adopt.

    ``parent`` is ``<type>::<name>``; when given, the parent type is embedded
    as a hierarchical segment of the child URN and the parent URN is derived
    as well.
    """
    prefix = urn_prefix(stage, app)
    final_segment = f"{resource_type}{URN_DELIMITER}{name}"
    if not parent:
        return ImportUrns(urn=parse_urn(prefix + final_segment))

    parent_type, delimiter, parent_name = parent.partition(URN_DELIMITER)
    if not delimiter or not parent_type or not parent_name:
        raise UrnError(f"Parent must look like <type>::<name>: {parent}")
    return ImportUrns(
        urn=parse_urn(f"{prefix}{parent_type}{PARENT_TYPE_DELIMITER}{final_segment}"),
        parent_urn=parse_urn(f"{prefix}{parent_type}{URN_DELIMITER}{parent_name}"),
    )
