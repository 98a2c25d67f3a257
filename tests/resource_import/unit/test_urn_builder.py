"""Tests for URN construction of adopted resources."""

from __future__ import annotations

import pytest
from stack_orchestrator.resource_import import UrnError, build_import_urns
from stack_orchestrator.resource_import.urn_builder import parse_type_token, parse_urn


def test_top_level_resource_urn() -> None:
    urns = build_import_urns(
        stage="dev", app="shop", resource_type="aws:s3/bucket:Bucket", name="assets"
    )

    assert urns.urn == "urn:pulumi:dev::shop::aws:s3/bucket:Bucket::assets"
    assert urns.parent_urn is None


def test_child_resource_embeds_parent_type() -> None:
    urns = build_import_urns(
        stage="dev",
        app="shop",
        resource_type="aws:s3/bucket:Bucket",
        name="assets",
        parent="sst:aws:Bucket::Assets",
    )

    assert urns.urn == "urn:pulumi:dev::shop::sst:aws:Bucket$aws:s3/bucket:Bucket::assets"
    assert urns.parent_urn == "urn:pulumi:dev::shop::sst:aws:Bucket::Assets"


@pytest.mark.parametrize("parent", ["sst:aws:Bucket", "::Assets", "sst:aws:Bucket::"])
def test_malformed_parent_is_rejected(parent: str) -> None:
    with pytest.raises(UrnError, match="Parent"):
        build_import_urns(
            stage="dev",
            app="shop",
            resource_type="aws:s3/bucket:Bucket",
            name="assets",
            parent=parent,
        )


def test_empty_name_is_rejected() -> None:
    with pytest.raises(UrnError):
        build_import_urns(stage="dev", app="shop", resource_type="aws:s3/bucket:Bucket", name="")


@pytest.mark.parametrize("token", ["aws:s3/bucket:Bucket", "aws::Bucket", "random:index:RandomId"])
def test_valid_type_tokens(token: str) -> None:
    assert parse_type_token(token) == token


@pytest.mark.parametrize("token", ["Bucket", "aws:Bucket", ":s3:Bucket", "aws:s3:", "a:b:c:d"])
def test_invalid_type_tokens(token: str) -> None:
    with pytest.raises(UrnError):
        parse_type_token(token)


def test_parse_urn_requires_scheme() -> None:
    with pytest.raises(UrnError):
        parse_urn("dev::shop::aws:s3/bucket:Bucket::assets")
