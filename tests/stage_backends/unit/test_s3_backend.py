"""Tests for the S3/SSM stage backend."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError
from stack_orchestrator.configuration.runtime_settings import BackendSettings
from stack_orchestrator.stage_backends import (
    BackendError,
    LocalBackend,
    LockExistsError,
    S3Backend,
    StackKey,
    StateNotFoundError,
    create_backend,
)

KEY = StackKey(home="aws", app="shop", stage="dev")


def _client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3Client:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **kwargs: Any) -> None:
        self.calls.append(("put_object", Key))
        if kwargs.get("IfNoneMatch") == "*" and Key in self.objects:
            raise _client_error("PreconditionFailed", "PutObject")
        self.objects[Key] = Body

    def delete_object(self, *, Bucket: str, Key: str) -> None:
        self.calls.append(("delete_object", Key))
        self.objects.pop(Key, None)

    def download_file(self, bucket: str, key: str, filename: str) -> None:
        if key not in self.objects:
            raise _client_error("404", "HeadObject")
        Path(filename).write_bytes(self.objects[key])

    def upload_file(self, filename: str, bucket: str, key: str) -> None:
        self.objects[key] = Path(filename).read_bytes()

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.objects:
            raise _client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}


class FakeSsmClient:
    def __init__(self, *, race: bool = False) -> None:
        self.parameters: dict[str, str] = {}
        self._race = race

    def get_parameter(self, *, Name: str, WithDecryption: bool) -> dict[str, Any]:
        if Name not in self.parameters:
            raise _client_error("ParameterNotFound", "GetParameter")
        return {"Parameter": {"Name": Name, "Value": self.parameters[Name]}}

    def put_parameter(self, *, Name: str, Value: str, Type: str, Overwrite: bool) -> None:
        if self._race:
            self.parameters[Name] = "from-other-run"
            raise _client_error("ParameterAlreadyExists", "PutParameter")
        self.parameters[Name] = Value


def _backend(
    s3: FakeS3Client | None = None, ssm: FakeSsmClient | None = None, prefix: str = ""
) -> S3Backend:
    clients = {"s3": s3 or FakeS3Client(), "ssm": ssm or FakeSsmClient()}
    return S3Backend(
        bucket="state-bucket",
        region="eu-west-1",
        prefix=prefix,
        client_factory=clients.__getitem__,
    )


def test_lock_uses_conditional_put_and_reports_held_lock() -> None:
    s3 = FakeS3Client()
    backend = _backend(s3)

    backend.lock(KEY)
    with pytest.raises(LockExistsError):
        backend.lock(KEY)

    backend.unlock(KEY)
    assert ("delete_object", "lock/shop/dev.json") in s3.calls
    backend.lock(KEY)


def test_object_keys_honor_prefix() -> None:
    s3 = FakeS3Client()

    _backend(s3, prefix="/teams/web/").lock(KEY)

    assert "teams/web/lock/shop/dev.json" in s3.objects


def test_state_round_trip_and_missing_state(tmp_path: Path) -> None:
    backend = _backend()
    destination = tmp_path / "state.json"

    with pytest.raises(StateNotFoundError):
        backend.pull_state(KEY, destination)

    source = tmp_path / "local.json"
    source.write_text('{"version": 3}', encoding="utf-8")
    backend.push_state(KEY, source)
    backend.pull_state(KEY, destination)

    assert destination.read_text(encoding="utf-8") == '{"version": 3}'


def test_put_links_stores_json_object() -> None:
    s3 = FakeS3Client()

    _backend(s3).put_links(KEY, {"Api": {"url": "https://example.com"}})

    assert json.loads(s3.objects["link/shop/dev.json"]) == {"Api": {"url": "https://example.com"}}


def test_passphrase_is_created_once_in_parameter_store() -> None:
    ssm = FakeSsmClient()
    backend = _backend(ssm=ssm)

    first = backend.passphrase(KEY)

    assert ssm.parameters["/stack-orchestrator/passphrase/shop/dev"] == first
    assert backend.passphrase(KEY) == first


def test_passphrase_created_concurrently_is_read_back() -> None:
    backend = _backend(ssm=FakeSsmClient(race=True))

    assert backend.passphrase(KEY) == "from-other-run"


def test_get_secrets_reads_object_or_defaults_to_empty() -> None:
    s3 = FakeS3Client()
    backend = _backend(s3)

    assert backend.get_secrets(KEY) == {}

    s3.objects["secret/shop/dev.json"] = json.dumps({"Token": "abc"}).encode("utf-8")
    assert backend.get_secrets(KEY) == {"Token": "abc"}


def test_env_exposes_region() -> None:
    assert _backend().env() == {"AWS_REGION": "eu-west-1"}
    assert S3Backend(bucket="b", client_factory=lambda service: None).env() == {}


def test_blank_bucket_is_rejected() -> None:
    with pytest.raises(BackendError):
        S3Backend(bucket=" ")


def test_create_backend_selects_configured_kind(tmp_path: Path) -> None:
    local = create_backend(BackendSettings(kind="local", local_path=tmp_path))
    aws = create_backend(BackendSettings(kind="s3", bucket="state-bucket", region="us-east-1"))

    assert isinstance(local, LocalBackend)
    assert isinstance(aws, S3Backend)
    assert aws.name == "aws"
