"""AWS backend storing stage state in S3 and passphrases in SSM Parameter Store."""

from __future__ import annotations

import json
import logging
import secrets
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from botocore.exceptions import ClientError

from .backend_contract import BackendError, LockExistsError, StackKey, StateNotFoundError

_LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}
_LOCK_HELD_CODES = {"PreconditionFailed", "ConditionalRequestConflict", "412"}
PASSPHRASE_PARAMETER_PREFIX = "/stack-orchestrator/passphrase"


class S3Backend:
    """Backend for shared stages; credentials are resolved via boto3's standard chain."""

    name = "aws"

    def __init__(
        self,
        *,
        bucket: str,
        region: str | None = None,
        prefix: str = "",
        client_factory: ClientFactory | None = None,
    ) -> None:
        if not bucket.strip():
            raise BackendError("S3 backend bucket is missing.")
        self._bucket = bucket.strip()
        self._region = region
        self._prefix = _normalize_prefix(prefix)
        self._client_factory = client_factory or self._default_client_factory
        self._clients: dict[str, Any] = {}

    def env(self) -> dict[str, str]:
        if self._region:
            return {"AWS_REGION": self._region}
        return {}

    def lock(self, key: StackKey) -> None:
        object_key = self._key("lock", key, ".json")
        body = json.dumps({"created": datetime.now(UTC).isoformat()})
        try:
            self._client("s3").put_object(
                Bucket=self._bucket,
                Key=object_key,
                Body=body.encode("utf-8"),
                IfNoneMatch="*",
            )
        except ClientError as exc:
            if _error_code(exc) in _LOCK_HELD_CODES:
                raise LockExistsError(f"Stage {key.app}/{key.stage} is locked") from exc
            raise BackendError(f"Failed to acquire lock s3://{self._bucket}/{object_key}") from exc
        _LOGGER.info("acquired lock s3://%s/%s", self._bucket, object_key)

    def unlock(self, key: StackKey) -> None:
        object_key = self._key("lock", key, ".json")
        try:
            self._client("s3").delete_object(Bucket=self._bucket, Key=object_key)
        except ClientError as exc:
            raise BackendError(f"Failed to release lock s3://{self._bucket}/{object_key}") from exc

    def pull_state(self, key: StackKey, destination: Path) -> None:
        object_key = self._key("app", key, ".json")
        try:
            self._client("s3").download_file(self._bucket, object_key, str(destination))
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                raise StateNotFoundError(f"No state found for {key.app}/{key.stage}") from exc
            raise BackendError(
                f"S3 download failed: s3://{self._bucket}/{object_key} ({exc})"
            ) from exc

    def push_state(self, key: StackKey, source: Path) -> None:
        object_key = self._key("app", key, ".json")
        try:
            self._client("s3").upload_file(str(source), self._bucket, object_key)
        except ClientError as exc:
            raise BackendError(
                f"S3 upload failed: s3://{self._bucket}/{object_key} ({exc})"
            ) from exc

    def put_links(self, key: StackKey, links: Mapping[str, Any]) -> None:
        object_key = self._key("link", key, ".json")
        try:
            self._client("s3").put_object(
                Bucket=self._bucket,
                Key=object_key,
                Body=json.dumps(links).encode("utf-8"),
                ContentType="application/json",
            )
        except ClientError as exc:
            raise BackendError(
                f"S3 upload failed: s3://{self._bucket}/{object_key} ({exc})"
            ) from exc

    def passphrase(self, key: StackKey) -> str:
        name = f"{PASSPHRASE_PARAMETER_PREFIX}/{key.app}/{key.stage}"
        ssm = self._client("ssm")
        try:
            response = ssm.get_parameter(Name=name, WithDecryption=True)
            return str(response["Parameter"]["Value"])
        except ClientError as exc:
            if _error_code(exc) != "ParameterNotFound":
                raise BackendError(f"Failed to read passphrase parameter {name}") from exc

        value = secrets.token_urlsafe(32)
        try:
            ssm.put_parameter(Name=name, Value=value, Type="SecureString", Overwrite=False)
        except ClientError as exc:
            if _error_code(exc) != "ParameterAlreadyExists":
                raise BackendError(f"Failed to create passphrase parameter {name}") from exc
            response = ssm.get_parameter(Name=name, WithDecryption=True)
            return str(response["Parameter"]["Value"])
        return value

    def get_secrets(self, key: StackKey) -> dict[str, str]:
        object_key = self._key("secret", key, ".json")
        try:
            response = self._client("s3").get_object(Bucket=self._bucket, Key=object_key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                return {}
            raise BackendError(f"Failed to list secrets s3://{self._bucket}/{object_key}") from exc
        try:
            parsed = json.loads(response["Body"].read())
        except json.JSONDecodeError as exc:
            raise BackendError(f"Secrets object is not valid JSON: {object_key}") from exc
        if not isinstance(parsed, Mapping):
            raise BackendError(f"Secrets object root must be an object: {object_key}")
        return {str(name): str(value) for name, value in parsed.items()}

    def _key(self, kind: str, key: StackKey, suffix: str) -> str:
        return f"{self._prefix}{kind}/{key.relative_path(suffix)}"

    def _client(self, service: str) -> Any:
        if service not in self._clients:
            self._clients[service] = self._client_factory(service)
        return self._clients[service]

    def _default_client_factory(self, service: str) -> Any:
        import boto3

        if self._region:
            return boto3.client(service, region_name=self._region)
        return boto3.client(service)


def _normalize_prefix(prefix: str) -> str:
    normalized = prefix.strip().strip("/")
    return f"{normalized}/" if normalized else ""


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))
