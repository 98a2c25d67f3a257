"""Stage backend exports."""

from stack_orchestrator.configuration.runtime_settings import BackendSettings

from .backend_contract import (
    BackendError,
    LockExistsError,
    StackKey,
    StageBackend,
    StateNotFoundError,
)
from .local_backend import LocalBackend
from .s3_backend import S3Backend


def create_backend(settings: BackendSettings) -> StageBackend:
    """Build the backend selected in the project configuration."""
    if settings.kind == "s3":
        return S3Backend(
            bucket=settings.bucket or "",
            region=settings.region,
            prefix=settings.prefix,
        )
    if settings.local_path is None:
        raise BackendError("Local backend requires a path.")
    return LocalBackend(settings.local_path)


__all__ = [
    "BackendError",
    "LockExistsError",
    "StackKey",
    "StageBackend",
    "StateNotFoundError",
    "LocalBackend",
    "S3Backend",
    "create_backend",
]
