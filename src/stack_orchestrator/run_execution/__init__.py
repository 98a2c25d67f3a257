"""Run execution domain exports."""

from .run_contracts import FilesCallback, Operation, RunRequest
from .stack_run_use_case import (
    EVENT_LOG_FILENAME,
    StackRunFailedError,
    StageNotFoundError,
    execute_stack_run,
    unlock_stage,
)

__all__ = [
    "FilesCallback",
    "Operation",
    "RunRequest",
    "EVENT_LOG_FILENAME",
    "StackRunFailedError",
    "StageNotFoundError",
    "execute_stack_run",
    "unlock_stage",
]
