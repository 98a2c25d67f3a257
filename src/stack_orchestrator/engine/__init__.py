"""Engine adapter exports."""

from .engine_contract import (
    EngineError,
    EngineStack,
    EventChannel,
    StackEngine,
    WorkspaceSettings,
)
from .engine_events import (
    DiagnosticEvent,
    EngineEvent,
    ResourceOperationEvent,
    StdOutEvent,
    SummaryEvent,
    parse_engine_event,
)
from .pulumi_cli_engine import PulumiCliEngine
from .workspace_settings import (
    IMPORT_SKIPPED_KEYS,
    PASSPHRASE_ENV_VAR,
    RUN_SKIPPED_CONFIG,
    SECRET_ENV_PREFIX,
    build_engine_environment,
    flatten_provider_config,
)

__all__ = [
    "EngineError",
    "EngineStack",
    "EventChannel",
    "StackEngine",
    "WorkspaceSettings",
    "DiagnosticEvent",
    "EngineEvent",
    "ResourceOperationEvent",
    "StdOutEvent",
    "SummaryEvent",
    "parse_engine_event",
    "PulumiCliEngine",
    "IMPORT_SKIPPED_KEYS",
    "PASSPHRASE_ENV_VAR",
    "RUN_SKIPPED_CONFIG",
    "SECRET_ENV_PREFIX",
    "build_engine_environment",
    "flatten_provider_config",
]
