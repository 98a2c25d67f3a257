"""Stage-level helpers shared by runs and imports."""

from __future__ import annotations

from pathlib import Path

from stack_orchestrator.configuration.runtime_settings import Configuration
from stack_orchestrator.engine.engine_contract import WorkspaceSettings
from stack_orchestrator.engine.workspace_settings import build_engine_environment
from stack_orchestrator.stage_backends.backend_contract import StackKey, StageBackend


def stack_key_for(configuration: Configuration, backend: StageBackend) -> StackKey:
    return StackKey(home=backend.name, app=configuration.app.name, stage=configuration.app.stage)


def resolve_engine_environment(
    backend: StageBackend, key: StackKey, *, include_secrets: bool = True
) -> dict[str, str]:
    """Collect the environment the engine runs with, passphrase included."""
    passphrase = backend.passphrase(key)
    secrets = backend.get_secrets(key) if include_secrets else {}
    return build_engine_environment(
        backend_env=backend.env(),
        secrets=secrets,
        passphrase=passphrase,
    )


def workspace_for(
    configuration: Configuration,
    env: dict[str, str],
    *,
    create: bool,
    main: Path | None = None,
) -> WorkspaceSettings:
    return WorkspaceSettings(
        project_name=configuration.app.name,
        stage=configuration.app.stage,
        work_dir=configuration.paths.work,
        home_dir=configuration.paths.home,
        env=env,
        main=main,
        create=create,
    )
