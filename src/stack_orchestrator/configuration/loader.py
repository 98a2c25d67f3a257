"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    AppSettings,
    BackendSettings,
    Configuration,
    EngineSettings,
    PathSettings,
    ProgramSettings,
)

DEFAULT_WORK_DIRNAME = ".stack"
DEFAULT_HOME = Path("~/.config/stack-orchestrator")
_BACKEND_KINDS = ("local", "s3")


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the project configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    base_path = path.resolve().parent
    app = _parse_app_section(parsed.get("app"))
    paths = _parse_paths_section(parsed.get("paths"), base_path)
    program = _parse_program_section(parsed.get("program"), base_path)
    backend = _parse_backend_section(parsed.get("backend"), base_path, paths.home)
    engine = _parse_engine_section(parsed.get("engine"))

    return Configuration(
        path=path,
        app=app,
        paths=paths,
        program=program,
        backend=backend,
        engine=engine,
    )


def _parse_app_section(value: Any) -> AppSettings:
    section = _require_mapping(value, "app")
    name = _require_non_empty_string(section.get("name"), "app.name")
    stage = _require_non_empty_string(section.get("stage"), "app.stage")
    providers_raw = section.get("providers") or {}
    if not isinstance(providers_raw, Mapping):
        raise ConfigurationError("app.providers must be a mapping.")
    providers: dict[str, dict[str, Any]] = {}
    for provider_name, args in providers_raw.items():
        if not isinstance(provider_name, str) or not provider_name.strip():
            raise ConfigurationError("app.providers keys must be non-empty strings.")
        if args is None:
            args = {}
        if not isinstance(args, Mapping):
            raise ConfigurationError(f"app.providers.{provider_name} must be a mapping.")
        providers[provider_name] = {str(key): item for key, item in args.items()}
    return AppSettings(name=name, stage=stage, providers=providers)


def _parse_paths_section(value: Any, base_path: Path) -> PathSettings:
    section = value or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError("Configuration section 'paths' must be a mapping.")
    root = _optional_path(section.get("root"), "paths.root", base_path) or base_path
    work = _optional_path(section.get("work"), "paths.work", base_path) or (
        root / DEFAULT_WORK_DIRNAME
    )
    platform = _optional_path(section.get("platform"), "paths.platform", base_path) or (
        work / "platform"
    )
    home = _optional_path(section.get("home"), "paths.home", base_path) or (
        DEFAULT_HOME.expanduser()
    )
    return PathSettings(root=root, work=work, platform=platform, home=home)


def _parse_program_section(value: Any, base_path: Path) -> ProgramSettings:
    section = _require_mapping(value, "program")
    entry = _require_non_empty_string(section.get("entry"), "program.entry")
    return ProgramSettings(entry=_resolve_path(base_path, entry))


def _parse_backend_section(value: Any, base_path: Path, home: Path) -> BackendSettings:
    if value is None:
        return BackendSettings(kind="local", local_path=home / "state")
    section = _require_mapping(value, "backend")
    kinds = [key for key in _BACKEND_KINDS if key in section]
    if len(kinds) != 1:
        raise ConfigurationError("Exactly one backend type (local or s3) must be provided.")
    kind = kinds[0]
    definition = section[kind] or {}
    if not isinstance(definition, Mapping):
        raise ConfigurationError(f"backend.{kind} must be a mapping.")

    if kind == "local":
        local_path = _optional_path(definition.get("path"), "backend.local.path", base_path)
        return BackendSettings(kind="local", local_path=local_path or home / "state")

    bucket = _require_non_empty_string(definition.get("bucket"), "backend.s3.bucket")
    region = _optional_string(definition.get("region"), "backend.s3.region")
    prefix = _optional_string(definition.get("prefix"), "backend.s3.prefix") or ""
    return BackendSettings(kind="s3", bucket=bucket, region=region, prefix=prefix)


def _parse_engine_section(value: Any) -> EngineSettings:
    if value is None:
        return EngineSettings()
    section = _require_mapping(value, "engine")
    binary = _optional_string(section.get("binary"), "engine.binary")
    return EngineSettings(binary=binary or EngineSettings.binary)


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _optional_path(value: Any, field_name: str, base_path: Path) -> Path | None:
    text = _optional_string(value, field_name)
    if text is None:
        return None
    return _resolve_path(base_path, text)


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None
