"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class AppSettings:
    """App identity and provider settings handed to the infrastructure program."""

    name: str
    stage: str
    providers: Mapping[str, Mapping[str, Any]]

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "stage": self.stage,
            "providers": {name: dict(args) for name, args in self.providers.items()},
        }


@dataclass(frozen=True)
class PathSettings:
    """Filesystem locations used during a run."""

    root: Path
    work: Path
    platform: Path
    home: Path


@dataclass(frozen=True)
class ProgramSettings:
    """Compiled infrastructure program location."""

    entry: Path


@dataclass(frozen=True)
class BackendSettings:
    """State and lock backend selection."""

    kind: str
    local_path: Path | None = None
    bucket: str | None = None
    region: str | None = None
    prefix: str = ""


@dataclass(frozen=True)
class EngineSettings:
    """Infrastructure engine invocation settings."""

    binary: str = "pulumi"


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path
    app: AppSettings
    paths: PathSettings
    program: ProgramSettings
    backend: BackendSettings
    engine: EngineSettings

    def with_stage(self, stage: str | None) -> Configuration:
        """Return a copy targeting another stage; a blank stage keeps the configured one."""
        if stage is None or not stage.strip():
            return self
        return replace(self, app=replace(self.app, stage=stage.strip()))
