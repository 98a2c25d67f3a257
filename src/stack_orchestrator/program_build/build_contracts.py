"""Build step contract for the infrastructure program."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


class BuildError(Exception):
    """Raised when the infrastructure program cannot be built."""


@dataclass(frozen=True)
class BuildRequest:
    """Inputs handed to the program builder for one run."""

    root: Path
    work_dir: Path
    platform_dir: Path
    defines: Mapping[str, str]


@dataclass(frozen=True)
class BuildResult:
    """Compiled program entry point plus every file the build read."""

    output_file: Path
    input_files: tuple[Path, ...]


class ProgramBuilder(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for builders compiling the infrastructure program."""

    def build(self, request: BuildRequest) -> BuildResult: ...
