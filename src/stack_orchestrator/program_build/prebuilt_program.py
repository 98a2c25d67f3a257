"""Builder for programs compiled ahead of time."""

from __future__ import annotations

from pathlib import Path

from .build_contracts import BuildError, BuildRequest, BuildResult


class PrebuiltProgramBuilder:  # pylint: disable=too-few-public-methods
    """Uses an already compiled entry file as the engine entry point."""

    def __init__(self, entry: Path) -> None:
        self._entry = Path(entry)

    def build(self, request: BuildRequest) -> BuildResult:
        entry = self._entry if self._entry.is_absolute() else request.root / self._entry
        if not entry.is_file():
            raise BuildError(f"Program entry not found: {entry}")
        resolved = entry.resolve()
        return BuildResult(output_file=resolved, input_files=(resolved,))
