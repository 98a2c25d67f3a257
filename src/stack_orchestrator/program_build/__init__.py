"""Program build exports."""

from .build_contracts import BuildError, BuildRequest, BuildResult, ProgramBuilder
from .prebuilt_program import PrebuiltProgramBuilder

__all__ = [
    "BuildError",
    "BuildRequest",
    "BuildResult",
    "ProgramBuilder",
    "PrebuiltProgramBuilder",
]
