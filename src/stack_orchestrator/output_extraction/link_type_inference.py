"""Type declaration generation for stack links."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

TYPES_FILENAME = "types.generated.ts"

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def infer_type(value: Any, indent: str = "") -> str:
    """Infer a structural TypeScript type from a JSON value."""
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        lines = ["{"]
        for key in sorted(value):
            member_type = infer_type(value[key], indent + "  ")
            lines.append(f"{indent}  {_property_name(str(key))}: {member_type}")
        lines.append(f"{indent}}}")
        return "\n".join(lines)
    if isinstance(value, list):
        if not value:
            return "any[]"
        return f"{infer_type(value[0], indent)}[]"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    return "any"


def render_link_types(links: Mapping[str, Any]) -> str:
    """Render the module augmentation declaring every link as a resource property."""
    return "\n".join(
        [
            'import "sst"',
            'declare module "sst" {',
            f"  export interface Resource {infer_type(links, '  ')}",
            "}",
            "export {}",
        ]
    )


def write_link_types(work_dir: Path, links: Mapping[str, Any]) -> Path:
    """Overwrite the generated type declaration file in the work directory."""
    path = Path(work_dir) / TYPES_FILENAME
    path.write_text(render_link_types(links), encoding="utf-8")
    return path


def _property_name(key: str) -> str:
    if _IDENTIFIER.match(key):
        return key
    return json.dumps(key)
