"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "stack.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Project configuration template for stack-orchestrator.
# Replace every <REQUIRED> placeholder before running deploy, remove or refresh.
# Replace <OPTIONAL> placeholders only when your setup needs them.

app:
  name: "<REQUIRED>"
  stage: "<REQUIRED>"
  # Provider settings become engine config keys <provider>:<key>.
  providers:
    aws:
      region: "<OPTIONAL>"

program:
  # Compiled program file the engine runs as its entry point.
  entry: "<REQUIRED>"

# paths:
#   root: "<OPTIONAL>"
#   work: "<OPTIONAL>"
#   platform: "<OPTIONAL>"
#   home: "<OPTIONAL>"

backend:
  # Choose exactly one backend type (local or s3).
  local:
    path: "<OPTIONAL>"
  # s3:
  #   bucket: "<REQUIRED>"
  #   region: "<OPTIONAL>"
  #   prefix: "<OPTIONAL>"

engine:
  binary: "pulumi"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML project configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder project configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(
            f"Project configuration file already exists: {destination.resolve()}"
        )
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
