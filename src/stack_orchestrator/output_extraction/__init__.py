"""Output extraction exports."""

from .link_type_inference import TYPES_FILENAME, infer_type, render_link_types, write_link_types
from .output_extractor import (
    HINTS_KEY,
    LINKS_KEY,
    RECEIVERS_KEY,
    WARPS_KEY,
    extract_stack_outputs,
)
from .secret_decryption import decrypt, decrypt_outputs

__all__ = [
    "TYPES_FILENAME",
    "infer_type",
    "render_link_types",
    "write_link_types",
    "HINTS_KEY",
    "LINKS_KEY",
    "RECEIVERS_KEY",
    "WARPS_KEY",
    "extract_stack_outputs",
    "decrypt",
    "decrypt_outputs",
]
