"""Resource import exports."""

from .import_use_case import ImportOutcome, ImportRequest, ResourceImportError, import_resource
from .snapshot_editing import upsert_resource
from .urn_builder import ImportUrns, UrnError, build_import_urns, parse_type_token, parse_urn

__all__ = [
    "ImportOutcome",
    "ImportRequest",
    "ResourceImportError",
    "import_resource",
    "upsert_resource",
    "ImportUrns",
    "UrnError",
    "build_import_urns",
    "parse_type_token",
    "parse_urn",
]
