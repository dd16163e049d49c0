"""JSON Schema export for rebundle manifests.

Exports a JSON Schema Draft 2020-12 document for rebundle.yaml, for IDE
autocomplete (e.g. the VS Code YAML extension) and validation in CI.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rebundle_core.schemas import BundleManifest

SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"
MANIFEST_SCHEMA_ID = "https://rebundle.dev/schemas/rebundle-manifest.schema.json"


def export_manifest_schema(
    output_path: Path | str | None = None,
) -> dict[str, Any]:
    """Export the BundleManifest JSON Schema.

    Args:
        output_path: Optional path to write schema file. If provided,
            creates parent directories as needed.

    Returns:
        Dictionary containing the JSON Schema.

    Example:
        >>> schema = export_manifest_schema()
        >>> schema["$schema"]
        'https://json-schema.org/draft/2020-12/schema'

        >>> export_manifest_schema(Path("schemas/rebundle.schema.json"))
    """
    schema = BundleManifest.model_json_schema()

    schema["$schema"] = SCHEMA_DRAFT
    schema["$id"] = MANIFEST_SCHEMA_ID

    if "additionalProperties" not in schema:
        schema["additionalProperties"] = False

    if output_path is not None:
        _write_schema_file(schema, output_path)

    return schema


def _write_schema_file(schema: dict[str, Any], path: Path | str) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(schema, indent=2) + "\n", encoding="utf-8")
