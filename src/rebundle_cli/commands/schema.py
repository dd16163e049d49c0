"""rebundle schema command - Export JSON Schema."""

from __future__ import annotations

from pathlib import Path

import click

from rebundle_cli.errors import EXIT_SYSTEM_ERROR
from rebundle_cli.output import error, success


@click.group()
def schema() -> None:
    """Manage JSON Schema for IDE support.

    **Commands:**

    - `rebundle schema export` - Export the rebundle.yaml JSON Schema
    """
    pass


@schema.command("export")
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(),
    default="./schemas/rebundle.schema.json",
    help="Output path [default: ./schemas/rebundle.schema.json]",
)
def export_schema(output_path: str) -> None:
    """Export the rebundle.yaml JSON Schema.

    Examples:

        rebundle schema export

        rebundle schema export --output custom/path/schema.json
    """
    output = Path(output_path)

    from rebundle_core.export import export_manifest_schema

    try:
        export_manifest_schema(output)
    except OSError as e:
        error(f"Cannot write to {output_path}: {e.strerror or e}")
        raise SystemExit(EXIT_SYSTEM_ERROR) from None

    success(f"Schema exported to {output}")
