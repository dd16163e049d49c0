"""rebundle validate command - Validate rebundle.yaml."""

from __future__ import annotations

import click

from rebundle_cli.errors import EXIT_USER_ERROR, load_manifest
from rebundle_cli.output import error, success, warning


@click.command()
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default="./rebundle.yaml",
    help="Path to rebundle.yaml [default: ./rebundle.yaml]",
)
def validate(file_path: str) -> None:
    """Validate rebundle.yaml.

    Checks the manifest against the schema, checks that every declared
    property in the property table is well formed, and warns about nested
    bundle types that are not declared.

    Examples:

        rebundle validate

        rebundle validate --file path/to/rebundle.yaml
    """
    manifest = load_manifest(file_path)

    from rebundle_core.compiler import PROPERTY_DEFINITIONS, PropertyResolver
    from rebundle_core.errors import PropertyError

    resolver = PropertyResolver(table=manifest.properties)
    try:
        resolver.snapshot(sorted(PROPERTY_DEFINITIONS))
    except PropertyError as e:
        error(e.user_message)
        raise SystemExit(EXIT_USER_ERROR) from None

    declared = set(manifest.bundle_map())
    for bundle in manifest.bundles:
        for method in bundle.methods:
            if method.bundle is not None and method.bundle not in declared:
                warning(
                    f"{bundle.name}.{method.name} nests undeclared bundle '{method.bundle}'"
                )

    success(f"Manifest valid ({len(manifest.bundles)} bundles)")
