"""rebundle compile command - Generate bundle modules and static artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from rebundle_cli.errors import EXIT_SYSTEM_ERROR, EXIT_USER_ERROR, load_manifest
from rebundle_cli.output import error, info, print_diagnostics, print_json, success

if TYPE_CHECKING:
    from rebundle_core.compiler.models import BuildResult

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_defines(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    from rebundle_core.compiler import parse_override

    overrides: dict[str, str] = {}
    for value in values:
        try:
            name, raw = parse_override(value)
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from None
        overrides[name] = raw
    return overrides


@click.command("compile")
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default="./rebundle.yaml",
    help="Path to rebundle.yaml [default: ./rebundle.yaml]",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(),
    default="build/",
    help="Output directory [default: build/]",
)
@click.option(
    "-D",
    "--define",
    "overrides",
    multiple=True,
    callback=_parse_defines,
    metavar="NAME=VALUE",
    help="Override a property (repeatable), e.g. -D resources.deployment=inline",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Number of bundle graphs compiled in parallel",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    default=False,
    help="Print the build result as JSON",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    help="Log level for structured logs on stderr [default: WARNING]",
)
def compile_cmd(
    file_path: str,
    output_path: str,
    overrides: dict[str, str],
    workers: int | None,
    json_output: bool,
    log_level: str,
) -> None:
    """Compile the bundles declared in rebundle.yaml.

    Writes one Python module per bundle to `<output>/<generated_package>/`
    and deployed static artifacts to `<output>/static/`. Exits with 1 when
    any bundle failed and 2 when the build could not run at all.

    Examples:

        rebundle compile

        rebundle compile --output dist/ -D resources.deployment=inline

        rebundle compile --workers 4 --json
    """
    from rebundle_core import BundleCompiler, DeploymentError, configure_logging, write_bundles
    from rebundle_core.compiler import WORKERS_PROPERTY
    from rebundle_core.errors import PropertyError

    configure_logging(log_level=log_level, json_format=json_output, add_timestamp=False)

    manifest = load_manifest(file_path)
    output = Path(output_path)
    if workers is not None:
        overrides[WORKERS_PROPERTY] = str(workers)

    try:
        result = BundleCompiler().build(manifest, output, overrides=overrides)
        write_bundles(result, output, manifest.generated_package)
    except PropertyError as e:
        error(f"Invalid build configuration: {e.user_message}")
        raise SystemExit(EXIT_SYSTEM_ERROR) from None
    except DeploymentError as e:
        error(e.user_message)
        raise SystemExit(EXIT_SYSTEM_ERROR) from None
    except OSError as e:
        error(f"Cannot write to {output_path}: {e.strerror or e}")
        raise SystemExit(EXIT_SYSTEM_ERROR) from None

    if json_output:
        print_json(_result_to_dict(result))
    else:
        print_diagnostics(list(result.diagnostics))
        for name in result.bundles:
            info(f"  {name} -> {manifest.generated_package}.{result.bundles[name].module_name}")
        if result.ok:
            success(
                f"Compiled {len(result.bundles)} bundles, "
                f"{len(result.artifacts)} artifacts to {output}"
            )
        else:
            error(f"{len(result.failed)} bundles failed: {', '.join(result.failed)}")

    if not result.ok:
        raise SystemExit(EXIT_USER_ERROR)


def _result_to_dict(result: BuildResult) -> dict[str, Any]:
    return {
        "ok": result.ok,
        "bundles": {
            name: {
                "module": unit.module_name,
                "class": unit.class_name,
                "source_hash": unit.source_hash,
                "nested_bundles": list(unit.nested_bundles),
            }
            for name, unit in result.bundles.items()
        },
        "failed": list(result.failed),
        "diagnostics": [d.model_dump(mode="json") for d in result.diagnostics],
        "artifacts": {
            fingerprint: artifact.model_dump(mode="json", exclude={"fingerprint"})
            for fingerprint, artifact in result.artifacts.items()
        },
    }
