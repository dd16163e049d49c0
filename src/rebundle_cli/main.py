"""CLI entry point for rebundle.

This module defines the main CLI group. Subcommands are loaded lazily so
`rebundle --help` does not import the compiler (pydantic, Pillow).
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from rebundle_cli import __version__
from rebundle_cli.output import set_no_color

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class LazyGroup(rclick.RichGroup):
    """Click group that imports subcommands only when they are used.

    Attributes:
        lazy_subcommands: Mapping of command names to "module.attribute" paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for the parent group.
            lazy_subcommands: Command name -> "module.attribute" path, e.g.
                {"compile": "rebundle_cli.commands.compile.compile_cmd"}.
            **kwargs: Keyword arguments for the parent group.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return registered and lazy command names, sorted.

        Args:
            ctx: Click context.

        Returns:
            Sorted command names.
        """
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Look up a command, importing its module on first use.

        Args:
            ctx: Click context.
            cmd_name: Command name from the command line.

        Returns:
            The click Command, or None for unknown names.
        """
        # Registered commands win over lazy ones
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_name, attr_name = self.lazy_subcommands[cmd_name].rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "validate": "rebundle_cli.commands.validate.validate",
    "compile": "rebundle_cli.commands.compile.compile_cmd",
    "schema": "rebundle_cli.commands.schema.schema",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="rebundle")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
def cli() -> None:
    """rebundle - compile resource bundles into Python modules.

    Declare bundles of text, data, images and style sheets in
    `rebundle.yaml`; rebundle deduplicates the assets by content and
    generates one module per bundle.

    **Getting Started:**

    - `rebundle validate` - Validate your manifest
    - `rebundle compile` - Generate bundle modules and static artifacts
    - `rebundle schema export` - Export JSON Schema for IDE support
    """
    pass


if __name__ == "__main__":
    cli()
