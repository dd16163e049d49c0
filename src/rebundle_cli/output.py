"""Rich console output utilities for rebundle-cli.

Colored success/error/warning messages, JSON output and the diagnostics
table. Respects the NO_COLOR environment variable and the --no-color flag.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from rebundle_core.compiler.models import Diagnostic

_force_no_color = os.environ.get("NO_COLOR") is not None

_SEVERITY_COLORS = {
    "info": "cyan",
    "warn": "yellow",
    "error": "red",
}


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(force_terminal=force_terminal, no_color=no_color or _force_no_color)


console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark.

    Example:
        >>> success("Manifest valid")
        ✓ Manifest valid
    """
    console.print(f"[green]✓[/green] {escape(message)}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X.

    Example:
        >>> error("Compilation failed")
        ✗ Compilation failed
    """
    console.print(f"[red]✗[/red] {escape(message)}", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with yellow triangle."""
    console.print(f"[yellow]⚠[/yellow] {escape(message)}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message."""
    console.print(escape(message), **kwargs)


def print_json(data: dict[str, Any], **kwargs: Any) -> None:
    """Print JSON data with syntax highlighting.

    Example:
        >>> print_json({"ok": True})
        {
          "ok": true
        }
    """
    console.print_json(json.dumps(data), **kwargs)


def print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    """Print build diagnostics as a table, most severe first.

    Args:
        diagnostics: Diagnostics in recording order.
    """
    if not diagnostics:
        return

    rank = {"error": 0, "warn": 1, "info": 2}
    ordered = sorted(diagnostics, key=lambda d: rank[d.severity.value])

    table = Table(show_header=True, header_style="bold")
    table.add_column("Severity", width=8)
    table.add_column("Location", min_width=16)
    table.add_column("Message", min_width=30)
    table.add_column("Code", style="dim")

    for diagnostic in ordered:
        color = _SEVERITY_COLORS[diagnostic.severity.value]
        table.add_row(
            Text(diagnostic.severity.value.upper(), style=color),
            Text(diagnostic.location() or "-"),
            Text(diagnostic.message),
            Text(diagnostic.code or "-"),
        )

    console.print(table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors."""
    global console
    console = create_console(no_color=no_color)
