"""Shared fixtures for rebundle CLI tests.

Provides an isolated runner and a small on-disk project with a manifest
and resources.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

from rebundle_core.schemas import MANIFEST_FILE_NAME


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Iterator[CliRunner]:
    """Click runner inside a temporary working directory."""
    with cli_runner.isolated_filesystem():
        yield cli_runner


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """Write rebundle.yaml into tmp_path and return its path.

    Example:
        >>> path = write_manifest(bundles=[{"name": "Icons"}])
    """

    def _write(**document: Any) -> Path:
        document.setdefault("search_paths", ["resources"])
        path = tmp_path / MANIFEST_FILE_NAME
        path.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def project(
    write_manifest: Callable[..., Path],
    write_resource: Callable[[str, bytes | str], Path],
    make_png: Callable[..., bytes],
) -> Path:
    """A valid project: Icons (two identical images) nested by Toolbar.

    Returns:
        Path to the project's rebundle.yaml.
    """
    write_resource("icons/logo.png", make_png())
    write_resource("icons/banner.png", make_png())
    write_resource("label.txt", "Save")
    return write_manifest(
        generated_package="app_bundles",
        bundles=[
            {
                "name": "Icons",
                "package": "icons",
                "methods": [
                    {"name": "logo", "category": "image"},
                    {"name": "banner", "category": "image"},
                ],
            },
            {
                "name": "Toolbar",
                "methods": [
                    {"name": "label", "category": "text"},
                    {"name": "icons", "category": "bundle", "bundle": "Icons"},
                ],
            },
        ],
    )
