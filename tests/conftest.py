"""Shared pytest fixtures for rebundle tests.

Provides structlog configuration, temporary resource trees, PNG images
generated with Pillow, manifest builders and a loader for generated bundle
packages.
"""

from __future__ import annotations

import importlib.util
import io
import logging
import os
import struct
import sys
import uuid
import zlib
from collections.abc import Callable, Iterator
from pathlib import Path
from types import ModuleType
from typing import Any

import pytest
import structlog
from click.testing import CliRunner
from PIL import Image

from rebundle_core.schemas import BundleManifest

RESOURCE_DIR = "resources"


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """Undo configure_logging() calls made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clean_rebundle_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove REBUNDLE_* variables so the host environment cannot leak in."""
    for key in list(os.environ):
        if key.startswith("REBUNDLE_"):
            monkeypatch.delenv(key)


def png_bytes(
    width: int = 4,
    height: int = 4,
    color: tuple[int, int, int, int] = (255, 0, 0, 255),
) -> bytes:
    """Return the bytes of a solid-color RGBA PNG."""
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Factory for PNG bytes: make_png(width, height, color)."""
    return png_bytes


def png_header_bytes(width: int, height: int) -> bytes:
    """Return a PNG holding only IHDR and IEND: a valid size, no pixel data."""

    def chunk(kind: bytes, data: bytes) -> bytes:
        crc = struct.pack(">I", zlib.crc32(kind + data))
        return struct.pack(">I", len(data)) + kind + data + crc

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


@pytest.fixture
def make_png_header() -> Callable[[int, int], bytes]:
    """Factory for header-only PNG bytes: make_png_header(width, height)."""
    return png_header_bytes


@pytest.fixture
def resource_root(tmp_path: Path) -> Path:
    """Empty resource search root inside tmp_path."""
    root = tmp_path / RESOURCE_DIR
    root.mkdir()
    return root


@pytest.fixture
def write_resource(resource_root: Path) -> Callable[[str, bytes | str], Path]:
    """Write a resource file relative to the resource root.

    Example:
        >>> write_resource("icons/logo.png", make_png())
    """

    def _write(name: str, content: bytes | str) -> Path:
        path = resource_root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
        return path

    return _write


@pytest.fixture
def make_manifest(tmp_path: Path) -> Callable[..., BundleManifest]:
    """Build a manifest anchored at tmp_path that searches resources/.

    Example:
        >>> manifest = make_manifest([{"name": "Icons", "methods": [...]}])
    """

    def _make(
        bundles: list[dict[str, Any]],
        properties: dict[str, Any] | None = None,
        **extra: Any,
    ) -> BundleManifest:
        data: dict[str, Any] = {
            "search_paths": [RESOURCE_DIR],
            "properties": properties or {},
            "bundles": bundles,
            **extra,
        }
        return BundleManifest.model_validate(data).with_base_dir(tmp_path)

    return _make


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Build output directory (created on demand by the compiler)."""
    return tmp_path / "build"


@pytest.fixture
def load_generated() -> Iterator[Callable[[Path], ModuleType]]:
    """Import a generated bundle package directory under a unique name.

    Yields:
        Loader taking the package directory and returning the package module.
        Submodules are reachable via importlib.import_module(f"{pkg.__name__}.x").
    """
    loaded: list[str] = []

    def _load(package_dir: Path) -> ModuleType:
        name = f"_rebundle_generated_{uuid.uuid4().hex}"
        spec = importlib.util.spec_from_file_location(
            name,
            package_dir / "__init__.py",
            submodule_search_locations=[str(package_dir)],
        )
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        loaded.append(name)
        return module

    yield _load

    for prefix in loaded:
        for key in [k for k in sys.modules if k == prefix or k.startswith(f"{prefix}.")]:
            del sys.modules[key]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()
