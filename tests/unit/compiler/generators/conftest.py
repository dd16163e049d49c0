"""Fixtures for asset generator tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from rebundle_core.compiler.content_cache import ContentCache
from rebundle_core.compiler.deployment import DeploymentContext
from rebundle_core.compiler.generators.base import ResourceContext
from rebundle_core.compiler.models import ResourceHandle
from rebundle_core.compiler.property_resolver import PropertyResolver
from rebundle_core.compiler.resource_locator import ResourceLocator
from rebundle_core.compiler.session import GenerationSession
from rebundle_core.schemas.bundle import BundleDescriptor


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """Directory static artifacts are deployed to."""
    return tmp_path / "static"


@pytest.fixture
def make_context(static_dir: Path) -> Callable[..., ResourceContext]:
    """Build a ResourceContext for a bundle.

    Example:
        >>> context = make_context(bundle, properties={"resources.deployment": "inline"})
    """

    def _make(
        bundle: BundleDescriptor,
        properties: dict[str, Any] | None = None,
        cache: ContentCache | None = None,
    ) -> ResourceContext:
        resolver = PropertyResolver(table=properties or {}, environ={})
        cache = cache or ContentCache(output_dir=static_dir, url_prefix="/static/")
        deployment = DeploymentContext.from_properties(resolver, cache=cache)
        session = GenerationSession(
            {bundle.name: bundle}, resolver, deployment, ResourceLocator([static_dir])
        )
        return ResourceContext(session, bundle)

    return _make


@pytest.fixture
def make_handle() -> Callable[[str, bytes], ResourceHandle]:
    """Build an in-memory ResourceHandle: make_handle(name, content)."""

    def _make(name: str, content: bytes) -> ResourceHandle:
        return ResourceHandle(path=Path("/res") / name, name=name, content=content)

    return _make
