"""Unit tests for GenerationSession and NestedBundleRegistry."""

from __future__ import annotations

from pathlib import Path

import pytest

from rebundle_core.compiler.content_cache import ContentCache
from rebundle_core.compiler.deployment import DeploymentContext
from rebundle_core.compiler.models import DeploymentPolicy, GeneratedBundle, Severity
from rebundle_core.compiler.property_resolver import PropertyResolver
from rebundle_core.compiler.resource_locator import ResourceLocator
from rebundle_core.compiler.session import GenerationSession, NestedBundleRegistry, RegistryState
from rebundle_core.errors import MissingResourceError, PropertyError
from rebundle_core.schemas.bundle import BundleDescriptor


def _unit(name: str) -> GeneratedBundle:
    return GeneratedBundle(
        bundle=name, module_name=name.lower(), class_name=f"{name}Impl", source="# x\n"
    )


@pytest.fixture
def session(tmp_path: Path) -> GenerationSession:
    """Session over a single empty bundle."""
    cache = ContentCache(output_dir=tmp_path)
    return GenerationSession(
        {"Icons": BundleDescriptor(name="Icons")},
        PropertyResolver(table={"custom.flag": "on"}, environ={}),
        DeploymentContext(DeploymentPolicy.STATIC, cache),
        ResourceLocator([tmp_path]),
    )


class TestNestedBundleRegistry:
    """Tests for registry state tracking."""

    def test_lifecycle(self) -> None:
        """Bundles move from unknown to in progress to done."""
        registry = NestedBundleRegistry()
        assert registry.state("Icons") is None
        assert "Icons" not in registry

        registry.begin("Icons")
        assert registry.state("Icons") is RegistryState.IN_PROGRESS
        assert "Icons" in registry
        assert registry.get("Icons") is None

        unit = _unit("Icons")
        registry.complete(unit)
        assert registry.state("Icons") is RegistryState.DONE
        assert registry.get("Icons") is unit
        assert registry.units() == {"Icons": unit}

    def test_fail_drops_unit(self) -> None:
        """Failing a completed bundle removes its unit."""
        registry = NestedBundleRegistry()
        registry.begin("Icons")
        registry.complete(_unit("Icons"))

        registry.fail("Icons")

        assert registry.get("Icons") is None
        assert registry.failed() == ["Icons"]
        assert registry.units() == {}

    def test_units_in_completion_order(self) -> None:
        """Nested bundles complete before the bundles that nest them."""
        registry = NestedBundleRegistry()
        registry.begin("Outer")
        registry.begin("Inner")
        registry.complete(_unit("Inner"))
        registry.complete(_unit("Outer"))
        assert list(registry.units()) == ["Inner", "Outer"]


class TestGenerationSession:
    """Tests for session services."""

    def test_cache_is_deployment_cache(self, session: GenerationSession) -> None:
        """The session exposes the shared cache."""
        assert session.cache is session.deployment.cache

    def test_report_records_in_order(self, session: GenerationSession) -> None:
        """Diagnostics keep recording order."""
        session.report(Severity.INFO, "first", bundle="Icons")
        session.report(Severity.WARN, "second", bundle="Icons", method="logo", code="w")

        diagnostics = session.diagnostics
        assert [d.message for d in diagnostics] == ["first", "second"]
        assert diagnostics[1].location() == "Icons.logo"
        assert diagnostics[1].code == "w"

    def test_diagnostics_returns_copy(self, session: GenerationSession) -> None:
        """Callers cannot mutate the accumulator."""
        session.diagnostics.append(None)  # type: ignore[arg-type]
        assert session.diagnostics == []

    def test_report_error(self, session: GenerationSession) -> None:
        """Bundle errors become ERROR diagnostics with their code."""
        error = MissingResourceError(["logo.png"], bundle_name="Icons", method_name="logo")
        diagnostic = session.report_error(error)
        assert diagnostic.severity is Severity.ERROR
        assert diagnostic.code == "missing-resource"
        assert diagnostic.bundle == "Icons"
        assert diagnostic.method == "logo"

    def test_get_property(self, session: GenerationSession) -> None:
        """Properties come from the shared resolver."""
        assert session.get_property("custom.flag") == "on"

    def test_get_property_attributes_failures(self, session: GenerationSession) -> None:
        """Resolution failures name the requesting bundle and method."""
        with pytest.raises(PropertyError) as exc_info:
            session.get_property("custom.missing", bundle="Icons", method="logo")
        assert exc_info.value.bundle_name == "Icons"
        assert exc_info.value.method_name == "logo"
