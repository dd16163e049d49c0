"""Per-graph generation state for rebundle.

A GenerationSession lives for the compilation of one bundle graph (a bundle
plus every bundle it nests). It carries:
- The build's PropertyResolver and DeploymentContext (shared ContentCache)
- The ResourceLocator for the manifest's search roots
- A diagnostic accumulator
- The NestedBundleRegistry, which maps each bundle type to its single
  generated unit and doubles as the cycle guard for nested bundles

Sessions are never shared between builds.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any

import structlog

from rebundle_core.compiler.content_cache import ContentCache
from rebundle_core.compiler.deployment import DeploymentContext
from rebundle_core.compiler.models import Diagnostic, GeneratedBundle, Severity
from rebundle_core.compiler.property_resolver import PropertyResolver
from rebundle_core.compiler.resource_locator import ResourceLocator
from rebundle_core.errors import BundleError, PropertyError
from rebundle_core.schemas.bundle import BundleDescriptor

logger = structlog.get_logger(__name__)


class RegistryState(str, Enum):
    """Compilation state of a bundle type within a session."""

    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"


class NestedBundleRegistry:
    """Bundle type -> generated unit mapping for one session.

    A type that is IN_PROGRESS or DONE is referenced, never recompiled;
    this terminates self-referential and cyclic nesting.
    """

    def __init__(self) -> None:
        self._states: dict[str, RegistryState] = {}
        self._units: dict[str, GeneratedBundle] = {}

    def state(self, bundle: str) -> RegistryState | None:
        """Return the bundle's state, or None if never started."""
        return self._states.get(bundle)

    def begin(self, bundle: str) -> None:
        """Mark a bundle as in progress."""
        self._states[bundle] = RegistryState.IN_PROGRESS

    def complete(self, unit: GeneratedBundle) -> None:
        """Record a finished unit."""
        self._states[unit.bundle] = RegistryState.DONE
        self._units[unit.bundle] = unit

    def fail(self, bundle: str) -> None:
        """Mark a bundle as failed and drop any unit it produced."""
        self._states[bundle] = RegistryState.FAILED
        self._units.pop(bundle, None)

    def get(self, bundle: str) -> GeneratedBundle | None:
        """Return the unit generated for a bundle, if it completed."""
        return self._units.get(bundle)

    def units(self) -> dict[str, GeneratedBundle]:
        """Return completed units in completion order."""
        return dict(self._units)

    def failed(self) -> list[str]:
        """Return failed bundle names."""
        return [name for name, s in self._states.items() if s is RegistryState.FAILED]

    def __contains__(self, bundle: object) -> bool:
        return bundle in self._states


class GenerationSession:
    """State for compiling one bundle graph.

    Attributes:
        bundles: All bundle descriptors of the build, keyed by name.
        resolver: Property resolver for the build.
        deployment: Deployment context (shares the build's ContentCache).
        locator: Resource locator for the build's search roots.
        registry: Nested bundle registry for this graph.

    Example:
        >>> session = GenerationSession(manifest.bundle_map(), resolver, deployment, locator)
        >>> compiler.compile_bundle("Icons", session)
    """

    def __init__(
        self,
        bundles: dict[str, BundleDescriptor],
        resolver: PropertyResolver,
        deployment: DeploymentContext,
        locator: ResourceLocator,
    ) -> None:
        self.bundles = bundles
        self.resolver = resolver
        self.deployment = deployment
        self.locator = locator
        self.registry = NestedBundleRegistry()
        self._diagnostics: list[Diagnostic] = []
        self._lock = threading.Lock()

    @property
    def cache(self) -> ContentCache:
        """The shared ContentCache."""
        return self.deployment.cache

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Diagnostics recorded so far, in order."""
        with self._lock:
            return list(self._diagnostics)

    def get_property(
        self, name: str, *, bundle: str | None = None, method: str | None = None
    ) -> Any:
        """Resolve a property, attributing failures to bundle/method.

        Raises:
            PropertyError: If the property cannot be resolved.
        """
        try:
            return self.resolver.resolve(name)
        except PropertyError as e:
            if bundle is not None:
                e.attribute(bundle, method)
            raise

    def report(
        self,
        severity: Severity,
        message: str,
        *,
        bundle: str | None = None,
        method: str | None = None,
        code: str | None = None,
    ) -> Diagnostic:
        """Record a diagnostic and log it."""
        diagnostic = Diagnostic(
            severity=severity,
            message=message,
            bundle=bundle,
            method=method,
            code=code,
        )
        with self._lock:
            self._diagnostics.append(diagnostic)

        log = {
            Severity.INFO: logger.info,
            Severity.WARN: logger.warning,
            Severity.ERROR: logger.error,
        }[severity]
        log("diagnostic", message=message, bundle=bundle, method=method, code=code)
        return diagnostic

    def report_error(self, error: BundleError) -> Diagnostic:
        """Record a bundle-scoped error as an ERROR diagnostic."""
        return self.report(
            Severity.ERROR,
            error.user_message,
            bundle=error.bundle_name,
            method=error.method_name,
            code=error.code,
        )
