"""BundleCompiler for rebundle.

This module turns a BundleManifest into generated bundle modules.

Per bundle, compilation runs as:
    Start -> ResolvingMethods -> Dispatching -> Assembling -> Done | Failed

- ResolvingMethods locates every non-nested method's resources and lets its
  generator prepare (e.g. collect images for a sheet)
- Dispatching generates accessors: nested bundles first (recursing through
  the session's registry), then text/data/image, then styles, so style
  placeholders can see every other accessor
- Assembling renders the module source; it only happens when the bundle
  recorded no error

Independent bundle graphs (connected components of the nesting relation)
each get their own GenerationSession and run on a thread pool; all of them
share one ContentCache, so identical bytes are deployed once per build.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from rebundle_core.compiler.codegen import render_bundle
from rebundle_core.compiler.content_cache import ContentCache
from rebundle_core.compiler.deployment import DeploymentContext
from rebundle_core.compiler.generators import GENERATORS, AssetGenerator, load_generator
from rebundle_core.compiler.generators.base import ResourceContext
from rebundle_core.compiler.models import (
    BuildResult,
    Diagnostic,
    GeneratedAccessor,
    GeneratedBundle,
    ResourceHandle,
)
from rebundle_core.compiler.property_resolver import (
    URL_PREFIX_PROPERTY,
    WORKERS_PROPERTY,
    PropertyResolver,
)
from rebundle_core.compiler.resource_locator import ResourceLocator
from rebundle_core.compiler.session import GenerationSession, RegistryState
from rebundle_core.errors import (
    BundleError,
    NestedBundleFailedError,
    UnknownBundleError,
    UnsupportedCategoryError,
)
from rebundle_core.schemas.bundle import AssetCategory

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from rebundle_core.schemas.bundle import BundleDescriptor, MethodDescriptor
    from rebundle_core.schemas.manifest import BundleManifest

logger = structlog.get_logger(__name__)

# Subdirectory of the output directory that receives static artifacts
STATIC_DIR_NAME = "static"


class BundleCompiler:
    """Compile bundle descriptors into generated implementation units.

    The compiler itself is stateless between builds; every build creates
    fresh sessions, so nothing leaks from one configuration to the next.

    Attributes:
        generators: Category -> generator class strategy table.

    Example:
        >>> manifest = BundleManifest.from_yaml("rebundle.yaml")
        >>> result = BundleCompiler().build(manifest, Path("build"))
        >>> sorted(result.bundles)
        ['Icons', 'Styles']
    """

    def __init__(
        self,
        generators: Mapping[AssetCategory, type[AssetGenerator]] | None = None,
    ) -> None:
        self.generators = dict(GENERATORS if generators is None else generators)
        self._instances: dict[AssetCategory, AssetGenerator] = {
            category: cls() for category, cls in self.generators.items()
        }

    def build(
        self,
        manifest: BundleManifest,
        output_dir: Path | str | None = None,
        overrides: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> BuildResult:
        """Compile every bundle of a manifest.

        Args:
            manifest: Validated bundle manifest.
            output_dir: Build output directory. Static artifacts are written
                to ``<output_dir>/static``. May be omitted for purely inline
                builds.
            overrides: Property overrides (highest precedence).
            environ: Environment for REBUNDLE_* lookups (default os.environ).

        Returns:
            BuildResult with generated units, failures, diagnostics and
            deployed artifacts, all in deterministic order.

        Raises:
            PropertyError: If a build-wide property (deployment policy, URL
                prefix, worker count) is malformed.
            DeploymentError: If an artifact cannot be written. Fatal.
        """
        resolver = PropertyResolver(
            table=manifest.properties,
            overrides=dict(overrides or {}),
            environ=environ,
        )
        static_dir = Path(output_dir) / STATIC_DIR_NAME if output_dir is not None else None
        cache = ContentCache(
            output_dir=static_dir,
            url_prefix=resolver.resolve(URL_PREFIX_PROPERTY),
        )
        deployment = DeploymentContext.from_properties(resolver, cache=cache)
        workers: int = resolver.resolve(WORKERS_PROPERTY)
        locator = ResourceLocator(manifest.resolved_search_paths())
        bundles = manifest.bundle_map()

        graphs = bundle_graphs(manifest.bundles)
        logger.info(
            "build_started",
            bundles=len(bundles),
            graphs=len(graphs),
            workers=workers,
            policy=deployment.policy.value,
        )

        def run(graph: list[str]) -> GenerationSession:
            session = GenerationSession(bundles, resolver, deployment, locator)
            self.compile_graph(graph, session)
            return session

        with ThreadPoolExecutor(max_workers=workers) as executor:
            sessions = list(executor.map(run, graphs))

        units: dict[str, GeneratedBundle] = {}
        diagnostics: list[Diagnostic] = []
        failed: set[str] = set()
        for session in sessions:
            units.update(session.registry.units())
            failed.update(session.registry.failed())
            diagnostics.extend(session.diagnostics)

        order = list(bundles)
        result = BuildResult(
            bundles={name: units[name] for name in order if name in units},
            failed=tuple(name for name in order if name in failed),
            diagnostics=tuple(diagnostics),
            artifacts=cache.artifacts(),
        )
        logger.info(
            "build_finished",
            compiled=len(result.bundles),
            failed=len(result.failed),
            artifacts=len(result.artifacts),
            cache_hits=cache.stats.hits,
        )
        return result

    def compile_graph(self, names: list[str], session: GenerationSession) -> None:
        """Compile a bundle graph within one session.

        After every bundle ran, units that nest a failed bundle are failed
        as well, repeatedly, so no surviving unit references missing output.
        """
        for name in names:
            try:
                self.compile_bundle(name, session)
            except UnknownBundleError as e:
                session.report_error(e)

        registry = session.registry
        changed = True
        while changed:
            changed = False
            failed = set(registry.failed())
            for unit in list(registry.units().values()):
                broken = [t for t in unit.nested_bundles if t in failed]
                if not broken:
                    continue
                bundle = session.bundles[unit.bundle]
                for method in bundle.methods:
                    if method.bundle is not None and method.bundle in broken:
                        session.report_error(
                            NestedBundleFailedError(
                                method.bundle,
                                bundle_name=bundle.name,
                                method_name=method.name,
                            )
                        )
                registry.fail(unit.bundle)
                logger.warning("bundle_failed", bundle=unit.bundle, reason="nested")
                changed = True

    def compile_bundle(self, name: str, session: GenerationSession) -> GeneratedBundle | None:
        """Compile one bundle (and, recursively, the bundles it nests).

        A bundle that is already in progress or done in the session's
        registry is referenced, never recompiled.

        Args:
            name: Bundle type name.
            session: Generation session of the bundle's graph.

        Returns:
            The generated unit, or None if the bundle failed or is still in
            progress further up the stack.

        Raises:
            UnknownBundleError: If no bundle has that name.
            DeploymentError: If an artifact cannot be written.
        """
        registry = session.registry
        state = registry.state(name)
        if state is not None:
            return registry.get(name)

        bundle = session.bundles.get(name)
        if bundle is None:
            raise UnknownBundleError(name)

        registry.begin(name)
        context = ResourceContext(session, bundle)
        errors: list[BundleError] = []

        def record(error: BundleError, method: MethodDescriptor | None = None) -> None:
            error.attribute(bundle.name, method.name if method is not None else None)
            session.report_error(error)
            errors.append(error)

        # ResolvingMethods
        resolved: dict[str, tuple[AssetGenerator, list[ResourceHandle]]] = {}
        for method in bundle.methods:
            if method.is_nested:
                continue
            try:
                generator = self._generator_for(method)
                handles = session.locator.locate(bundle, method)
                generator.prepare(method, handles, context)
            except BundleError as e:
                record(e, method)
                continue
            resolved[method.name] = (generator, handles)

        # Dispatching
        nested = [m for m in bundle.methods if m.is_nested]
        for method in nested:
            try:
                context.accessors[method.name] = self._nested_accessor(method, session)
            except BundleError as e:
                record(e, method)

        ordered = [m for m in bundle.methods if m.name in resolved]
        ordered.sort(key=lambda m: m.category is AssetCategory.STYLE)
        for method in ordered:
            generator, handles = resolved[method.name]
            try:
                context.accessors[method.name] = generator.generate(method, handles, context)
            except BundleError as e:
                record(e, method)

        if errors:
            registry.fail(name)
            logger.warning("bundle_failed", bundle=name, errors=len(errors))
            return None

        # Assembling
        accessors = [context.accessors[m.name] for m in bundle.methods]
        unit = GeneratedBundle(
            bundle=bundle.name,
            module_name=bundle.module_name,
            class_name=bundle.class_name,
            source=render_bundle(bundle, accessors),
            accessors=tuple(accessors),
            nested_bundles=tuple(dict.fromkeys(bundle.nested_targets())),
        )
        registry.complete(unit)
        logger.info(
            "bundle_compiled",
            bundle=name,
            accessors=len(accessors),
            source_hash=unit.source_hash[:12],
        )
        return unit

    def _nested_accessor(
        self, method: MethodDescriptor, session: GenerationSession
    ) -> GeneratedAccessor:
        target = method.bundle
        assert target is not None

        if target not in session.bundles:
            raise UnknownBundleError(target)

        self.compile_bundle(target, session)
        if session.registry.state(target) is RegistryState.FAILED:
            raise NestedBundleFailedError(target)

        return GeneratedAccessor(
            method=method.name,
            category=AssetCategory.BUNDLE,
            nested_bundle=target,
        )

    def _generator_for(self, method: MethodDescriptor) -> AssetGenerator:
        if method.generator is not None:
            try:
                generator = load_generator(method.generator)
            except (ImportError, AttributeError, TypeError) as e:
                raise UnsupportedCategoryError(
                    f"Generator '{method.generator}' cannot be loaded",
                    internal_details=str(e),
                ) from None
        else:
            found = self._instances.get(method.category)
            if found is None:
                raise UnsupportedCategoryError(
                    f"No generator is registered for category '{method.category.value}'"
                )
            generator = found

        if method.plural and not generator.supports_plural:
            raise UnsupportedCategoryError(
                f"{type(generator).__name__} does not accept plural methods"
            )
        return generator


def bundle_graphs(bundles: Sequence[BundleDescriptor]) -> list[list[str]]:
    """Split bundles into independent graphs.

    Two bundles are in the same graph when one nests the other, directly or
    through other bundles. Graphs and their members keep declaration order.

    Example:
        >>> bundle_graphs(manifest.bundles)
        [['Icons', 'Toolbar'], ['Styles']]
    """
    names = [b.name for b in bundles]
    parent = {name: name for name in names}

    def find(name: str) -> str:
        while parent[name] != name:
            parent[name] = parent[parent[name]]
            name = parent[name]
        return name

    for bundle in bundles:
        for target in bundle.nested_targets():
            if target in parent:
                a, b = find(bundle.name), find(target)
                if a != b:
                    parent[max(a, b, key=names.index)] = min(a, b, key=names.index)

    graphs: dict[str, list[str]] = {}
    for name in names:
        graphs.setdefault(find(name), []).append(name)
    return list(graphs.values())
