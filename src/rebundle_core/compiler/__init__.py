"""Compiler module for rebundle.

This module exports the bundle compiler and its collaborators:
- BundleCompiler: Orchestrates per-bundle compilation and whole builds
- PropertyResolver: Resolve configuration properties
- ResourceLocator: Map method source markers to resources
- ContentCache / DeploymentContext: Content-addressed deployment
- GenerationSession / NestedBundleRegistry: Per-graph compilation state
- write_bundles: Write generated modules to disk
- Models: ResourceHandle, DeployedArtifact, Diagnostic, GeneratedBundle, BuildResult
"""

from __future__ import annotations

from rebundle_core.compiler.codegen import SourceWriter, render_bundle, write_bundles
from rebundle_core.compiler.compiler import STATIC_DIR_NAME, BundleCompiler, bundle_graphs
from rebundle_core.compiler.content_cache import CacheStats, ContentCache
from rebundle_core.compiler.deployment import DeploymentContext
from rebundle_core.compiler.models import (
    BuildResult,
    DeployedArtifact,
    DeploymentPolicy,
    Diagnostic,
    GeneratedAccessor,
    GeneratedBundle,
    ResourceHandle,
    Severity,
    compute_fingerprint,
)
from rebundle_core.compiler.property_resolver import (
    DEPLOYMENT_PROPERTY,
    IMAGE_COMPOSITION_PROPERTY,
    PROPERTY_DEFINITIONS,
    TEXT_THRESHOLD_PROPERTY,
    URL_PREFIX_PROPERTY,
    WORKERS_PROPERTY,
    PropertyDefinition,
    PropertyResolver,
    parse_override,
    property_env_var,
)
from rebundle_core.compiler.resource_locator import DEFAULT_EXTENSIONS, ResourceLocator
from rebundle_core.compiler.session import GenerationSession, NestedBundleRegistry, RegistryState

__all__: list[str] = [
    # Compiler
    "BundleCompiler",
    "bundle_graphs",
    "STATIC_DIR_NAME",
    # Properties
    "PropertyResolver",
    "PropertyDefinition",
    "PROPERTY_DEFINITIONS",
    "DEPLOYMENT_PROPERTY",
    "URL_PREFIX_PROPERTY",
    "TEXT_THRESHOLD_PROPERTY",
    "IMAGE_COMPOSITION_PROPERTY",
    "WORKERS_PROPERTY",
    "parse_override",
    "property_env_var",
    # Resources and deployment
    "ResourceLocator",
    "DEFAULT_EXTENSIONS",
    "ContentCache",
    "CacheStats",
    "DeploymentContext",
    # Sessions
    "GenerationSession",
    "NestedBundleRegistry",
    "RegistryState",
    # Code generation
    "SourceWriter",
    "render_bundle",
    "write_bundles",
    # Models
    "BuildResult",
    "DeployedArtifact",
    "DeploymentPolicy",
    "Diagnostic",
    "GeneratedAccessor",
    "GeneratedBundle",
    "ResourceHandle",
    "Severity",
    "compute_fingerprint",
]
