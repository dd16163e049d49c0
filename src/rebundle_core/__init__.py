"""rebundle-core: Resource bundle compiler.

This package provides:
- BundleManifest / BundleDescriptor: Pydantic schemas for rebundle.yaml
- BundleCompiler: Compile bundles into generated Python modules
- ContentCache / DeploymentContext: Content-addressed asset deployment
- ResourceBundle and resource types used by generated code
- JSON Schema export and logging setup
"""

from __future__ import annotations

__version__ = "0.1.0"

# Compiler and output models
from rebundle_core.compiler import (
    BuildResult,
    BundleCompiler,
    ContentCache,
    DeployedArtifact,
    DeploymentContext,
    DeploymentPolicy,
    Diagnostic,
    GeneratedBundle,
    PropertyResolver,
    ResourceLocator,
    Severity,
    write_bundles,
)

# Error types
from rebundle_core.errors import (
    AmbiguousResourceError,
    BundleError,
    ConfigurationError,
    DeploymentError,
    MalformedPropertyError,
    MissingResourceError,
    PropertyError,
    RebundleError,
    UnresolvedPropertyError,
    UnresolvedStyleReferenceError,
    UnsupportedCategoryError,
)

# JSON Schema export
from rebundle_core.export import export_manifest_schema

# Logging
from rebundle_core.observability import configure_logging

# Runtime types
from rebundle_core.runtime import ResourceBundle

# Schema models
from rebundle_core.schemas import (
    AssetCategory,
    BundleDescriptor,
    BundleManifest,
    MethodDescriptor,
)

__all__ = [
    "__version__",
    # Compiler
    "BundleCompiler",
    "BuildResult",
    "GeneratedBundle",
    "PropertyResolver",
    "ResourceLocator",
    "ContentCache",
    "DeploymentContext",
    "DeploymentPolicy",
    "DeployedArtifact",
    "Diagnostic",
    "Severity",
    "write_bundles",
    # Errors
    "RebundleError",
    "BundleError",
    "MissingResourceError",
    "AmbiguousResourceError",
    "PropertyError",
    "UnresolvedPropertyError",
    "MalformedPropertyError",
    "UnresolvedStyleReferenceError",
    "UnsupportedCategoryError",
    "DeploymentError",
    "ConfigurationError",
    # Export and logging
    "export_manifest_schema",
    "configure_logging",
    # Runtime
    "ResourceBundle",
    # Schema models
    "AssetCategory",
    "BundleDescriptor",
    "BundleManifest",
    "MethodDescriptor",
]
