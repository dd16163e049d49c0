"""Schema models for rebundle.

- AssetCategory, MethodDescriptor, BundleDescriptor: bundle declarations
- BundleManifest: rebundle.yaml root model
"""

from __future__ import annotations

from rebundle_core.schemas.bundle import (
    IDENTIFIER_PATTERN,
    PLURAL_CATEGORIES,
    RESERVED_METHOD_NAMES,
    AssetCategory,
    BundleDescriptor,
    MethodDescriptor,
    module_name_for,
)
from rebundle_core.schemas.manifest import MANIFEST_FILE_NAME, BundleManifest

__all__ = [
    "AssetCategory",
    "BundleDescriptor",
    "BundleManifest",
    "IDENTIFIER_PATTERN",
    "MANIFEST_FILE_NAME",
    "MethodDescriptor",
    "PLURAL_CATEGORIES",
    "RESERVED_METHOD_NAMES",
    "module_name_for",
]
