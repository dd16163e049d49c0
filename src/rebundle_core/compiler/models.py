"""Compiler data models for rebundle.

This module defines the values that flow through a build:
- ResourceHandle: A resolved physical resource (path + bytes)
- DeploymentPolicy / DeployedArtifact: Content-addressed deployment results
- Severity / Diagnostic: Structured build messages
- GeneratedAccessor / GeneratedBundle: Generated source fragments and units
- BuildResult: Everything one build produced
"""

from __future__ import annotations

import hashlib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from rebundle_core.schemas.bundle import AssetCategory


def compute_fingerprint(content: bytes) -> str:
    """Return the content fingerprint (SHA-256 hex digest) of raw bytes."""
    return hashlib.sha256(content).hexdigest()


class DeploymentPolicy(str, Enum):
    """How a resource is made available to generated code.

    Values:
        STATIC: Written to the artifact directory under a hashed name;
            the reference is a URL-like path.
        INLINE: Embedded in generated source as a data URI literal.
    """

    STATIC = "static"
    INLINE = "inline"


class ResourceHandle(BaseModel):
    """Resolved physical source for an accessor method.

    Attributes:
        path: Absolute filesystem path of the resource.
        name: Resource name relative to the search root that matched.
        content: Raw bytes of the resource.

    Example:
        >>> handle = ResourceHandle.from_path(Path("res/icons/logo.png"), "icons/logo.png")
        >>> handle.extension
        '.png'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path = Field(..., description="Absolute path of the resource")
    name: str = Field(..., min_length=1, description="Search-root relative name")
    content: bytes = Field(..., repr=False, description="Raw resource bytes")

    @classmethod
    def from_path(cls, path: Path, name: str) -> ResourceHandle:
        """Read a resource file into a handle."""
        return cls(path=path, name=name, content=path.read_bytes())

    @property
    def extension(self) -> str:
        """Lower-cased file extension including the dot, or ''."""
        return self.path.suffix.lower()

    @property
    def fingerprint(self) -> str:
        """Content fingerprint of this handle's bytes."""
        return compute_fingerprint(self.content)


class DeployedArtifact(BaseModel):
    """Materialized output for one unique content fingerprint.

    Owned by the ContentCache; generators only hold references to it.

    Attributes:
        fingerprint: Content fingerprint the artifact was created for.
        policy: Deployment policy used by the first writer.
        reference: URL-like reference (static) or data URI (inline).
        mime_type: MIME type guessed from the first writer's extension.
        file_name: Deployed file name (static only).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fingerprint: str = Field(..., min_length=64, max_length=64)
    policy: DeploymentPolicy
    reference: str = Field(..., min_length=1)
    mime_type: str = Field(default="application/octet-stream")
    file_name: str | None = Field(default=None)


class Severity(str, Enum):
    """Diagnostic severity levels."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Diagnostic(BaseModel):
    """Structured build message attributable to a bundle/method.

    Attributes:
        severity: INFO, WARN or ERROR.
        message: User-facing message.
        bundle: Bundle the message belongs to (if any).
        method: Accessor method the message belongs to (if any).
        code: Short machine-readable identifier.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    severity: Severity
    message: str
    bundle: str | None = None
    method: str | None = None
    code: str | None = None

    def location(self) -> str:
        """Return 'Bundle.method', 'Bundle' or '' for display."""
        if self.bundle and self.method:
            return f"{self.bundle}.{self.method}"
        return self.bundle or ""


class GeneratedAccessor(BaseModel):
    """Generated source for one accessor method.

    Attributes:
        method: Accessor method name.
        category: Asset category that produced it.
        runtime_type: rebundle_core.runtime class the expression constructs.
        expression: Python expression evaluated once at module import.
        value: Resolved reference exposed to style placeholders
            (URL for data/image, text for text, None when not referenceable).
        attributes: Extra referenceable attributes (image geometry).
        artifacts: Fingerprints of the deployed artifacts it uses.
        nested_bundle: Target bundle for nested accessors.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: str
    category: AssetCategory
    runtime_type: str | None = None
    expression: str | None = None
    value: str | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    artifacts: tuple[str, ...] = ()
    nested_bundle: str | None = None


class GeneratedBundle(BaseModel):
    """One generated implementation unit.

    Attributes:
        bundle: Bundle type identity.
        module_name: Python module name of the unit.
        class_name: Generated implementation class name.
        source: Complete module source.
        accessors: Generated accessors in declaration order.
        nested_bundles: Bundle types this unit imports.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    bundle: str
    module_name: str
    class_name: str
    source: str
    accessors: tuple[GeneratedAccessor, ...] = ()
    nested_bundles: tuple[str, ...] = ()

    @property
    def source_hash(self) -> str:
        """SHA-256 of the generated source, for idempotence checks."""
        return compute_fingerprint(self.source.encode("utf-8"))


class BuildResult(BaseModel):
    """Everything produced by one build.

    Attributes:
        bundles: Successfully generated units keyed by bundle name.
        failed: Names of bundles that produced no output.
        diagnostics: All diagnostics in recording order.
        artifacts: Deployed artifacts keyed by fingerprint.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    bundles: dict[str, GeneratedBundle] = Field(default_factory=dict)
    failed: tuple[str, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    artifacts: dict[str, DeployedArtifact] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when every bundle compiled."""
        return not self.failed

    def errors(self) -> list[Diagnostic]:
        """Return ERROR diagnostics."""
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]
