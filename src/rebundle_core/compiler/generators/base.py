"""Abstract asset generator and per-bundle resource context.

Every accessor category (text, data, image, style) is handled by one
AssetGenerator. Generators are stateless and shared between threads; any
state that spans the methods of one bundle (e.g. an image sheet) lives in
the ResourceContext the compiler creates for that bundle.

Lifecycle per bundle:
1. ``prepare()`` is called for every method, in declaration order
2. ``generate()`` is called for every method and returns a GeneratedAccessor

To add a new category generator:
1. Subclass AssetGenerator
2. Set ``category`` and implement ``generate()``
3. Register it in GENERATORS in generators/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from rebundle_core.compiler.models import (
    DeployedArtifact,
    DeploymentPolicy,
    GeneratedAccessor,
    ResourceHandle,
    Severity,
)
from rebundle_core.errors import ResourceDecodeError

if TYPE_CHECKING:
    from rebundle_core.compiler.session import GenerationSession
    from rebundle_core.schemas.bundle import AssetCategory, BundleDescriptor, MethodDescriptor


class ResourceContext:
    """Per-bundle view of the session handed to generators.

    Attributes:
        session: The GenerationSession compiling this bundle.
        bundle: The bundle being compiled.
        accessors: Accessors generated so far, keyed by method name.
        state: Scratch space for generators, keyed by generator-chosen names.
    """

    def __init__(self, session: GenerationSession, bundle: BundleDescriptor) -> None:
        self.session = session
        self.bundle = bundle
        self.accessors: dict[str, GeneratedAccessor] = {}
        self.state: dict[str, Any] = {}

    def get_property(self, name: str, method: MethodDescriptor) -> Any:
        """Resolve a property, attributing failures to this bundle and method."""
        return self.session.get_property(name, bundle=self.bundle.name, method=method.name)

    def deploy(
        self,
        handle: ResourceHandle,
        method: MethodDescriptor,
        *,
        policy: DeploymentPolicy | None = None,
    ) -> DeployedArtifact:
        """Deploy a resource through the build's DeploymentContext.

        A WARN diagnostic is recorded when the content was already deployed
        under a different policy than the one requested.
        """
        deployment = self.session.deployment
        requested = policy or deployment.policy
        artifact = deployment.deploy(handle, policy=requested)
        if artifact.policy is not requested:
            self.report(
                Severity.WARN,
                f"{handle.name} was already deployed as {artifact.policy.value}; "
                f"reusing it instead of deploying {requested.value}",
                method,
                code="deployment-policy-mismatch",
            )
        return artifact

    def report(
        self,
        severity: Severity,
        message: str,
        method: MethodDescriptor | None = None,
        *,
        code: str | None = None,
    ) -> None:
        """Record a diagnostic attributed to this bundle (and method)."""
        self.session.report(
            severity,
            message,
            bundle=self.bundle.name,
            method=method.name if method is not None else None,
            code=code,
        )


class AssetGenerator(ABC):
    """Abstract base for all asset generators.

    Attributes:
        category: The asset category this generator handles.
        supports_plural: Whether the generator accepts several resources.
    """

    category: ClassVar[AssetCategory]
    supports_plural: ClassVar[bool] = False

    def prepare(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> None:
        """Inspect a method before any accessor of the bundle is generated."""

    @abstractmethod
    def generate(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> GeneratedAccessor:
        """Produce the accessor for one method.

        Args:
            method: Accessor method being generated.
            handles: Resources located for the method.
            context: Per-bundle resource context.

        Returns:
            The generated accessor.

        Raises:
            BundleError: On any method-scoped failure.
        """


def decode_text(handle: ResourceHandle, context: ResourceContext, method: MethodDescriptor) -> str:
    """Decode a resource as UTF-8 text.

    Raises:
        ResourceDecodeError: If the bytes are not valid UTF-8.
    """
    try:
        return handle.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ResourceDecodeError(
            f"{handle.name} is not valid UTF-8 text",
            bundle_name=context.bundle.name,
            method_name=method.name,
            internal_details=str(e),
        ) from None
