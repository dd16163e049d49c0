"""Deployment policy selection for rebundle.

DeploymentContext is built once per build from configuration and forwards
every deployment request to the shared ContentCache with its own policy.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from rebundle_core.compiler.content_cache import ContentCache
from rebundle_core.compiler.models import DeployedArtifact, DeploymentPolicy, ResourceHandle
from rebundle_core.compiler.property_resolver import (
    DEPLOYMENT_PROPERTY,
    URL_PREFIX_PROPERTY,
    PropertyResolver,
)

logger = structlog.get_logger(__name__)


class DeploymentContext:
    """Select between static (hashed file) and inline (data URI) deployment.

    Attributes:
        policy: The build's deployment policy.
        cache: Shared content cache.

    Example:
        >>> context = DeploymentContext(DeploymentPolicy.INLINE, ContentCache())
        >>> context.deploy(handle).reference[:5]
        'data:'
    """

    def __init__(self, policy: DeploymentPolicy, cache: ContentCache) -> None:
        self.policy = policy
        self.cache = cache

    @classmethod
    def from_properties(
        cls,
        resolver: PropertyResolver,
        cache: ContentCache | None = None,
        output_dir: Path | None = None,
    ) -> DeploymentContext:
        """Build a context from resolved properties.

        Args:
            resolver: Property resolver for the build.
            cache: Existing cache to share. A new one is created if omitted.
            output_dir: Static artifact directory for a newly created cache.

        Raises:
            PropertyError: If the deployment properties are malformed.
        """
        policy = DeploymentPolicy(resolver.resolve(DEPLOYMENT_PROPERTY))
        if cache is None:
            cache = ContentCache(
                output_dir=output_dir,
                url_prefix=resolver.resolve(URL_PREFIX_PROPERTY),
            )
        return cls(policy, cache)

    def deploy(
        self,
        handle: ResourceHandle,
        *,
        policy: DeploymentPolicy | None = None,
    ) -> DeployedArtifact:
        """Deploy a resource through the shared cache.

        Args:
            handle: Resource to deploy.
            policy: Override for callers that must force a policy (text
                externalization). Defaults to the context's policy.

        Returns:
            The canonical artifact for the content. Its policy may differ
            from the one requested if the content was deployed earlier.
        """
        requested = policy or self.policy
        artifact = self.cache.get_or_deploy(handle, requested)
        if artifact.policy is not requested:
            logger.warning(
                "deployment_policy_mismatch",
                fingerprint=artifact.fingerprint,
                requested=requested.value,
                existing=artifact.policy.value,
                source=handle.name,
            )
        return artifact
