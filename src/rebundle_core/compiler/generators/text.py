"""Text accessor generator.

Text is embedded directly in generated source as an escaped string
literal. When ``resources.text.externalize_threshold`` is set and the text
is larger than the threshold (in bytes), it is deployed as a static file
instead and the accessor returns an ExternalTextResource. A build without
an output directory cannot externalize, so such text fails its method.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rebundle_core.compiler.generators.base import AssetGenerator, ResourceContext, decode_text
from rebundle_core.compiler.models import DeploymentPolicy, GeneratedAccessor, ResourceHandle
from rebundle_core.compiler.property_resolver import TEXT_THRESHOLD_PROPERTY
from rebundle_core.errors import PropertyError
from rebundle_core.schemas.bundle import AssetCategory

if TYPE_CHECKING:
    from rebundle_core.schemas.bundle import MethodDescriptor


class TextGenerator(AssetGenerator):
    """Generate TextResource accessors; plural sources are concatenated."""

    category = AssetCategory.TEXT
    supports_plural = True

    def generate(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> GeneratedAccessor:
        text = "".join(decode_text(h, context, method) for h in handles)
        size = sum(len(h.content) for h in handles)
        threshold = context.get_property(TEXT_THRESHOLD_PROPERTY, method)

        if threshold and size > threshold:
            if context.session.cache.output_dir is None:
                raise PropertyError(
                    f"Text larger than {threshold} bytes is deployed as a static file, "
                    "but the build has no output directory",
                    TEXT_THRESHOLD_PROPERTY,
                    bundle_name=context.bundle.name,
                    method_name=method.name,
                )
            artifact = context.deploy(
                _combined(handles), method, policy=DeploymentPolicy.STATIC
            )
            return GeneratedAccessor(
                method=method.name,
                category=self.category,
                runtime_type="ExternalTextResource",
                expression=f"ExternalTextResource({method.name!r}, {artifact.reference!r})",
                value=text,
                artifacts=(artifact.fingerprint,),
            )

        return GeneratedAccessor(
            method=method.name,
            category=self.category,
            runtime_type="TextResource",
            expression=f"TextResource({method.name!r}, {text!r})",
            value=text,
        )


def _combined(handles: list[ResourceHandle]) -> ResourceHandle:
    if len(handles) == 1:
        return handles[0]
    first = handles[0]
    return ResourceHandle(
        path=first.path,
        name="+".join(h.name for h in handles),
        content=b"".join(h.content for h in handles),
    )
