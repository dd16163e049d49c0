"""Binary data accessor generator.

Binary content is never written into generated source by this generator:
it always goes through the DeploymentContext, which either writes a hashed
static file or produces an inline data URI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rebundle_core.compiler.generators.base import AssetGenerator, ResourceContext
from rebundle_core.compiler.models import GeneratedAccessor, ResourceHandle
from rebundle_core.schemas.bundle import AssetCategory

if TYPE_CHECKING:
    from rebundle_core.schemas.bundle import MethodDescriptor


class DataGenerator(AssetGenerator):
    category = AssetCategory.DATA

    def generate(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> GeneratedAccessor:
        artifact = context.deploy(handles[0], method)
        return GeneratedAccessor(
            method=method.name,
            category=self.category,
            runtime_type="DataResource",
            expression=f"DataResource({method.name!r}, {artifact.reference!r})",
            value=artifact.reference,
            artifacts=(artifact.fingerprint,),
        )
