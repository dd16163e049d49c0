"""Style sheet accessor generator.

Style sources may reference sibling accessors of the same bundle with
placeholders:

    .logo { background: url(@{logo}); width: @{logo.width}px; }

``@{name}`` expands to the accessor's value (URL for data and images, the
text itself for text accessors); ``@{name.attr}`` expands image geometry
(left, top, width, height). The compiler generates styles after every other
category, so all referenceable accessors exist when placeholders resolve.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from rebundle_core.compiler.generators.base import AssetGenerator, ResourceContext, decode_text
from rebundle_core.compiler.models import GeneratedAccessor, ResourceHandle
from rebundle_core.errors import UnresolvedStyleReferenceError
from rebundle_core.schemas.bundle import AssetCategory

if TYPE_CHECKING:
    from rebundle_core.schemas.bundle import MethodDescriptor

PLACEHOLDER_PATTERN = re.compile(r"@\{([A-Za-z_][A-Za-z0-9_]*)(?:\.([A-Za-z_]+))?\}")

# Accessors that cannot be expanded into style text
_NOT_REFERENCEABLE = frozenset({AssetCategory.STYLE, AssetCategory.BUNDLE})


class StyleGenerator(AssetGenerator):
    """Generate StyleResource accessors; plural sources are concatenated."""

    category = AssetCategory.STYLE
    supports_plural = True

    def generate(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> GeneratedAccessor:
        source = "\n".join(decode_text(h, context, method) for h in handles)
        used: list[str] = []

        def substitute(match: re.Match[str]) -> str:
            name, attr = match.group(1), match.group(2)
            accessor = context.accessors.get(name)
            reference = f"{name}.{attr}" if attr else name
            if accessor is None or accessor.category in _NOT_REFERENCEABLE:
                raise UnresolvedStyleReferenceError(
                    reference, bundle_name=context.bundle.name, method_name=method.name
                )
            value = accessor.attributes.get(attr) if attr else accessor.value
            if value is None:
                raise UnresolvedStyleReferenceError(
                    reference, bundle_name=context.bundle.name, method_name=method.name
                )
            for fingerprint in accessor.artifacts:
                if fingerprint not in used:
                    used.append(fingerprint)
            return value

        text = PLACEHOLDER_PATTERN.sub(substitute, source)

        return GeneratedAccessor(
            method=method.name,
            category=self.category,
            runtime_type="StyleResource",
            expression=f"StyleResource({method.name!r}, {text!r})",
            value=text,
            artifacts=tuple(used),
        )
