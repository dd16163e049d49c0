"""Image accessor generator.

Two modes, selected by ``resources.image.composition``:

- ``none``: every image is deployed on its own; the accessor carries the
  image's own URL and its size.
- ``sprite``: all image methods of a bundle are stacked vertically, in
  declaration order, into one PNG sheet. Byte-identical images share a slot.
  The sheet is deployed once through the cache and each accessor carries the
  sheet URL plus its offset and size. Identical inputs give a byte-identical
  sheet.
"""

from __future__ import annotations

import io
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image

from rebundle_core.compiler.generators.base import AssetGenerator, ResourceContext
from rebundle_core.compiler.models import (
    DeployedArtifact,
    GeneratedAccessor,
    ResourceHandle,
    Severity,
)
from rebundle_core.compiler.property_resolver import IMAGE_COMPOSITION_PROPERTY
from rebundle_core.errors import InvalidImageError
from rebundle_core.schemas.bundle import AssetCategory

if TYPE_CHECKING:
    from rebundle_core.schemas.bundle import MethodDescriptor

SHEET_STATE_KEY = "image.sheet"


@dataclass(frozen=True)
class Placement:
    """Position of one image inside a sheet (or standalone image)."""

    left: int
    top: int
    width: int
    height: int


@dataclass
class ImageSheet:
    """Accumulates a bundle's images and composes them on first use."""

    images: dict[str, Image.Image] = field(default_factory=dict)
    slots: dict[str, str] = field(default_factory=dict)
    placements: dict[str, Placement] = field(default_factory=dict)
    artifact: DeployedArtifact | None = None

    def add(self, method_name: str, fingerprint: str, image: Image.Image) -> None:
        self.slots[method_name] = fingerprint
        self.images.setdefault(fingerprint, image)

    def compose(self) -> bytes:
        """Stack images vertically and return PNG bytes."""
        width = max((img.width for img in self.images.values()), default=0)
        height = sum(img.height for img in self.images.values())
        sheet = Image.new("RGBA", (max(width, 1), max(height, 1)), (0, 0, 0, 0))

        offsets: dict[str, Placement] = {}
        top = 0
        for fingerprint, img in self.images.items():
            sheet.paste(img, (0, top))
            offsets[fingerprint] = Placement(0, top, img.width, img.height)
            top += img.height

        for method_name, fingerprint in self.slots.items():
            self.placements[method_name] = offsets[fingerprint]

        buffer = io.BytesIO()
        sheet.save(buffer, format="PNG")
        return buffer.getvalue()


# Pillow failures that mean "this resource is not a usable image"
IMAGE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


def read_image(content: bytes) -> Image.Image:
    """Decode image bytes into an RGBA Pillow image.

    Raises:
        OSError: If Pillow cannot identify or decode the data.
        ValueError: If the decoded data is unusable.
        PIL.Image.DecompressionBombError: If the image exceeds Pillow's pixel limit.
    """
    with Image.open(io.BytesIO(content)) as img:
        img.load()
        return img.convert("RGBA")


def read_size(content: bytes) -> tuple[int, int]:
    """Return ``(width, height)`` from the image header without decoding pixels.

    Raises:
        OSError: If Pillow cannot identify the data.
        ValueError: If the header is unusable.
        PIL.Image.DecompressionBombError: If the image exceeds Pillow's pixel limit.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", Image.DecompressionBombWarning)
        with Image.open(io.BytesIO(content)) as img:
            return img.size


class ImageGenerator(AssetGenerator):
    """Generate ImageResource accessors, optionally composed into a sheet."""

    category = AssetCategory.IMAGE

    def prepare(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> None:
        if context.get_property(IMAGE_COMPOSITION_PROPERTY, method) != "sprite":
            return

        handle = handles[0]
        try:
            image = read_image(handle.content)
        except IMAGE_ERRORS as e:
            raise InvalidImageError(
                f"{handle.name} cannot be decoded as an image",
                bundle_name=context.bundle.name,
                method_name=method.name,
                internal_details=str(e),
            ) from None

        sheet: ImageSheet = context.state.setdefault(SHEET_STATE_KEY, ImageSheet())
        sheet.add(method.name, handle.fingerprint, image)

    def generate(
        self,
        method: MethodDescriptor,
        handles: list[ResourceHandle],
        context: ResourceContext,
    ) -> GeneratedAccessor:
        if context.get_property(IMAGE_COMPOSITION_PROPERTY, method) == "sprite":
            artifact, placement = self._from_sheet(method, context)
        else:
            artifact, placement = self._standalone(method, handles[0], context)

        return GeneratedAccessor(
            method=method.name,
            category=self.category,
            runtime_type="ImageResource",
            expression=(
                f"ImageResource({method.name!r}, {artifact.reference!r}, "
                f"{placement.left}, {placement.top}, {placement.width}, {placement.height})"
            ),
            value=artifact.reference,
            attributes={
                "left": str(placement.left),
                "top": str(placement.top),
                "width": str(placement.width),
                "height": str(placement.height),
            },
            artifacts=(artifact.fingerprint,),
        )

    def _standalone(
        self,
        method: MethodDescriptor,
        handle: ResourceHandle,
        context: ResourceContext,
    ) -> tuple[DeployedArtifact, Placement]:
        artifact = context.deploy(handle, method)
        try:
            width, height = read_size(handle.content)
            placement = Placement(0, 0, width, height)
        except IMAGE_ERRORS:
            context.report(
                Severity.WARN,
                f"{handle.name} could not be decoded; size is unknown",
                method,
                code="image-size-unknown",
            )
            placement = Placement(0, 0, 0, 0)
        return artifact, placement

    def _from_sheet(
        self,
        method: MethodDescriptor,
        context: ResourceContext,
    ) -> tuple[DeployedArtifact, Placement]:
        sheet: ImageSheet = context.state[SHEET_STATE_KEY]
        if sheet.artifact is None:
            name = f"{context.bundle.name}.sheet.png"
            sheet_handle = ResourceHandle(path=Path(name), name=name, content=sheet.compose())
            sheet.artifact = context.deploy(sheet_handle, method)
        return sheet.artifact, sheet.placements[method.name]
