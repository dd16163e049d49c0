"""Asset generator registry, keyed by category.

GENERATORS maps each asset category to its generator *class*. The nested
bundle category has no entry: nested accessors are resolved by the
BundleCompiler itself through the session's registry.

Methods may also name a custom generator as ``"package.module:ClassName"``;
load_generator() imports it.
"""

from __future__ import annotations

import importlib

from rebundle_core.compiler.generators.base import AssetGenerator, ResourceContext, decode_text
from rebundle_core.compiler.generators.data import DataGenerator
from rebundle_core.compiler.generators.image import ImageGenerator
from rebundle_core.compiler.generators.style import StyleGenerator
from rebundle_core.compiler.generators.text import TextGenerator
from rebundle_core.schemas.bundle import AssetCategory

GENERATORS: dict[AssetCategory, type[AssetGenerator]] = {
    AssetCategory.TEXT: TextGenerator,
    AssetCategory.DATA: DataGenerator,
    AssetCategory.IMAGE: ImageGenerator,
    AssetCategory.STYLE: StyleGenerator,
}


def load_generator(reference: str) -> AssetGenerator:
    """Import and instantiate a custom generator.

    Args:
        reference: "package.module:ClassName".

    Returns:
        A generator instance.

    Raises:
        ImportError: If the module cannot be imported.
        AttributeError: If the module has no such attribute.
        TypeError: If the attribute is not an AssetGenerator subclass.
    """
    module_name, attr_name = reference.split(":", 1)
    module = importlib.import_module(module_name)
    cls = getattr(module, attr_name)
    if not (isinstance(cls, type) and issubclass(cls, AssetGenerator)):
        raise TypeError(f"{reference} is not an AssetGenerator subclass")
    return cls()


__all__ = [
    "GENERATORS",
    "AssetGenerator",
    "DataGenerator",
    "ImageGenerator",
    "ResourceContext",
    "StyleGenerator",
    "TextGenerator",
    "decode_text",
    "load_generator",
]
