"""Bundle and method descriptor models for rebundle.

This module defines the declarative description of a resource bundle:
- AssetCategory: Enum of accessor return categories
- MethodDescriptor: One accessor method (name, category, source markers)
- BundleDescriptor: A named, ordered group of accessor methods

Descriptors are parsed once per compilation and are frozen afterwards.
"""

from __future__ import annotations

import keyword
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

# Accessor and bundle names become Python identifiers in generated source
IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"

# Custom generator reference: "package.module:ClassName"
GENERATOR_REF_PATTERN = r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$"

# Attributes of rebundle_core.runtime.ResourceBundle
RESERVED_METHOD_NAMES = frozenset({"resources", "bundle_type", "accessor_names"})

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def module_name_for(bundle_name: str) -> str:
    """Return the generated module name for a bundle type.

    Example:
        >>> module_name_for("NestedBundle")
        'nested_bundle'
    """
    name = _CAMEL_BOUNDARY.sub("_", bundle_name).lower()
    if keyword.iskeyword(name):
        name += "_bundle"
    return name


class AssetCategory(str, Enum):
    """Kind of resource an accessor method returns.

    Values:
        TEXT: Character data embedded (or externalized) as text.
        DATA: Binary blob, always deployed.
        IMAGE: Image, optionally composed into a sprite sheet.
        STYLE: Style sheet that may reference sibling accessors.
        BUNDLE: Nested bundle of another (or the same) type.
    """

    TEXT = "text"
    DATA = "data"
    IMAGE = "image"
    STYLE = "style"
    BUNDLE = "bundle"


# Categories whose generators concatenate multiple sources
PLURAL_CATEGORIES = frozenset({AssetCategory.TEXT, AssetCategory.STYLE})


class MethodDescriptor(BaseModel):
    """Accessor method declared on a bundle.

    Attributes:
        name: Accessor name (Python identifier, not a keyword).
        category: Declared asset category.
        sources: Source-path markers, resolved by the ResourceLocator.
        plural: Whether the method accepts several resources.
        bundle: Nested bundle type (only for the bundle category).
        generator: Optional custom generator "module:Class" reference.

    Example:
        >>> MethodDescriptor(name="logo", category="image", sources=["logo.png"])
        >>> MethodDescriptor(name="nested", category="bundle", bundle="Icons")
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(
        ...,
        pattern=IDENTIFIER_PATTERN,
        description="Accessor method name",
    )
    category: AssetCategory = Field(
        ...,
        description="Declared asset category",
    )
    sources: tuple[str, ...] = Field(
        default=(),
        description="Source-path markers (file names or glob patterns)",
    )
    plural: bool = Field(
        default=False,
        description="Accept more than one resource (text and style only)",
    )
    bundle: str | None = Field(
        default=None,
        pattern=IDENTIFIER_PATTERN,
        description="Nested bundle type for the bundle category",
    )
    generator: str | None = Field(
        default=None,
        pattern=GENERATOR_REF_PATTERN,
        description="Custom generator reference 'module:Class'",
    )

    @field_validator("name")
    @classmethod
    def _not_keyword(cls, value: str) -> str:
        if keyword.iskeyword(value):
            raise ValueError(f"'{value}' is a reserved word")
        if value in RESERVED_METHOD_NAMES or value.startswith("__"):
            raise ValueError(f"'{value}' is reserved by the generated bundle class")
        return value

    @model_validator(mode="after")
    def _check_category_shape(self) -> Self:
        if self.category is AssetCategory.BUNDLE:
            if self.sources:
                raise ValueError("bundle methods must not declare sources")
            if self.bundle is None:
                raise ValueError("bundle methods must name a bundle type")
            if self.plural:
                raise ValueError("bundle methods cannot be plural")
        else:
            if self.bundle is not None:
                raise ValueError(
                    f"'bundle' is only valid for bundle methods, not {self.category.value}"
                )
            if self.plural and self.category not in PLURAL_CATEGORIES and self.generator is None:
                raise ValueError(f"{self.category.value} methods cannot be plural")
        return self

    @property
    def is_nested(self) -> bool:
        """Return True for nested-bundle accessors."""
        return self.category is AssetCategory.BUNDLE


class BundleDescriptor(BaseModel):
    """Declared resource bundle.

    Attributes:
        name: Unique bundle type name.
        package: Directory prefix used for package-relative resource lookup.
        methods: Ordered accessor methods.

    Example:
        >>> BundleDescriptor(
        ...     name="Icons",
        ...     methods=[MethodDescriptor(name="logo", category="image")],
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(
        ...,
        pattern=IDENTIFIER_PATTERN,
        description="Unique bundle type name",
    )
    package: str = Field(
        default="",
        description="Package directory for package-relative lookup",
    )
    methods: tuple[MethodDescriptor, ...] = Field(
        default=(),
        description="Accessor methods in declaration order",
    )

    @field_validator("package")
    @classmethod
    def _normalize_package(cls, value: str) -> str:
        # Accept dotted packages as well as paths
        return value.replace(".", "/").strip("/")

    @field_validator("methods")
    @classmethod
    def _unique_method_names(
        cls, value: tuple[MethodDescriptor, ...]
    ) -> tuple[MethodDescriptor, ...]:
        seen: set[str] = set()
        for method in value:
            if method.name in seen:
                raise ValueError(f"duplicate method name '{method.name}'")
            seen.add(method.name)
        return value

    def get_method(self, name: str) -> MethodDescriptor:
        """Get a method by name.

        Raises:
            KeyError: If the bundle declares no such method.
        """
        for method in self.methods:
            if method.name == name:
                return method
        raise KeyError(name)

    @property
    def module_name(self) -> str:
        """Generated module name for this bundle."""
        return module_name_for(self.name)

    @property
    def class_name(self) -> str:
        """Generated implementation class name for this bundle."""
        return f"{self.name}Impl"

    def nested_targets(self) -> list[str]:
        """Return nested bundle types referenced by this bundle, in order."""
        return [m.bundle for m in self.methods if m.bundle is not None]
