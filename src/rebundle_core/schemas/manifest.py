"""Bundle manifest model for rebundle.yaml.

The manifest is the declarative front end of a build: it lists the bundle
descriptors, the static property table, and the directories searched for
resources.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from rebundle_core.errors import ConfigurationError
from rebundle_core.schemas.bundle import IDENTIFIER_PATTERN, BundleDescriptor

# Standard manifest file name
MANIFEST_FILE_NAME = "rebundle.yaml"

PropertyValue = Union[str, int, float, bool]


class BundleManifest(BaseModel):
    """Root configuration for one rebundle build.

    Attributes:
        version: Manifest format version.
        properties: Static property table (name -> value).
        search_paths: Resource roots, relative to the manifest directory.
        generated_package: Python package name for generated modules.
        bundles: Declared bundles.

    Example:
        >>> manifest = BundleManifest.from_yaml("rebundle.yaml")
        >>> [b.name for b in manifest.bundles]
        ['Icons', 'Styles']
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = Field(
        default="1.0",
        description="Manifest format version",
    )
    properties: dict[str, PropertyValue] = Field(
        default_factory=dict,
        description="Static property table",
    )
    search_paths: tuple[str, ...] = Field(
        default=(".",),
        min_length=1,
        description="Resource search roots relative to the manifest",
    )
    generated_package: str = Field(
        default="bundles",
        pattern=IDENTIFIER_PATTERN,
        description="Package name for generated bundle modules",
    )
    bundles: tuple[BundleDescriptor, ...] = Field(
        default=(),
        description="Declared bundles",
    )

    _base_dir: Path = PrivateAttr(default_factory=Path.cwd)

    @field_validator("bundles")
    @classmethod
    def _unique_bundle_names(
        cls, value: tuple[BundleDescriptor, ...]
    ) -> tuple[BundleDescriptor, ...]:
        seen: set[str] = set()
        modules: dict[str, str] = {}
        for bundle in value:
            if bundle.name in seen:
                raise ValueError(f"duplicate bundle name '{bundle.name}'")
            seen.add(bundle.name)
            other = modules.setdefault(bundle.module_name, bundle.name)
            if other != bundle.name:
                raise ValueError(
                    f"bundles '{other}' and '{bundle.name}' would both generate "
                    f"module '{bundle.module_name}'"
                )
        return value

    @property
    def base_dir(self) -> Path:
        """Directory relative paths in the manifest are resolved against."""
        return self._base_dir

    def with_base_dir(self, base_dir: Path | str) -> BundleManifest:
        """Return this manifest anchored at base_dir."""
        self._base_dir = Path(base_dir)
        return self

    def resolved_search_paths(self) -> list[Path]:
        """Return absolute resource roots in declared order."""
        return [(self._base_dir / p).resolve() for p in self.search_paths]

    def get_bundle(self, name: str) -> BundleDescriptor:
        """Get a bundle descriptor by name.

        Raises:
            KeyError: If no bundle has that name.
        """
        for bundle in self.bundles:
            if bundle.name == name:
                return bundle
        raise KeyError(name)

    def bundle_map(self) -> dict[str, BundleDescriptor]:
        """Return bundles keyed by name, in declaration order."""
        return {b.name: b for b in self.bundles}

    @classmethod
    def from_yaml(cls, path: str | Path) -> BundleManifest:
        """Load and validate a manifest from a YAML file.

        Args:
            path: Path to rebundle.yaml.

        Returns:
            Validated BundleManifest anchored at the file's directory.

        Raises:
            FileNotFoundError: If file doesn't exist.
            yaml.YAMLError: If YAML syntax is invalid.
            pydantic.ValidationError: If schema validation fails.
            ConfigurationError: If the document is not a mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        with path.open("r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Manifest must be a YAML mapping",
                file_path=str(path),
            )

        manifest = cls.model_validate(data)
        return manifest.with_base_dir(path.parent.resolve())
