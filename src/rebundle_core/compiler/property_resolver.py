"""Property resolver for rebundle.

This module resolves named configuration properties that parameterize
generation decisions (deployment policy, URL prefix, image composition).

Resolution order:
    1. Explicit override (e.g. ``rebundle compile -D name=value``)
    2. Environment variable ``REBUNDLE_<NAME>`` (upper snake case)
    3. The manifest's static property table
    4. The property's declared default

A supplied value that fails validation is an error; it never falls
through to a lower-priority source.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rebundle_core.errors import MalformedPropertyError, UnresolvedPropertyError

logger = logging.getLogger(__name__)

# Prefix for environment variable overrides
PROPERTY_ENV_PREFIX = "REBUNDLE_"

# Known property names
DEPLOYMENT_PROPERTY = "resources.deployment"
URL_PREFIX_PROPERTY = "resources.url_prefix"
TEXT_THRESHOLD_PROPERTY = "resources.text.externalize_threshold"
IMAGE_COMPOSITION_PROPERTY = "resources.image.composition"
WORKERS_PROPERTY = "resources.compiler.workers"

_TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "off", "0"})


def property_env_var(name: str) -> str:
    """Return the environment variable that overrides a property.

    Example:
        >>> property_env_var("resources.deployment")
        'REBUNDLE_RESOURCES_DEPLOYMENT'
    """
    return PROPERTY_ENV_PREFIX + name.upper().replace(".", "_").replace("-", "_")


@dataclass(frozen=True)
class PropertyDefinition:
    """Declared type/shape of a property.

    Attributes:
        name: Property name.
        kind: One of "string", "int", "bool", "enum".
        choices: Allowed values for enum properties.
        minimum: Lower bound for int properties.
        default: Declared default, or None when the property is required.
    """

    name: str
    kind: str = "string"
    choices: tuple[str, ...] = ()
    minimum: int | None = None
    default: Any = None

    def expected(self) -> str:
        """Human-readable description of accepted values."""
        if self.kind == "enum":
            return "one of " + ", ".join(self.choices)
        if self.kind == "int" and self.minimum is not None:
            return f"an integer >= {self.minimum}"
        if self.kind == "int":
            return "an integer"
        if self.kind == "bool":
            return "a boolean"
        return "a string"

    def parse(self, raw: Any) -> Any:
        """Convert a raw value to this property's type.

        Raises:
            ValueError: If the value does not match the declared shape.
        """
        if self.kind == "int":
            if isinstance(raw, bool):
                raise ValueError(raw)
            value = int(str(raw).strip())
            if self.minimum is not None and value < self.minimum:
                raise ValueError(raw)
            return value
        if self.kind == "bool":
            if isinstance(raw, bool):
                return raw
            text = str(raw).strip().lower()
            if text in _TRUE_VALUES:
                return True
            if text in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if self.kind == "enum":
            text = str(raw).strip().lower()
            if text not in self.choices:
                raise ValueError(raw)
            return text
        return str(raw)


PROPERTY_DEFINITIONS: dict[str, PropertyDefinition] = {
    d.name: d
    for d in (
        PropertyDefinition(
            DEPLOYMENT_PROPERTY, kind="enum", choices=("static", "inline"), default="static"
        ),
        PropertyDefinition(URL_PREFIX_PROPERTY, default=""),
        PropertyDefinition(TEXT_THRESHOLD_PROPERTY, kind="int", minimum=0, default=0),
        PropertyDefinition(
            IMAGE_COMPOSITION_PROPERTY, kind="enum", choices=("none", "sprite"), default="none"
        ),
        PropertyDefinition(WORKERS_PROPERTY, kind="int", minimum=1, default=1),
    )
}


@dataclass
class PropertyResolver:
    """Resolve configuration properties from overrides, environment and table.

    Resolution is a pure lookup: results are memoised so repeated calls
    within one build return identical values. The resolver is safe to share
    between worker threads.

    Attributes:
        table: Static property table from the manifest.
        overrides: Explicit overrides (highest precedence).
        environ: Environment mapping consulted for REBUNDLE_* variables.
        definitions: Declared property shapes.

    Example:
        >>> resolver = PropertyResolver(table={"resources.deployment": "inline"})
        >>> resolver.resolve("resources.deployment")
        'inline'
    """

    table: Mapping[str, Any] = field(default_factory=dict)
    overrides: Mapping[str, str] = field(default_factory=dict)
    environ: Mapping[str, str] | None = None
    definitions: Mapping[str, PropertyDefinition] = field(
        default_factory=lambda: dict(PROPERTY_DEFINITIONS)
    )

    def __post_init__(self) -> None:
        if self.environ is None:
            self.environ = os.environ
        self._resolved: dict[str, Any] = {}
        self._lock = threading.Lock()

    def definition(self, name: str) -> PropertyDefinition:
        """Return the declared definition, or a free-form string definition."""
        return self.definitions.get(name) or PropertyDefinition(name)

    def resolve(self, name: str) -> Any:
        """Resolve a property value.

        Args:
            name: Property name, e.g. "resources.deployment".

        Returns:
            The typed property value.

        Raises:
            MalformedPropertyError: If the winning source supplies an invalid value.
            UnresolvedPropertyError: If no source supplies a value.
        """
        with self._lock:
            if name in self._resolved:
                return self._resolved[name]

        definition = self.definition(name)
        value = self._lookup(definition)

        with self._lock:
            self._resolved.setdefault(name, value)
            return self._resolved[name]

    def _lookup(self, definition: PropertyDefinition) -> Any:
        name = definition.name
        env_var = property_env_var(name)
        assert self.environ is not None

        candidates: list[tuple[str, Any]] = []
        if name in self.overrides:
            candidates.append(("override", self.overrides[name]))
        if env_var in self.environ:
            candidates.append((f"environment variable {env_var}", self.environ[env_var]))
        if name in self.table:
            candidates.append(("property table", self.table[name]))

        if candidates:
            source, raw = candidates[0]
            try:
                value = definition.parse(raw)
            except ValueError:
                raise MalformedPropertyError(
                    name, raw, definition.expected(), source=source
                ) from None
            logger.debug("Resolved property %s=%r from %s", name, value, source)
            return value

        if definition.default is not None:
            logger.debug("Using default for property %s=%r", name, definition.default)
            return definition.default

        raise UnresolvedPropertyError(name)

    def snapshot(self, names: list[str] | None = None) -> dict[str, Any]:
        """Resolve a set of properties at once.

        Args:
            names: Property names to resolve. Defaults to all declared
                properties plus every name in the table and overrides.

        Returns:
            Mapping of name to resolved value, sorted by name.

        Raises:
            PropertyError: If any of the properties fails to resolve.
        """
        if names is None:
            names = sorted(set(self.definitions) | set(self.table) | set(self.overrides))
        return {name: self.resolve(name) for name in sorted(names)}

    def clear_cache(self) -> None:
        """Forget memoised values (use when overrides change in tests)."""
        with self._lock:
            self._resolved.clear()
        logger.debug("Property resolver cache cleared")


def parse_override(assignment: str) -> tuple[str, str]:
    """Parse a ``name=value`` override assignment.

    Raises:
        ValueError: If the assignment has no '=' or an empty name.
    """
    name, sep, value = assignment.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"Expected name=value, got {assignment!r}")
    return name, value
