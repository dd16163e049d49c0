"""Python source generation for compiled bundles.

Each bundle becomes one module in the generated package:

    # Generated by rebundle from bundle 'Icons'. Do not edit.
    from rebundle_core.runtime import ImageResource, ResourceBundle

    _res_logo = ImageResource('logo', '/static/9f86d0...png', 0, 0, 16, 16)

    class IconsImpl(ResourceBundle):
        bundle_type = 'Icons'
        accessor_names = ('logo',)

        def logo(self) -> ImageResource:
            return _res_logo

    INSTANCE = IconsImpl()

Resource values are module constants built once at import time, so every
call of an accessor returns the same object. Nested accessors return the
target module's INSTANCE; the import happens inside the accessor so cyclic
nesting never creates an import cycle.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rebundle_core.schemas.bundle import AssetCategory, module_name_for

if TYPE_CHECKING:
    from rebundle_core.compiler.models import BuildResult, GeneratedAccessor
    from rebundle_core.schemas.bundle import BundleDescriptor

logger = logging.getLogger(__name__)

RUNTIME_MODULE = "rebundle_core.runtime"
BASE_CLASS = "ResourceBundle"
INDENT = "    "


class SourceWriter:
    """Line-oriented source buffer with indentation tracking.

    Example:
        >>> writer = SourceWriter()
        >>> writer.println("def f():")
        >>> writer.indent()
        >>> writer.println("return 1")
        >>> writer.getvalue()
        'def f():\\n    return 1\\n'
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._level = 0

    def indent(self) -> None:
        self._level += 1

    def outdent(self) -> None:
        if self._level == 0:
            raise ValueError("Cannot outdent below column zero")
        self._level -= 1

    def println(self, line: str = "") -> None:
        self._lines.append(f"{INDENT * self._level}{line}" if line else "")

    def getvalue(self) -> str:
        return "\n".join(self._lines) + "\n"


def constant_name(method: str) -> str:
    """Module-level constant holding a method's resource value."""
    return f"_res_{method}"


def render_bundle(bundle: BundleDescriptor, accessors: list[GeneratedAccessor]) -> str:
    """Render the module source for one compiled bundle.

    Args:
        bundle: The compiled bundle.
        accessors: Generated accessors in declaration order.

    Returns:
        Complete, deterministic module source.
    """
    runtime_types = sorted(
        {a.runtime_type for a in accessors if a.runtime_type is not None} | {BASE_CLASS}
    )

    w = SourceWriter()
    w.println(f"# Generated by rebundle from bundle {bundle.name!r}. Do not edit.")
    w.println(f'"""Resource bundle implementation for {bundle.name}."""')
    w.println()
    w.println("from __future__ import annotations")
    w.println()
    w.println(f"from {RUNTIME_MODULE} import {', '.join(runtime_types)}")
    w.println()

    constants = [a for a in accessors if a.category is not AssetCategory.BUNDLE]
    for accessor in constants:
        w.println(f"{constant_name(accessor.method)} = {accessor.expression}")
    if constants:
        w.println()
    w.println()

    w.println(f"class {bundle.class_name}({BASE_CLASS}):")
    w.indent()
    w.println(f'"""Generated implementation of {bundle.name}."""')
    w.println()
    w.println(f"bundle_type = {bundle.name!r}")
    w.println(f"accessor_names = {tuple(a.method for a in accessors)!r}")

    for accessor in accessors:
        w.println()
        if accessor.category is AssetCategory.BUNDLE:
            _render_nested(w, bundle, accessor)
        else:
            w.println(f"def {accessor.method}(self) -> {accessor.runtime_type or 'object'}:")
            w.indent()
            w.println(f"return {constant_name(accessor.method)}")
            w.outdent()

    w.outdent()
    w.println()
    w.println()
    w.println(f"INSTANCE = {bundle.class_name}()")
    return w.getvalue()


def _render_nested(w: SourceWriter, bundle: BundleDescriptor, accessor: GeneratedAccessor) -> None:
    target = accessor.nested_bundle
    if target is None:
        raise ValueError(f"Nested accessor {accessor.method} has no target bundle")

    w.println(f"def {accessor.method}(self) -> {BASE_CLASS}:")
    w.indent()
    if target == bundle.name:
        w.println("return INSTANCE")
    else:
        w.println(f"from .{module_name_for(target)} import INSTANCE as _instance")
        w.println()
        w.println("return _instance")
    w.outdent()


def render_package_init(result: BuildResult, package: str) -> str:
    """Render the generated package's ``__init__.py``."""
    w = SourceWriter()
    w.println("# Generated by rebundle. Do not edit.")
    w.println(f'"""Generated resource bundles ({package})."""')
    w.println()
    w.println("from __future__ import annotations")
    w.println()

    names = sorted(result.bundles)
    for name in names:
        w.println(f"from .{result.bundles[name].module_name} import INSTANCE as {name}")
    if names:
        w.println()
    w.println(f"__all__ = {names!r}")
    return w.getvalue()


def write_bundles(result: BuildResult, output_dir: Path | str, package: str) -> list[Path]:
    """Write generated modules into ``<output_dir>/<package>/``.

    Modules left over from an earlier build of a bundle that failed this
    time are removed, so a failed bundle never has importable output.

    Args:
        result: Build result holding the generated units.
        output_dir: Root output directory.
        package: Generated package name.

    Returns:
        Paths written, ``__init__.py`` last.

    Example:
        >>> result = BundleCompiler().build(manifest, Path("build"))
        >>> write_bundles(result, Path("build"), manifest.generated_package)
    """
    package_dir = Path(output_dir) / package
    package_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for name in sorted(result.bundles):
        unit = result.bundles[name]
        path = package_dir / f"{unit.module_name}.py"
        path.write_text(unit.source, encoding="utf-8")
        written.append(path)

    for name in result.failed:
        stale = package_dir / f"{module_name_for(name)}.py"
        if stale.exists():
            stale.unlink()
            logger.debug("Removed stale module %s", stale)

    init_path = package_dir / "__init__.py"
    init_path.write_text(render_package_init(result, package), encoding="utf-8")
    written.append(init_path)

    logger.info("Wrote %d bundle modules to %s", len(result.bundles), package_dir)
    return written
