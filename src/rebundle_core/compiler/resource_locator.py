"""Resource locator for rebundle.

Maps an accessor method's source markers to physical resources:
- Package-relative lookup (``<root>/<package>/<marker>``) before
  root-relative lookup (``<root>/<marker>``), for every search root in order
- Glob markers expand to every match, sorted
- Methods without markers fall back to ``<method><ext>`` for the category's
  default extensions
- Cardinality is enforced: singular methods need exactly one match
"""

from __future__ import annotations

import glob
import logging
from pathlib import Path

from rebundle_core.compiler.models import ResourceHandle
from rebundle_core.errors import AmbiguousResourceError, MissingResourceError
from rebundle_core.schemas.bundle import AssetCategory, BundleDescriptor, MethodDescriptor

logger = logging.getLogger(__name__)

# Extensions tried, in order, for methods that declare no source markers
DEFAULT_EXTENSIONS: dict[AssetCategory, tuple[str, ...]] = {
    AssetCategory.TEXT: (".txt",),
    AssetCategory.IMAGE: (".png", ".jpg", ".jpeg", ".gif", ".bmp"),
    AssetCategory.STYLE: (".css",),
}

_GLOB_CHARS = frozenset("*?[")


def _is_glob(marker: str) -> bool:
    return any(c in _GLOB_CHARS for c in marker)


class ResourceLocator:
    """Find the resources a bundle method declares.

    Attributes:
        search_paths: Ordered resource roots.

    Example:
        >>> locator = ResourceLocator([Path("resources")])
        >>> handles = locator.locate(bundle, bundle.get_method("logo"))
        >>> handles[0].name
        'icons/logo.png'
    """

    def __init__(self, search_paths: list[Path]) -> None:
        self.search_paths = [Path(p) for p in search_paths]

    def locate(self, bundle: BundleDescriptor, method: MethodDescriptor) -> list[ResourceHandle]:
        """Resolve a method's resources.

        Args:
            bundle: Bundle declaring the method (supplies the package).
            method: Accessor method to resolve.

        Returns:
            Resource handles. Exactly one for singular methods; one or more in
            declared marker order (duplicates kept) for plural methods.

        Raises:
            MissingResourceError: If nothing matches (or a plural marker is missing).
            AmbiguousResourceError: If a singular method matches more than one file.
        """
        if not method.sources:
            handle = self._find_by_default_extension(bundle, method)
            if handle is None:
                raise MissingResourceError(
                    [], bundle_name=bundle.name, method_name=method.name
                )
            return [handle]

        handles: list[ResourceHandle] = []
        for marker in method.sources:
            matches = self._find_marker(bundle.package, marker)
            if not matches and (method.plural or len(method.sources) == 1):
                raise MissingResourceError(
                    [marker], bundle_name=bundle.name, method_name=method.name
                )
            handles.extend(matches)

        if not method.plural:
            if not handles:
                raise MissingResourceError(
                    list(method.sources), bundle_name=bundle.name, method_name=method.name
                )
            if len(handles) > 1:
                raise AmbiguousResourceError(
                    [h.name for h in handles], bundle_name=bundle.name, method_name=method.name
                )

        logger.debug(
            "Located %d resource(s) for %s.%s", len(handles), bundle.name, method.name
        )
        return handles

    def _candidates(self, package: str, marker: str) -> list[tuple[Path, str]]:
        """Return (root, relative name) pairs in lookup order."""
        marker = marker.lstrip("/")
        candidates: list[tuple[Path, str]] = []
        for root in self.search_paths:
            if package and not marker.startswith(package + "/"):
                candidates.append((root, f"{package}/{marker}"))
            candidates.append((root, marker))
        return candidates

    def _find_marker(self, package: str, marker: str) -> list[ResourceHandle]:
        if _is_glob(marker):
            return self._expand_glob(package, marker)

        for root, relative in self._candidates(package, marker):
            path = root / relative
            if path.is_file():
                return [ResourceHandle.from_path(path.resolve(), relative)]
        return []

    def _expand_glob(self, package: str, marker: str) -> list[ResourceHandle]:
        # First candidate location with any match wins, like plain markers
        for root, relative in self._candidates(package, marker):
            pattern = str(root / relative)
            paths = sorted(Path(p) for p in glob.glob(pattern) if Path(p).is_file())
            if paths:
                return [
                    ResourceHandle.from_path(p.resolve(), p.relative_to(root).as_posix())
                    for p in paths
                ]
        return []

    def _find_by_default_extension(
        self, bundle: BundleDescriptor, method: MethodDescriptor
    ) -> ResourceHandle | None:
        for extension in DEFAULT_EXTENSIONS.get(method.category, ()):
            logger.debug("Trying default extension %s for %s", extension, method.name)
            matches = self._find_marker(bundle.package, method.name + extension)
            if matches:
                return matches[0]
        return None
