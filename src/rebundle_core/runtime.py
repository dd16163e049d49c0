"""Runtime resource types used by generated bundle modules.

Generated modules construct these values once, at import time, and every
accessor returns the same object on every call. They are deliberately
small: the compiler has already done all the work.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class TextResource:
    """Text embedded in the generated module."""

    name: str
    text: str

    def get_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class ExternalTextResource:
    """Text deployed as a static file; fetch it from ``url``."""

    name: str
    url: str


@dataclass(frozen=True)
class DataResource:
    """Binary data reachable at ``url`` (a static path or a data URI)."""

    name: str
    url: str

    def get_url(self) -> str:
        return self.url


@dataclass(frozen=True)
class ImageResource:
    """Image (or a region of an image sheet) reachable at ``url``."""

    name: str
    url: str
    left: int
    top: int
    width: int
    height: int

    def get_url(self) -> str:
        return self.url


@dataclass(frozen=True)
class StyleResource:
    """Style sheet text with sibling references already expanded."""

    name: str
    text: str

    def get_text(self) -> str:
        return self.text


class ResourceBundle:
    """Base class of every generated bundle implementation.

    Attributes:
        bundle_type: Name of the declared bundle type.
        accessor_names: Accessor methods in declaration order.
    """

    bundle_type: ClassVar[str] = ""
    accessor_names: ClassVar[tuple[str, ...]] = ()

    def resources(self) -> dict[str, object]:
        """Return every accessor's value keyed by accessor name."""
        return {name: getattr(self, name)() for name in self.accessor_names}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} bundle_type={self.bundle_type!r}>"
