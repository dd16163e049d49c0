"""Custom exception hierarchy for rebundle-core.

This module defines the exception classes used throughout rebundle:
- RebundleError: Base exception for all rebundle errors
- BundleError: Errors attributed to one bundle (and optionally one method)
- PropertyError: Property resolution failures
- DeploymentError: Fatal failure to materialize a deployed artifact
- ConfigurationError: Manifest file loading failures

Bundle-scoped errors never abort a build: the compiler records them as
diagnostics and fails only the offending bundle. DeploymentError is the
exception; once artifacts cannot be written nothing generated can be trusted.

User-facing messages are safe to display; technical details are logged
internally via structlog.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class RebundleError(Exception):
    """Base exception for rebundle.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. This is
            logged internally but never part of the user message.

    Example:
        >>> raise RebundleError(
        ...     "Build failed",
        ...     internal_details="Permission denied: /srv/static/ab12.png"
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details

        if internal_details:
            logger.error(
                "rebundle_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class BundleError(RebundleError):
    """Raised for failures attributable to a bundle or one of its methods.

    Attributes:
        bundle_name: Name of the bundle being compiled (if known).
        method_name: Name of the accessor method that failed (if known).
        code: Short machine-readable identifier used in diagnostics.
    """

    code = "bundle-error"

    def __init__(
        self,
        user_message: str,
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, internal_details=internal_details)
        self.bundle_name = bundle_name
        self.method_name = method_name

    def attribute(self, bundle_name: str, method_name: str | None = None) -> BundleError:
        """Fill in missing bundle/method attribution and return self."""
        if self.bundle_name is None:
            self.bundle_name = bundle_name
        if self.method_name is None:
            self.method_name = method_name
        return self


class MissingResourceError(BundleError):
    """Raised when a method's source markers match no resource.

    Example:
        >>> raise MissingResourceError(["logo.png"], bundle_name="Icons", method_name="logo")
        # User sees: "No resource found for logo.png"
    """

    code = "missing-resource"

    def __init__(
        self,
        markers: list[str],
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        shown = ", ".join(markers) if markers else "default extensions"
        super().__init__(
            f"No resource found for {shown}",
            bundle_name=bundle_name,
            method_name=method_name,
        )
        self.markers = markers


class AmbiguousResourceError(BundleError):
    """Raised when a singular method matches more than one resource."""

    code = "ambiguous-resource"

    def __init__(
        self,
        matches: list[str],
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(
            f"Exactly one resource must be specified, found {len(matches)}: {', '.join(matches)}",
            bundle_name=bundle_name,
            method_name=method_name,
        )
        self.matches = matches


class PropertyError(BundleError):
    """Base class for property resolution failures.

    Attributes:
        property_name: The property that failed to resolve.
    """

    code = "property-error"

    def __init__(
        self,
        user_message: str,
        property_name: str,
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(user_message, bundle_name=bundle_name, method_name=method_name)
        self.property_name = property_name


class UnresolvedPropertyError(PropertyError):
    """Raised when no override, table entry or default supplies a property."""

    code = "unresolved-property"

    def __init__(
        self,
        property_name: str,
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(
            f"Property '{property_name}' has no value",
            property_name,
            bundle_name=bundle_name,
            method_name=method_name,
        )


class MalformedPropertyError(PropertyError):
    """Raised when a supplied property value fails validation for its type.

    Attributes:
        value: The rejected raw value.
        source: Where the value came from (override, environment, table).
    """

    code = "malformed-property"

    def __init__(
        self,
        property_name: str,
        value: object,
        expected: str,
        *,
        source: str,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(
            f"Property '{property_name}' from {source} is malformed: "
            f"expected {expected}, got {value!r}",
            property_name,
            bundle_name=bundle_name,
            method_name=method_name,
        )
        self.value = value
        self.source = source


class UnresolvedStyleReferenceError(BundleError):
    """Raised when a style placeholder names no referenceable accessor."""

    code = "unresolved-style-reference"

    def __init__(
        self,
        reference: str,
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(
            f"Style placeholder '@{{{reference}}}' does not name a referenceable accessor",
            bundle_name=bundle_name,
            method_name=method_name,
        )
        self.reference = reference


class UnsupportedCategoryError(BundleError):
    """Raised when a method's category has no matching generator."""

    code = "unsupported-category"


class UnknownBundleError(BundleError):
    """Raised when a nested-bundle method names an undeclared bundle type."""

    code = "unknown-bundle"

    def __init__(
        self,
        target: str,
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(
            f"Nested bundle type '{target}' is not declared",
            bundle_name=bundle_name,
            method_name=method_name,
        )
        self.target = target


class NestedBundleFailedError(BundleError):
    """Raised when a nested bundle referenced by a method failed to compile."""

    code = "nested-bundle-failed"

    def __init__(
        self,
        target: str,
        *,
        bundle_name: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(
            f"Nested bundle '{target}' failed to compile",
            bundle_name=bundle_name,
            method_name=method_name,
        )
        self.target = target


class ResourceDecodeError(BundleError):
    """Raised when a text or style resource is not valid UTF-8."""

    code = "resource-decode"


class InvalidImageError(BundleError):
    """Raised when an image cannot be decoded for sheet composition."""

    code = "invalid-image"


class DeploymentError(RebundleError):
    """Raised when a deployed artifact cannot be written.

    This is fatal to the entire build.

    Attributes:
        path: Target path of the failed write.
    """

    def __init__(self, path: str, *, internal_details: str | None = None) -> None:
        super().__init__(
            f"Cannot deploy artifact to {path}",
            internal_details=internal_details,
        )
        self.path = path


class ConfigurationError(RebundleError):
    """Raised when the bundle manifest file cannot be loaded.

    Attributes:
        file_path: Path to the manifest (if known).
        field_path: Dot-separated path to the invalid field (if known).
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        context_parts: list[str] = []
        if file_path:
            context_parts.append(f"in {file_path}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.file_path = file_path
        self.field_path = field_path
