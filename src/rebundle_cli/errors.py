"""CLI error handling for rebundle-cli.

Wraps rebundle-core exceptions into user-friendly messages with exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click
from pydantic import ValidationError as PydanticValidationError

from rebundle_cli.output import error

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

    from rebundle_core.schemas import BundleManifest

# Exit codes following sysexits.h convention
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Invalid manifest, failed bundles
EXIT_SYSTEM_ERROR = 2  # Missing file, write failure, fatal configuration


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting."""
        error(self.format_message())


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format Pydantic validation error into user-friendly message.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - bundles.0.methods.1.name: String should match pattern..."
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]

    for e in errors:
        loc = ".".join(str(x) for x in e["loc"])
        lines.append(f"  - {loc}: {e['msg']}")

    return "\n".join(lines)


def handle_yaml_error(err: Exception, file_path: str) -> NoReturn:
    """Raise a CLIError for a YAML syntax error, with line information.

    Raises:
        CLIError: Always.
    """
    error_msg = str(err)
    mark = getattr(err, "problem_mark", None)
    if mark is not None:
        problem = getattr(err, "problem", None)
        line, column = mark.line + 1, mark.column + 1
        error_msg = f"YAML syntax error at line {line}, column {column}: {problem}"

    raise CLIError(f"Invalid YAML in {file_path}: {error_msg}")


def handle_validation_error(err: PydanticValidationError, file_path: str) -> NoReturn:
    """Raise a CLIError for a manifest that fails schema validation.

    Raises:
        CLIError: Always.
    """
    raise CLIError(f"Invalid manifest {file_path}:\n{format_pydantic_error(err)}")


def handle_file_not_found(file_path: str) -> NoReturn:
    """Raise a CLIError for a missing manifest.

    Raises:
        CLIError: Always, with the system error exit code.
    """
    raise CLIError(
        f"File not found: {file_path}\n\nUse --file to specify the path to rebundle.yaml.",
        exit_code=EXIT_SYSTEM_ERROR,
    )


def load_manifest(file_path: str) -> BundleManifest:
    """Load a manifest, converting every loading failure into a CLIError.

    Returns:
        The validated BundleManifest.

    Raises:
        CLIError: If the file is missing, is not valid YAML, or fails validation.
    """
    import yaml

    from rebundle_core import BundleManifest, ConfigurationError

    try:
        return BundleManifest.from_yaml(file_path)
    except FileNotFoundError:
        handle_file_not_found(file_path)
    except yaml.YAMLError as e:
        handle_yaml_error(e, file_path)
    except PydanticValidationError as e:
        handle_validation_error(e, file_path)
    except ConfigurationError as e:
        raise CLIError(e.user_message) from None
