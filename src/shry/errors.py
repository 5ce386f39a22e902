"""Error formatting utilities for shry.

Provides clean, user-friendly error messages from Pydantic validation errors
and other exceptions.
"""

import yaml
from pydantic import ValidationError

from shry import cli_logger, exit_codes


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic ValidationError into clean, user-friendly message.

    Removes Pydantic-specific URLs and technical jargon, producing a message
    suitable for CLI output.

    Args:
        error: The Pydantic ValidationError to format.

    Returns:
        A clean, human-readable error message.
    """
    messages = []

    for err in error.errors():
        # Field path, e.g. "files.0.dst" or "name"
        loc = ".".join(str(part) for part in err["loc"])
        error_type = err["type"]
        msg = err["msg"]

        if error_type == "missing":
            messages.append(f"'{loc}': field is required")
        elif error_type == "string_type":
            messages.append(f"'{loc}': expected string")
        elif error_type == "list_type":
            messages.append(f"'{loc}': expected list")
        elif error_type in ("dict_type", "model_type"):
            messages.append(f"'{loc}': expected mapping")
        elif error_type == "value_error":
            # Strip Pydantic's "Value error, " prefix from our own validators
            messages.append(f"'{loc}': {msg.removeprefix('Value error, ').lower()}")
        else:
            messages.append(f"'{loc}': {msg.lower()}")

    if len(messages) == 1:
        return messages[0]

    return "; ".join(messages)


def handle_cli_error(error: Exception) -> int:
    """Handle an unhandled exception at the CLI boundary.

    Formats the error into a clean user-friendly message and returns
    an appropriate exit code. This is the last line of defense: it
    prevents raw tracebacks from reaching the user. Commands map the
    errors they expect themselves; the shry error types are repeated
    here so a missed mapping still gets the right exit code.

    Args:
        error: The exception to handle.

    Returns:
        An exit code from exit_codes.
    """
    # Imported here: these modules import this one for format_validation_errors
    from shry.component import ComponentLoadError, DuplicateComponentError
    from shry.component_schema import MissingVariablesError
    from shry.git import AuthenticationRequiredError, GitCommandError
    from shry.registry import ComponentLookupError
    from shry.template import VariableNotDefinedError

    if isinstance(error, ValidationError):
        cli_logger.error(f"Invalid configuration: {format_validation_errors(error)}")
        return exit_codes.CONFIG_INVALID

    if isinstance(error, (ComponentLoadError, DuplicateComponentError)):
        cli_logger.error(f"Invalid registry: {error}")
        return exit_codes.CONFIG_INVALID

    if isinstance(error, ComponentLookupError):
        cli_logger.error(str(error))
        return exit_codes.COMPONENT_NOT_FOUND

    if isinstance(error, (MissingVariablesError, VariableNotDefinedError)):
        cli_logger.error(str(error))
        return exit_codes.VARIABLE_NOT_DEFINED

    if isinstance(error, AuthenticationRequiredError):
        cli_logger.error(f"Authentication required: {error}")
        return exit_codes.AUTH_REQUIRED

    if isinstance(error, GitCommandError):
        cli_logger.error(str(error))
        return exit_codes.GIT_ERROR

    if isinstance(error, OSError):
        if error.filename:
            cli_logger.error(f"{error.strerror}: {error.filename}")
        else:
            cli_logger.error(str(error))
        return exit_codes.GENERAL_ERROR

    if isinstance(error, yaml.YAMLError):
        cli_logger.error(f"Invalid YAML: {error}")
        return exit_codes.CONFIG_INVALID

    cli_logger.error(f"Unexpected error: {error}")
    return exit_codes.GENERAL_ERROR
