"""Placeholder substitution for component paths and file contents.

A placeholder is ``{{name}}`` where the name consists of letters, digits,
hyphens and underscores. Spaces and tabs are allowed around the name,
newlines are not.
"""

import re
from typing import Any

VARIABLE_PATTERN = re.compile(r"\{\{[ \t]*([A-Za-z0-9_-]+)[ \t]*\}\}")

# Whole floats at or above this magnitude keep their exponent form
FLOAT_EXPONENT_THRESHOLD = 1e21


class VariableNotDefinedError(Exception):
    """Raised when a placeholder has no binding."""

    def __init__(self, name: str) -> None:
        """Initialize with the name of the unbound variable."""
        self.name = name
        super().__init__(f"Variable '{name}' not defined")


def find_variables(text: str) -> list[str]:
    """Return the variable names used in text.

    Names are deduplicated and returned in order of first occurrence.
    """
    seen: dict[str, None] = {}
    for match in VARIABLE_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def format_value(value: Any) -> str:
    """Convert a scalar variable value to its textual form.

    Booleans render the way they are written in YAML (``true``/``false``),
    whole floats without a fractional part (``1.0`` becomes ``1``) and null
    as the empty string.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer() and abs(value) < FLOAT_EXPONENT_THRESHOLD:
        return str(int(value))
    return str(value)


def resolve(text: str, variables: dict[str, Any]) -> str:
    """Substitute every placeholder in text from variables.

    Args:
        text: Template text.
        variables: Flat mapping of variable name to scalar value.

    Returns:
        The text with all placeholders replaced. Text without placeholders
        is returned unchanged.

    Raises:
        VariableNotDefinedError: If a placeholder's name is not in variables.
    """
    missing = [name for name in find_variables(text) if name not in variables]
    if missing:
        raise VariableNotDefinedError(missing[0])

    return VARIABLE_PATTERN.sub(lambda m: format_value(variables[m.group(1)]), text)
