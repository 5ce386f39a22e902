"""Exit codes for shry CLI commands."""

# Success
SUCCESS = 0

# Errors
GENERAL_ERROR = 1
INVALID_ARGS = 2
PROJECT_NOT_INITIALIZED = 3
COMPONENT_NOT_FOUND = 4
CONFIG_INVALID = 5
VARIABLE_NOT_DEFINED = 6
GIT_ERROR = 7
AUTH_REQUIRED = 8
