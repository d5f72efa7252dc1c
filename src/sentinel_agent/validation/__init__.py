"""
Validation and error handling for the sentinel_agent package.

This module provides input validation, the agent's exception types and
error handling helpers with consistent error reporting.
"""

from .exceptions import (
    AuditConflict,
    EntryFileUnreadable,
    ErrorSeverity,
    InjectorError,
    RouteListError,
    ValidationError,
    WriteFailed,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
)

from .validators import (
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
)

__all__ = [
    # Errors
    "AuditConflict",
    "EntryFileUnreadable",
    "ErrorSeverity",
    "InjectorError",
    "RouteListError",
    "ValidationError",
    "WriteFailed",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_file_error",
    # Validators
    "validate_enum_choice",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_regex_pattern",
    "validate_string_list",
]
