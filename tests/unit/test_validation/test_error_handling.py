"""
Unit tests for the validators and error handling helpers.
"""

import logging
from unittest.mock import Mock

import pytest

from sentinel_agent.validation import (
    AuditConflict,
    EntryFileUnreadable,
    ErrorSeverity,
    InjectorError,
    ValidationError,
    handle_cli_error,
    handle_error,
    validate_enum_choice,
    validate_positive_float,
    validate_regex_pattern,
    validate_string_list,
)


@pytest.mark.unit
class TestValidators:
    """Test cases for the generic validators."""

    def test_float_bounds(self):
        assert validate_positive_float(3, min_value=0.0, max_value=5.0) == 3.0
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_float(6.5, max_value=5.0, field_name="monitor.probe_timeout")
        assert exc_info.value.field_name == "monitor.probe_timeout"

    def test_float_rejects_bool(self):
        with pytest.raises(ValidationError):
            validate_positive_float(True)

    def test_enum_choice_case_insensitive(self):
        """Test the canonical spelling is returned."""
        assert validate_enum_choice("warning", ["INFO", "WARNING"], case_sensitive=False) == "WARNING"
        with pytest.raises(ValidationError):
            validate_enum_choice("warning", ["INFO", "WARNING"])

    def test_regex_pattern(self):
        assert validate_regex_pattern("fpm|cgi") == "fpm|cgi"
        with pytest.raises(ValidationError):
            validate_regex_pattern("php[")
        with pytest.raises(ValidationError):
            validate_regex_pattern("")

    def test_string_list(self):
        assert validate_string_list(["a", "b"]) == ["a", "b"]
        with pytest.raises(ValidationError):
            validate_string_list("a")
        with pytest.raises(ValidationError):
            validate_string_list(["a", 1])


@pytest.mark.unit
class TestErrorTypes:
    """Test cases for the exception hierarchy."""

    def test_injector_errors_share_a_base(self):
        error = EntryFileUnreadable("cannot read index.php", path="/srv/app/public/index.php")
        assert isinstance(error, InjectorError)
        assert error.path == "/srv/app/public/index.php"

    def test_audit_conflict_message(self):
        error = AuditConflict("/srv/app")
        assert error.project_path == "/srv/app"
        assert "/srv/app" in str(error)


@pytest.mark.unit
class TestHandleError:
    """Test cases for the logging helpers."""

    def test_reraise(self):
        with pytest.raises(ValueError):
            handle_error(ValueError("bad"), "parsing", logger=Mock(spec=logging.Logger))

    def test_logs_at_severity(self):
        log = Mock(spec=logging.Logger)
        handle_error(OSError("disk"), "writing", severity=ErrorSeverity.WARNING, reraise=False, logger=log)
        log.warning.assert_called_once_with("Error in writing: disk")

    def test_string_severity(self):
        log = Mock(spec=logging.Logger)
        handle_error(OSError("x"), "ctx", severity="INFO", reraise=False, logger=log)
        log.info.assert_called_once()

    def test_cli_error_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ValueError("bad"), "startup", exit_code=3, logger=Mock(spec=logging.Logger))
        assert exc_info.value.code == 3
