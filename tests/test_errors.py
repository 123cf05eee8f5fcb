"""Tests for error classification module"""

import pytest

from dvdrip.errors import (
    ErrorCategory,
    ErrorCode,
    RipError,
    WorkflowError,
    StorageError,
    classify_makemkv_return_code,
    format_error_message,
    _code_to_category,
    _get_suggestion,
)


class TestErrorCodes:
    """Tests for error category and code enums"""

    def test_error_codes_in_ranges(self):
        """Test error codes map to the category of their range"""
        assert _code_to_category(ErrorCode.INVALID_SEASON_DISC) == ErrorCategory.INPUT
        assert _code_to_category(ErrorCode.INSUFFICIENT_SPACE) == ErrorCategory.STORAGE
        assert _code_to_category(ErrorCode.DISC_READ_ERROR) == ErrorCategory.DISC
        assert _code_to_category(ErrorCode.EXTRACTION_FAILED) == ErrorCategory.TOOL
        assert _code_to_category(ErrorCode.JOB_CANCELLED) == ErrorCategory.PROCESS
        assert _code_to_category(ErrorCode.UNKNOWN) == ErrorCategory.UNKNOWN

    def test_suggestions(self):
        assert "1-2" in _get_suggestion(ErrorCode.INVALID_SEASON_DISC)
        assert _get_suggestion(ErrorCode.UNKNOWN) is None


class TestWorkflowError:
    """Tests for the exception carried out of the workflow"""

    def test_carries_structured_error(self):
        err = WorkflowError(ErrorCode.STORAGE_MISSING, "Storage path does not exist: /x", details="stat")
        assert err.code == ErrorCode.STORAGE_MISSING
        assert err.error.category == ErrorCategory.STORAGE
        assert err.error.details == "stat"
        assert err.error.suggestion is not None
        assert "/x" in str(err)

    def test_storage_error_is_workflow_error(self):
        with pytest.raises(WorkflowError):
            raise StorageError(ErrorCode.INSUFFICIENT_SPACE, "full")

    def test_to_dict(self):
        d = WorkflowError(ErrorCode.NAME_NOT_FOUND, "no name").error.to_dict()
        assert d == {
            'category': 'input',
            'code': 102,
            'message': 'no name',
            'details': None,
            'suggestion': "Provide the movie name with -m",
        }


class TestClassifyMakemkvReturnCode:
    """Tests for MakeMKV exit code classification"""

    def test_success(self):
        assert classify_makemkv_return_code(0) is None

    def test_disc_read_error(self):
        error = classify_makemkv_return_code(12)
        assert error.code == ErrorCode.DISC_READ_ERROR
        assert error.category == ErrorCategory.DISC

    def test_missing_binary(self):
        assert classify_makemkv_return_code(127).code == ErrorCode.TOOL_NOT_FOUND

    def test_unknown_code(self):
        error = classify_makemkv_return_code(42)
        assert error.code == ErrorCode.EXTRACTION_FAILED
        assert "42" in error.message


class TestFormatErrorMessage:
    def test_with_suggestion(self):
        error = RipError(category=ErrorCategory.TOOL, code=ErrorCode.EXTRACTION_FAILED,
                         message="MakeMKV failed", suggestion="Check your disc and try again")
        assert format_error_message(error) == "[TOOL] MakeMKV failed - Check your disc and try again"

    def test_without_suggestion(self):
        error = RipError(category=ErrorCategory.UNKNOWN, code=ErrorCode.UNKNOWN, message="odd")
        assert format_error_message(error) == "[UNKNOWN] odd"
