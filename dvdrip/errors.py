"""
dvdrip Error Handling

Structured error categories for the rip workflows. Fatal conditions are raised
as WorkflowError carrying a RipError; degraded conditions are only logged.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict


class ErrorCategory(Enum):
    """High-level error categories"""
    INPUT = "input"          # Bad arguments (season-disc, missing name/category)
    STORAGE = "storage"      # Storage root or pool problems
    DISC = "disc"            # Disc unreadable, no titles
    TOOL = "tool"            # External tool missing or failed
    PROCESS = "process"      # Job runner problems
    UNKNOWN = "unknown"


class ErrorCode(Enum):
    """Specific error codes, grouped by hundreds per category"""
    # Input errors (1xx)
    INVALID_SEASON_DISC = 101
    NAME_NOT_FOUND = 102
    CATEGORY_MISSING = 103
    INVALID_CATEGORY = 104
    INVALID_NAME = 105

    # Storage errors (2xx)
    STORAGE_MISSING = 201
    STORAGE_NOT_DIRECTORY = 202
    STORAGE_NOT_WRITABLE = 203
    NO_CANDIDATES = 204
    NO_ACCESSIBLE_DISK = 205
    INSUFFICIENT_SPACE = 206
    OUTPUT_DIR_FAILED = 207

    # Disc errors (3xx)
    DISC_READ_ERROR = 301
    DRIVE_ERROR = 302
    COPY_PROTECTION = 303

    # Tool errors (4xx)
    EXTRACTION_FAILED = 401
    TOOL_NOT_FOUND = 402
    INVALID_ARGUMENT = 403

    # Process errors (5xx)
    JOB_CANCELLED = 501

    UNKNOWN = 999


@dataclass
class RipError:
    """Structured error information"""
    category: ErrorCategory
    code: ErrorCode
    message: str
    details: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'category': self.category.value,
            'code': self.code.value,
            'message': self.message,
            'details': self.details,
            'suggestion': self.suggestion
        }


class WorkflowError(Exception):
    """A fatal condition that aborts the current rip workflow"""

    def __init__(self, code: ErrorCode, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.error = RipError(
            category=_code_to_category(code),
            code=code,
            message=message,
            details=details,
            suggestion=_get_suggestion(code)
        )

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class StorageError(WorkflowError):
    """Storage target could not be resolved"""


# MakeMKV return code mapping
MAKEMKV_ERROR_MAP = {
    0: None,  # Success
    1: (ErrorCode.EXTRACTION_FAILED, "General MakeMKV error"),
    2: (ErrorCode.INVALID_ARGUMENT, "Invalid argument"),
    12: (ErrorCode.DISC_READ_ERROR, "Disc read error - disc may be damaged or dirty"),
    13: (ErrorCode.DRIVE_ERROR, "Drive hardware error"),
    15: (ErrorCode.COPY_PROTECTION, "Copy protection decryption failed"),
    127: (ErrorCode.TOOL_NOT_FOUND, "makemkvcon not found"),
}


def classify_makemkv_return_code(return_code: int) -> Optional[RipError]:
    """
    Classify MakeMKV return code into structured error.
    """
    if return_code == 0:
        return None

    error_info = MAKEMKV_ERROR_MAP.get(return_code)
    if error_info:
        code, message = error_info
        return RipError(
            category=_code_to_category(code),
            code=code,
            message=message,
            details=f"MakeMKV exit code: {return_code}",
            suggestion=_get_suggestion(code)
        )

    return RipError(
        category=ErrorCategory.TOOL,
        code=ErrorCode.EXTRACTION_FAILED,
        message=f"MakeMKV failed with code {return_code}",
        details=f"Exit code: {return_code}",
        suggestion=_get_suggestion(ErrorCode.EXTRACTION_FAILED)
    )


def _code_to_category(code: ErrorCode) -> ErrorCategory:
    """Map error code to category"""
    code_value = code.value
    if 100 <= code_value < 200:
        return ErrorCategory.INPUT
    elif 200 <= code_value < 300:
        return ErrorCategory.STORAGE
    elif 300 <= code_value < 400:
        return ErrorCategory.DISC
    elif 400 <= code_value < 500:
        return ErrorCategory.TOOL
    elif 500 <= code_value < 600:
        return ErrorCategory.PROCESS
    return ErrorCategory.UNKNOWN


def _get_suggestion(code: ErrorCode) -> Optional[str]:
    """Get actionable suggestion for error code"""
    suggestions = {
        ErrorCode.INVALID_SEASON_DISC: "Use season-disc format, e.g. '1-2' for season 1, disc 2",
        ErrorCode.NAME_NOT_FOUND: "Provide the movie name with -m",
        ErrorCode.CATEGORY_MISSING: "Provide a target category with -c",
        ErrorCode.INVALID_CATEGORY: "Use a single folder name for the category, without '/' or '..'",
        ErrorCode.INVALID_NAME: "Provide a movie name with letters or digits using -m",
        ErrorCode.STORAGE_MISSING: "Create the storage path or edit paths.storage in ~/.rip/settings.yaml",
        ErrorCode.STORAGE_NOT_DIRECTORY: "Point paths.storage at a directory",
        ErrorCode.STORAGE_NOT_WRITABLE: "Check permissions on the storage path",
        ErrorCode.NO_CANDIDATES: "Check the pool definition in fstab",
        ErrorCode.NO_ACCESSIBLE_DISK: "Check that the pool member disks are mounted",
        ErrorCode.INSUFFICIENT_SPACE: "Free up space on the pool before ripping",
        ErrorCode.DISC_READ_ERROR: "Disc may be dirty or damaged. Try cleaning.",
        ErrorCode.DRIVE_ERROR: "Eject and re-insert the disc, or check the drive",
        ErrorCode.COPY_PROTECTION: "Update MakeMKV with 'rip update'",
        ErrorCode.EXTRACTION_FAILED: "Check your disc and try again",
        ErrorCode.TOOL_NOT_FOUND: "Install MakeMKV or run 'rip update'",
    }
    return suggestions.get(code)


def format_error_message(error: RipError) -> str:
    """Format error for display in logs/UI"""
    msg = f"[{error.category.value.upper()}] {error.message}"
    if error.suggestion:
        msg += f" - {error.suggestion}"
    return msg
