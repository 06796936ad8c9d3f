"""
Structured error messages with actionable suggestions.

Provides rich error information for CLI and MCP tool consumers including:
- Error codes for programmatic handling
- Human-readable messages
- The fixed troubleshooting checklist plus situation-specific suggestions
- Debug information for troubleshooting
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """
    Error codes for fatal export failures.

    Recoverable failures (missing dependencies, types that fail to load)
    are reported as collection diagnostics instead.
    """

    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    MODULE_LOAD_FAILED = "MODULE_LOAD_FAILED"
    RUNTIME_UNAVAILABLE = "RUNTIME_UNAVAILABLE"
    OUTPUT_WRITE_FAILED = "OUTPUT_WRITE_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class StructuredError:
    """
    Rich error information with actionable suggestions.

    Attributes:
        error: Error code for programmatic handling
        message: Human-readable error description
        reason: Explanation of why the error occurred
        suggestions: List of actionable steps to resolve the error
        debug_info: Additional debugging information
    """

    error: ErrorCode
    message: str
    reason: str | None = None
    suggestions: list[str] = field(default_factory=list)
    debug_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.error.value,
            "message": self.message,
            "reason": self.reason,
            "suggestions": self.suggestions,
            "debug_info": self.debug_info,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to formatted JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def to_user_message(self) -> str:
        """
        Format error for human-readable display.

        Returns:
            Multi-line string suitable for display to users
        """
        lines = [
            f"Error [{self.error.value}]: {self.message}",
        ]

        if self.reason:
            lines.append(f"Reason: {self.reason}")

        if self.suggestions:
            lines.append("\nPlease make sure that:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.debug_info:
            lines.append("\nDebug information:")
            for key, value in self.debug_info.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)

    def __str__(self) -> str:
        """Return user-friendly message."""
        return self.to_user_message()


class StructuredBaseError(Exception):
    """
    Exception that wraps a StructuredError.

    Allows raising structured errors as exceptions while maintaining
    all error information.
    """

    def __init__(self, structured_error: StructuredError):
        self.structured_error = structured_error
        super().__init__(structured_error.to_user_message())

    @property
    def code(self) -> ErrorCode:
        return self.structured_error.error

    def to_dict(self) -> dict[str, Any]:
        """Get the underlying structured error as a dictionary."""
        return self.structured_error.to_dict()

    def to_json(self, indent: int = 2) -> str:
        """Get the underlying structured error as JSON."""
        return self.structured_error.to_json(indent)


# =============================================================================
# Suggestions
# =============================================================================

TROUBLESHOOTING_CHECKLIST = [
    "The DLL path is correct",
    "All non-system dependency DLLs are in the same directory as the target DLL",
    "System dependencies (such as System.Private.CoreLib) are ignored automatically",
]

RUNTIME_SUGGESTIONS = [
    "Install pythonnet: pip install pythonnet",
    "Install a .NET runtime (https://dotnet.microsoft.com/download) or Mono",
    "Select the runtime with DLL_EXPORTER_RUNTIME=coreclr|netfx|mono",
]


# =============================================================================
# Error Factory Functions
# =============================================================================


def create_module_not_found_error(module_path: str) -> StructuredError:
    """Create error for a primary module path that does not exist."""
    return StructuredError(
        error=ErrorCode.MODULE_NOT_FOUND,
        message=f"DLL file not found: {module_path}",
        reason="The path does not point to an existing file",
        suggestions=list(TROUBLESHOOTING_CHECKLIST),
        debug_info={"module_path": module_path},
    )


def create_module_load_failed_error(
    module_path: str,
    reason: str,
    additional_info: dict[str, Any] | None = None,
) -> StructuredError:
    """Create error for a primary module that exists but cannot be loaded."""
    debug_info: dict[str, Any] = {"module_path": module_path}
    if additional_info:
        debug_info.update(additional_info)

    return StructuredError(
        error=ErrorCode.MODULE_LOAD_FAILED,
        message=f"Failed to load assembly: {module_path}",
        reason=reason,
        suggestions=list(TROUBLESHOOTING_CHECKLIST),
        debug_info=debug_info,
    )


def create_runtime_unavailable_error(reason: str) -> StructuredError:
    """Create error for a missing pythonnet package or .NET runtime."""
    return StructuredError(
        error=ErrorCode.RUNTIME_UNAVAILABLE,
        message="The .NET runtime could not be started",
        reason=reason,
        suggestions=RUNTIME_SUGGESTIONS + TROUBLESHOOTING_CHECKLIST,
    )


def create_output_write_failed_error(output_path: str, reason: str) -> StructuredError:
    """Create error for an export file that cannot be written."""
    return StructuredError(
        error=ErrorCode.OUTPUT_WRITE_FAILED,
        message=f"Failed to write export to {output_path}",
        reason=reason,
        suggestions=[
            "Check that the output directory exists and is writable",
            "Choose a different output path, or omit it to print to stdout",
        ],
        debug_info={"output_path": output_path},
    )


def create_unknown_error(operation: str, exc: BaseException) -> StructuredError:
    """Wrap an unexpected exception."""
    return StructuredError(
        error=ErrorCode.UNKNOWN_ERROR,
        message=f"Unexpected error during {operation}",
        reason=str(exc) or type(exc).__name__,
        suggestions=list(TROUBLESHOOTING_CHECKLIST),
        debug_info={"exception_type": type(exc).__name__},
    )


def to_structured_error(exc: BaseException, operation: str = "export") -> StructuredError:
    """
    Map any exception raised by an export run to a StructuredError.

    Args:
        exc: The exception
        operation: The operation that was being performed

    Returns:
        The wrapped structured error, or an UNKNOWN_ERROR wrapper
    """
    if isinstance(exc, StructuredBaseError):
        return exc.structured_error
    logger.debug(f"Wrapping unstructured {type(exc).__name__} from {operation}")
    return create_unknown_error(operation, exc)
