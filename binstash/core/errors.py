# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for binstash.

All exceptions inherit from BinstashError for consistent error handling.
"""

from typing import Optional


class BinstashError(Exception):
    """Base exception for all binstash errors."""

    def __init__(
        self,
        message: str,
        exit_code: int = 1,
        details: Optional[dict] = None
    ):
        """
        Initialize binstash error.

        Args:
            message: Human-readable error message
            exit_code: Process exit code when the error reaches the CLI
            details: Additional error details
        """
        self.message = message
        self.exit_code = exit_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON output."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": self.exit_code,
            "details": self.details
        }


class NotFoundError(BinstashError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        """
        Initialize not found error.

        Args:
            resource: Type of resource (e.g., "Package", "Release")
            identifier: Resource identifier
            details: Additional error details
        """
        message = f"{resource} not found: {identifier}"
        super().__init__(message, exit_code=2, details=details)
        self.resource = resource
        self.identifier = identifier


class AmbiguousPackageError(BinstashError):
    """Several packages match and no selection could be made."""

    def __init__(
        self,
        query: str,
        candidates: Optional[list] = None,
        kind: str = "packages",
        hint: str = "qualify it with a variant, collection or repository"
    ):
        """
        Initialize ambiguity error.

        Args:
            query: Query text the user supplied
            candidates: Qualified names of the matching packages
            kind: What the candidates are, for the message
            hint: How the user can narrow the match down
        """
        candidates = candidates or []
        message = f"Query '{query}' matches {len(candidates)} {kind}; {hint}"
        super().__init__(message, exit_code=3, details={"candidates": candidates})
        self.query = query
        self.candidates = candidates


class NetworkError(BinstashError):
    """Transport or remote API failure."""

    def __init__(self, message: str, url: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, exit_code=4, details=details)
        self.url = url


class ParseError(BinstashError):
    """Malformed URL, query or pattern."""

    def __init__(self, message: str, value: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, exit_code=5, details=details)
        self.value = value


class StorageError(BinstashError):
    """Filesystem write or read failure."""

    def __init__(self, message: str, path: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, exit_code=6, details=details)
        self.path = path


class UserAbortedError(BinstashError):
    """User declined or interrupted an interactive prompt."""

    def __init__(self, message: str = "Aborted by user", details: Optional[dict] = None):
        super().__init__(message, exit_code=130, details=details)


class ConfigurationError(BinstashError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize configuration error.

        Args:
            message: Configuration error message
            config_file: Configuration file path
            details: Additional error details
        """
        super().__init__(message, exit_code=78, details=details)
        self.config_file = config_file


class ExecutionError(BinstashError):
    """A package binary could not be executed."""

    def __init__(self, message: str, binary: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, exit_code=126, details=details)
        self.binary = binary


# Error Message Utilities

def format_error_for_user(error: Exception) -> str:
    """
    Format an error for terminal display.

    Args:
        error: The exception to format

    Returns:
        One-line message without stack trace
    """
    if isinstance(error, BinstashError):
        return error.message
    error_msg = str(error).strip() or type(error).__name__
    return f"{type(error).__name__}: {error_msg}"
