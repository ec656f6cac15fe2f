"""
Package-level exception hierarchy for sqlquality.

All exceptions inherit from SqlQualityError, enabling:
- Catching all sqlquality errors with a single except clause
- Rich context fields for debugging (config_key, path, detail)
- Structured serialization via to_dict() for JSON error output

Hierarchy:
    SqlQualityError
    ├── ParseError          – EXPLAIN / SHOW WARNINGS input could not be decoded
    ├── ConfigurationError  – Invalid configuration value or file
    └── SqlFileError        – SQL artifact missing or unreadable

The diagnostic engine itself raises none of these: it is total over
well-formed plan documents. They belong to the loading layers around it.
"""

from __future__ import annotations

from typing import Any


class SqlQualityError(Exception):
    """
    Base exception for all sqlquality errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error output."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


class ParseError(SqlQualityError):
    """
    Raised when EXPLAIN JSON or a warnings list cannot be parsed.

    Attributes:
        detail: Technical details for debugging (optional).
        source: Where the error occurred (e.g., "json_decode", "validation").
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        source: str = "unknown",
    ) -> None:
        self.detail = detail
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}\n\nDetails: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["detail"] = self.detail
        result["source"] = self.source
        return result


class ConfigurationError(SqlQualityError):
    """
    Error in configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


class SqlFileError(SqlQualityError):
    """
    A SQL artifact could not be located or read.

    Attributes:
        path: Filesystem path that was requested.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["path"] = self.path
        return result
