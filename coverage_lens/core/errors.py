"""
Core exception classes for coverage-lens.
"""

from pathlib import Path
from typing import Any, Optional, Union


class CoverageLensError(Exception):
    """Base exception for all coverage-lens errors."""

    code = "internal_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Structured failure payload returned to tool callers."""
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class ConfigurationError(CoverageLensError):
    """Raised when configuration is invalid or missing."""

    code = "configuration_error"


class ReportNotFoundError(ConfigurationError):
    """Raised when no coverage report exists at any known location."""

    code = "report_not_found"

    def __init__(self, env_var: str, checked: list[str]) -> None:
        super().__init__(
            "Coverage report not found",
            {
                "suggestion": f"Set the {env_var} environment variable (optional)",
                "checked": checked,
            },
        )
        self.env_var = env_var
        self.checked = checked


class ReportAccessError(CoverageLensError):
    """Raised when the resolved report cannot be opened or read."""

    code = "report_path_invalid"

    def __init__(self, path: Union[str, Path], reason: Optional[str] = None) -> None:
        message = f"File not found: {path}" if reason is None else f"Cannot read {path}: {reason}"
        super().__init__(message, {"filePath": str(path)})
        self.path = str(path)
        self.reason = reason


class RecordNotFoundError(CoverageLensError):
    """Raised when no record matches the target in either search mode."""

    code = "record_not_found"

    def __init__(self, target: str, path: Union[str, Path]) -> None:
        super().__init__(
            f"File '{target}' not found in coverage report",
            {"filePath": str(path), "targetFile": target},
        )
        self.target = target
        self.path = str(path)
