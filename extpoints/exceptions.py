"""Custom exceptions for extension points."""

from __future__ import annotations

from typing import Optional


class ExtensionPointError(Exception):
    """Base exception for extension point errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ContractViolation(ExtensionPointError):
    """Exception raised when an extension breaks the registration contract."""

    def __init__(self, message: str, extension_id: Optional[str] = None):
        super().__init__(message, {"extension_id": extension_id})
        self.extension_id = extension_id


class CycleDetected(ExtensionPointError):
    """Exception raised when before/after anchors form a loop."""

    def __init__(self, point_id: str, extension_id: str):
        super().__init__(
            f"Circular references detected for extension point '{point_id}' and extension '{extension_id}'",
            {"point_id": point_id, "extension_id": extension_id},
        )
        self.point_id = point_id
        self.extension_id = extension_id


class DispatchFailure(ExtensionPointError):
    """Exception raised when an extension method fails during dispatch."""

    def __init__(self, point_id: str, extension_id: str, method_name: str, message: str = ""):
        super().__init__(
            f"Extension '{extension_id}' of point '{point_id}' failed in '{method_name}'"
            + (f": {message}" if message else ""),
            {"point_id": point_id, "extension_id": extension_id, "method_name": method_name},
        )
        self.point_id = point_id
        self.extension_id = extension_id
        self.method_name = method_name


class ConfigurationError(ExtensionPointError):
    """Exception raised for configuration errors."""

    pass


__all__ = [
    "ExtensionPointError",
    "ContractViolation",
    "CycleDetected",
    "DispatchFailure",
    "ConfigurationError",
]
