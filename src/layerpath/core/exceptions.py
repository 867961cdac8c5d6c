"""
Custom exceptions for layerpath.

All layerpath exceptions inherit from LayerPathError for easy catching.
"""

from typing import Any


class LayerPathError(Exception):
    """Base exception for all layerpath errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(LayerPathError):
    """Raised when configuration is invalid or missing."""

    pass


class UnsupportedTransitionError(ConfigurationError):
    """Raised when a transition policy is not allowed for the layer stack."""

    def __init__(
        self,
        message: str,
        transition: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.transition = transition


class InvalidGeometryError(LayerPathError):
    """Raised when contour input is malformed or degenerate."""

    pass


class ChannelLengthMismatchError(LayerPathError):
    """Raised when resolved variable data does not match the frame count."""

    def __init__(
        self,
        message: str,
        prefix: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.prefix = prefix


class UnsupportedDialectFeatureError(LayerPathError):
    """Raised when a dialect cannot express a requested feature."""

    def __init__(
        self,
        message: str,
        dialect: str | None = None,
        feature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.dialect = dialect
        self.feature = feature
