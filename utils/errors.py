"""Error taxonomy shared by the image tool services."""

from __future__ import annotations

from enum import Enum


class ImageToolError(Exception):
    """Base class for every failure the session can surface."""


class ValidationKind(str, Enum):
    NOT_AN_IMAGE = "not_an_image"
    TOO_LARGE = "too_large"


class ValidationError(ImageToolError):
    """Raised when a selected file cannot be staged as an image."""

    def __init__(self, kind: ValidationKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class AuthFailure(ImageToolError):
    """Raised when neither token exchange nor anonymous sign-in succeeds."""


class ConfigurationError(ImageToolError):
    """Raised when a required setting or credential is missing."""


class GenerationError(ImageToolError):
    """Base class for failures of the remote generation call."""


class TransportError(GenerationError):
    """Network or HTTP-level failure talking to the generation service."""


class SchemaViolation(GenerationError):
    """The generation response did not have the expected structure."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Unexpected generation response: {detail}")
        self.detail = detail


class StorageError(ImageToolError):
    """Raised when a generated result cannot be persisted."""
