"""Error kinds and exceptions shared across the package."""

from enum import Enum


class ErrorKind(Enum):
    """Recoverable error states reported by the render pipeline."""

    EMPTY_CONTENT = "empty_content"
    UNSUPPORTED_SHAPE_COMBINATION = "unsupported_shape_combination"  # never raised, see style.py
    LOGO_DECODE_FAILURE = "logo_decode_failure"
    ENGINE_UNAVAILABLE = "engine_unavailable"
    PAYLOAD_TOO_LARGE = "payload_too_large"


class QrchitectError(Exception):
    """Base class for all package errors."""

    kind: ErrorKind | None = None


class ConfigError(QrchitectError, ValueError):
    """A configuration field failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class EmptyContentError(QrchitectError, ValueError):
    kind = ErrorKind.EMPTY_CONTENT

    def __init__(self, message: str = "Content is required."):
        super().__init__(message)
        self.field = "content"


class LogoDecodeError(QrchitectError):
    kind = ErrorKind.LOGO_DECODE_FAILURE


class EngineUnavailableError(QrchitectError):
    kind = ErrorKind.ENGINE_UNAVAILABLE


class PayloadTooLargeError(QrchitectError, ValueError):
    """The formatted payload exceeds the capacity of a version 40 QR code."""

    kind = ErrorKind.PAYLOAD_TOO_LARGE
