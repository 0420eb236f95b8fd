from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_MANIFEST = "INVALID_MANIFEST"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    DOC_NOT_FOUND = "DOC_NOT_FOUND"
    SECTION_NOT_FOUND = "SECTION_NOT_FOUND"
    CACHE_CORRUPT = "CACHE_CORRUPT"
    NO_PENDING_UPDATE = "NO_PENDING_UPDATE"
    CONFIGURATION_UNAVAILABLE = "CONFIGURATION_UNAVAILABLE"


class DocMirrorError(Exception):
    """Base class for every expected failure raised by the sync core.

    The rendering layer catches this and serialises it with ``to_dict()``.
    Per-document failures inside batch operations are collected into
    results instead of being raised.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class NetworkError(DocMirrorError):
    """A fetch failed after all retries were exhausted."""

    def __init__(self, message: str, *, status_code: int | None = None, retries: int = 0) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            suggestion="Check your internet connection and try again later.",
            recoverable=True,
        )
        self.status_code = status_code
        self.retries = retries


class ValidationError(DocMirrorError):
    """A manifest or user-supplied value failed structural validation."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.INVALID_MANIFEST,
        suggestion: str = "",
    ) -> None:
        super().__init__(code=code, message=message, suggestion=suggestion, recoverable=False)


class InvalidMessage(ValidationError):
    """A changelog message was rejected."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message,
            code=ErrorCode.INVALID_MESSAGE,
            suggestion="Describe what changed, e.g. 'Updated MCP server list with new integrations'.",
        )


class NotFoundError(DocMirrorError):
    """An operation referenced a document or section that does not exist."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.DOC_NOT_FOUND,
        suggestion: str = "List the available documents to find the right name.",
    ) -> None:
        super().__init__(code=code, message=message, suggestion=suggestion, recoverable=False)


class CorruptionError(DocMirrorError):
    """A cache entry could not be parsed. Only ever handled inside the cache."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.CACHE_CORRUPT, message=message, recoverable=True)


class StateError(DocMirrorError):
    """commit or discard was attempted without a pending update."""

    def __init__(self, message: str, *, suggestion: str = "Run an update check first.") -> None:
        super().__init__(
            code=ErrorCode.NO_PENDING_UPDATE,
            message=message,
            suggestion=suggestion,
            recoverable=False,
        )


class ConfigurationError(DocMirrorError):
    """Every catalog source (cache, remote, bundled) was unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.CONFIGURATION_UNAVAILABLE,
            message=message,
            suggestion="Reinstall the package to restore the bundled manifest.",
            recoverable=False,
        )
