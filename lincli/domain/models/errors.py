"""Error taxonomy shared by the transport, retry engine and resolver.

Every failure surfaced by the data-access core is an ApiError carrying an
ErrorKind. The kind drives two decisions: whether the retry engine may
re-attempt the call, and which process exit code the CLI returns.
"""

from enum import Enum
from typing import Any, Optional

# Message fragments that mark an otherwise generic failure as transient
TRANSIENT_MARKERS = (
    "rate limit",
    "timeout",
    "connection",
    "temporarily unavailable",
    "503",
    "502",
    "504",
)


class ErrorKind(Enum):
    """Error categories, valued by their CLI exit code."""
    GENERAL = 1
    NOT_FOUND = 2
    AUTH = 3
    RATE_LIMITED = 4


class ApiError(Exception):
    """A classified failure from the backend or the core around it."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Any] = None,
        retry_after: Optional[int] = None,
    ):
        self.kind = kind
        self.message = message
        self.details = details
        self.retry_after = retry_after
        super().__init__(message)

    @classmethod
    def general(cls, message: str, details: Optional[Any] = None) -> "ApiError":
        return cls(ErrorKind.GENERAL, message, details=details)

    @classmethod
    def not_found(cls, message: str, details: Optional[Any] = None) -> "ApiError":
        return cls(ErrorKind.NOT_FOUND, message, details=details)

    @classmethod
    def auth(cls, message: str, details: Optional[Any] = None) -> "ApiError":
        return cls(ErrorKind.AUTH, message, details=details)

    @classmethod
    def rate_limited(
        cls,
        message: str,
        retry_after: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> "ApiError":
        return cls(ErrorKind.RATE_LIMITED, message, details=details, retry_after=retry_after)

    def with_details(self, details: Any) -> "ApiError":
        self.details = details
        return self

    @property
    def exit_code(self) -> int:
        return self.kind.value

    def is_retryable(self) -> bool:
        """Rate limits and known-transient GENERAL failures may be retried.

        AUTH and NOT_FOUND never are, whatever the message says.
        """
        if self.kind is ErrorKind.RATE_LIMITED:
            return True
        if self.kind is not ErrorKind.GENERAL:
            return False
        msg = self.message.lower()
        return any(marker in msg for marker in TRANSIENT_MARKERS)

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.name}, message={self.message!r}, retry_after={self.retry_after})"


class CacheWriteError(Exception):
    """Raised when a cache file could not be committed to disk."""
