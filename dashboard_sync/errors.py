"""Failure taxonomy for remote-state synchronization."""

from __future__ import annotations

from typing import Optional

INVALID_IDENTITY_MESSAGE = "Invalid user id"
IDENTITY_TIMEOUT_MESSAGE = "Timeout: unable to resolve identity"
INVALID_RESPONSE_MESSAGE = "Invalid response format"


class SyncError(RuntimeError):
    """Base class for failures caught at the synchronizer boundary."""

    kind = "sync"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidIdentityError(SyncError):
    """Raised when the user identity fails validation; no request was made."""

    kind = "invalid_identity"

    def __init__(self, message: str = INVALID_IDENTITY_MESSAGE) -> None:
        super().__init__(message)


class NetworkError(SyncError):
    kind = "network"

    def __init__(self, status_code: Optional[int], message: Optional[str] = None) -> None:
        super().__init__(message or f"HTTP error! status: {status_code}")
        self.status_code = status_code


class SchemaError(SyncError):
    kind = "schema"

    def __init__(self, reason: str = INVALID_RESPONSE_MESSAGE) -> None:
        super().__init__(reason)
        self.reason = reason


class IdentityTimeoutError(SyncError):
    kind = "timeout"

    def __init__(self, message: str = IDENTITY_TIMEOUT_MESSAGE) -> None:
        super().__init__(message)


class TransformError(SyncError):
    kind = "transform"


__all__ = [
    "IDENTITY_TIMEOUT_MESSAGE",
    "INVALID_IDENTITY_MESSAGE",
    "INVALID_RESPONSE_MESSAGE",
    "IdentityTimeoutError",
    "InvalidIdentityError",
    "NetworkError",
    "SchemaError",
    "SyncError",
    "TransformError",
]
