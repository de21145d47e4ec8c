"""Identity precondition shared by every synchronizer."""

from __future__ import annotations

from typing import Any

from .errors import InvalidIdentityError


def is_valid_identity(identity: Any) -> bool:
    """Return True when ``identity`` is a string with non-whitespace content."""
    return isinstance(identity, str) and len(identity.strip()) > 0


def require_identity(identity: Any) -> str:
    if not is_valid_identity(identity):
        raise InvalidIdentityError()
    return identity


__all__ = ["is_valid_identity", "require_identity"]
