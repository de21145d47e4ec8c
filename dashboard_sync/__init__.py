"""Remote-state synchronization for the IsiPython learner dashboard."""

from .client import DashboardApiClient
from .errors import (
    IdentityTimeoutError,
    InvalidIdentityError,
    NetworkError,
    SchemaError,
    SyncError,
    TransformError,
)
from .identity import is_valid_identity
from .models import ResourceKind, SyncState, SyncStatus
from .resources import DashboardSession, create_dashboard, fetch_challenge_details
from .synchronizer import ResourceDefinition, ResourceSynchronizer

__all__ = [
    "DashboardApiClient",
    "DashboardSession",
    "IdentityTimeoutError",
    "InvalidIdentityError",
    "NetworkError",
    "ResourceDefinition",
    "ResourceKind",
    "ResourceSynchronizer",
    "SchemaError",
    "SyncError",
    "SyncState",
    "SyncStatus",
    "TransformError",
    "create_dashboard",
    "fetch_challenge_details",
    "is_valid_identity",
]
