"""Generic fetch/validate/transform/store life cycle for one remote resource."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .client import DashboardApiClient, user_params
from .errors import IdentityTimeoutError, InvalidIdentityError, SchemaError, SyncError, TransformError
from .identity import is_valid_identity
from .models import ResourceKind, SyncState, SyncStatus
from .telemetry import record_sync
from .timeout_guard import TimeoutGuard

logger = logging.getLogger(__name__)

D = TypeVar("D")
T = TypeVar("T")

EndpointBuilder = Callable[[str], Tuple[str, Dict[str, str]]]
Clock = Callable[[], datetime]
StateListener = Callable[["SyncState[Any]"], None]

_PENDING_STATUSES = (SyncStatus.IDLE, SyncStatus.FETCHING)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def user_endpoint(path: str) -> EndpointBuilder:
    """Endpoint builder passing the identity as the ``user_id`` query parameter."""

    def build(identity: str) -> Tuple[str, Dict[str, str]]:
        return path, user_params(identity)

    return build


def envelope_validator(envelope: Type[BaseModel]) -> Callable[[Any], Any]:
    """Validate a ``{"data": ...}`` body against ``envelope`` and return its data."""

    def validate(body: Any) -> Any:
        try:
            parsed = envelope.model_validate(body)
        except ValidationError as exc:
            logger.debug("Envelope %s rejected body: %s", envelope.__name__, exc)
            raise SchemaError() from exc
        return parsed.data  # type: ignore[attr-defined]

    return validate


@dataclass(frozen=True)
class ResourceDefinition(Generic[D, T]):
    """Configuration that specialises a synchronizer for one resource kind."""

    kind: ResourceKind
    endpoint: EndpointBuilder
    validate: Callable[[Any], D]
    transform: Callable[[D, datetime], T]
    default: Callable[[], T]


class ResourceSynchronizer(Generic[T]):
    """Owns the ``SyncState`` of one resource for one subscribed identity.

    Each fetch is tagged with a request token; a response whose token is no
    longer current (a newer fetch started, or the unit was disposed) is
    dropped instead of overwriting fresher state.

    Construction does not start the identity deadline. Owners call
    ``set_identity`` on mount, passing ``None`` while the session provider is
    still loading, so a missing identity ends in TIMED_OUT rather than
    staying IDLE forever. ``DashboardSession.start`` does this for every
    resource.
    """

    def __init__(
        self,
        resource: ResourceDefinition[Any, T],
        client: DashboardApiClient,
        *,
        identity_timeout_seconds: Optional[float] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._resource = resource
        self._client = client
        self._clock = clock or _utcnow
        timeout = identity_timeout_seconds
        if timeout is None:
            timeout = client.settings.identity_timeout_seconds
        self._guard = TimeoutGuard(timeout, self._on_identity_timeout)
        self._identity: Any = None
        self._epoch = 0
        self._disposed = False
        self._listeners: List[StateListener] = []
        self._state: SyncState[T] = SyncState(status=SyncStatus.IDLE, value=resource.default())

    @property
    def kind(self) -> ResourceKind:
        return self._resource.kind

    @property
    def state(self) -> SyncState[T]:
        return self._state

    @property
    def value(self) -> T:
        return self._state.value

    @property
    def status(self) -> SyncStatus:
        return self._state.status

    @property
    def error_message(self) -> Optional[str]:
        return self._state.error_message

    @property
    def identity(self) -> Any:
        return self._identity

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def guard(self) -> TimeoutGuard:
        return self._guard

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def set_identity(self, identity: Any) -> None:
        """Subscribe to ``identity``: fetch when usable, otherwise wait under the deadline."""
        if self._disposed:
            return
        self._identity = identity
        if is_valid_identity(identity):
            await self.fetch(identity)
        elif self._state.status in _PENDING_STATUSES:
            self._guard.arm()

    async def fetch(self, identity: Any) -> None:
        if self._disposed:
            return
        self._epoch += 1
        token = self._epoch

        if not is_valid_identity(identity):
            logger.warning("Skipping %s fetch: invalid user id %r", self.kind.value, identity)
            self._fail(InvalidIdentityError(), latency_ms=0)
            return

        self._identity = identity
        self._guard.reset()
        self._transition(
            SyncState(
                status=SyncStatus.FETCHING,
                value=self._state.value,
                last_fetched_at=self._state.last_fetched_at,
            )
        )
        logger.debug("Fetching %s for user_id=%s (token=%s)", self.kind.value, identity, token)

        started = time.perf_counter()
        try:
            path, params = self._resource.endpoint(identity)
            body = await self._client.get_json(path, params=params)
            data = self._resource.validate(body)
            value = self._transform(data)
        except Exception as exc:  # noqa: BLE001
            # CancelledError is a BaseException and still propagates.
            latency_ms = int((time.perf_counter() - started) * 1000)
            if self._is_stale(token):
                self._record_stale(token, latency_ms)
                return
            if not isinstance(exc, SyncError):
                logger.exception("Unexpected failure while syncing %s", self.kind.value)
                exc = TransformError(f"Failed to sync {self.kind.value}: {exc!r}")
            self._fail(exc, latency_ms=latency_ms)
            return

        latency_ms = int((time.perf_counter() - started) * 1000)
        if self._is_stale(token):
            self._record_stale(token, latency_ms)
            return

        self._transition(
            SyncState(
                status=SyncStatus.READY,
                value=value,
                last_fetched_at=self._clock(),
            )
        )
        logger.debug("Fetched %s for user_id=%s in %sms", self.kind.value, identity, latency_ms)
        record_sync(
            self.kind,
            "success",
            latency_ms=latency_ms,
            item_count=len(value) if isinstance(value, list) else None,
        )

    async def refresh(self) -> None:
        await self.fetch(self._identity)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._epoch += 1
        self._guard.cancel()
        self._listeners.clear()
        logger.debug("Disposed %s synchronizer", self.kind.value)

    def _transform(self, data: Any) -> T:
        try:
            return self._resource.transform(data, self._clock())
        except SyncError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Transformer for %s failed", self.kind.value)
            raise TransformError(f"Failed to transform {self.kind.value} data: {exc}") from exc

    def _is_stale(self, token: int) -> bool:
        return self._disposed or token != self._epoch

    def _record_stale(self, token: int, latency_ms: int) -> None:
        logger.info(
            "Discarding stale %s response (token=%s, current=%s)",
            self.kind.value,
            token,
            self._epoch,
            extra={"resource": self.kind.value, "token": token},
        )
        record_sync(self.kind, "stale", latency_ms=latency_ms)

    def _fail(self, error: SyncError, *, latency_ms: int) -> None:
        status = SyncStatus.TIMED_OUT if isinstance(error, IdentityTimeoutError) else SyncStatus.ERROR
        self._transition(
            SyncState(
                status=status,
                value=self._resource.default(),
                error_message=error.message,
                error_kind=error.kind,
                last_fetched_at=self._state.last_fetched_at,
            )
        )
        logger.warning(
            "%s sync failed (%s): %s",
            self.kind.value,
            error.kind,
            error.message,
            extra={"resource": self.kind.value, "user_id": self._identity},
        )
        record_sync(
            self.kind,
            "timeout" if status is SyncStatus.TIMED_OUT else "error",
            latency_ms=latency_ms,
            error_kind=error.kind,
        )

    def _on_identity_timeout(self) -> None:
        if self._disposed or is_valid_identity(self._identity):
            return
        if self._state.status not in _PENDING_STATUSES:
            return
        self._epoch += 1
        self._fail(IdentityTimeoutError(), latency_ms=int(self._guard.timeout_seconds * 1000))

    def _transition(self, state: SyncState[T]) -> None:
        if self._disposed:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                logger.exception("State listener failed for %s", self.kind.value)


__all__ = [
    "EndpointBuilder",
    "ResourceDefinition",
    "ResourceSynchronizer",
    "envelope_validator",
    "user_endpoint",
]
