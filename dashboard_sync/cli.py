"""Fetch every dashboard resource for one learner and print a JSON snapshot."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .client import DashboardApiClient
from .config import Settings, get_settings
from .identity import is_valid_identity
from .logging_config import configure_logging
from .models import ResourceKind, SyncStatus
from .resources import DashboardSession, create_dashboard
from .telemetry import sync_counts

LOGGER = logging.getLogger("dashboard_sync.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronize a learner's dashboard data and print it as JSON.")
    parser.add_argument("--user-id", required=True, help="Identity passed to the API as user_id.")
    parser.add_argument(
        "--base-url",
        default=None,
        help="API base URL (default: DASHBOARD_API_BASE_URL or the hosted API).",
    )
    parser.add_argument(
        "--resource",
        action="append",
        choices=[kind.value for kind in ResourceKind],
        help="Resource to fetch; repeat for several (default: all).",
    )
    parser.add_argument("--log-level", default=None, help="Override DASHBOARD_SYNC_LOG_LEVEL.")
    return parser.parse_args(argv)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def render_snapshot(session: DashboardSession) -> Dict[str, Any]:
    resources: Dict[str, Any] = {}
    for sync in session:
        state = sync.state
        resources[sync.kind.value] = {
            "status": state.status.value,
            "error_message": state.error_message,
            "last_fetched_at": state.last_fetched_at.isoformat() if state.last_fetched_at else None,
            "value": _jsonable(state.value),
        }
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "resources": resources,
    }


async def run(args: argparse.Namespace, settings: Settings) -> int:
    if not is_valid_identity(args.user_id):
        LOGGER.error("Invalid user id: %r", args.user_id)
        return 2
    if args.base_url:
        settings = settings.model_copy(update={"api_base_url": args.base_url})
    kinds = [ResourceKind(value) for value in args.resource] if args.resource else None

    async with DashboardApiClient(settings) as client:
        session = create_dashboard(client, kinds)
        try:
            await session.start(args.user_id)
            print(json.dumps(render_snapshot(session), indent=2))
            failed = [sync.kind.value for sync in session if sync.status is not SyncStatus.READY]
            LOGGER.info("Sync outcomes: %s", json.dumps(sync_counts(), sort_keys=True))
        finally:
            session.dispose()

    if failed:
        LOGGER.error("Resources not synchronized: %s", ", ".join(failed))
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        settings = get_settings()
    except RuntimeError as exc:
        LOGGER.error("%s", exc)
        return 2
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
