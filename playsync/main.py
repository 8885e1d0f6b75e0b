import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional, Tuple

import httpx
from pydantic import ValidationError

from .config import Settings
from .clients.media_client import MediaServerClient, MediaServerError
from .engine import SyncEngine
from .models import SyncOutcome

logger = logging.getLogger("main")

# CLI flag -> settings field
_FLAG_FIELDS = {
    "a_host": "SERVER_A_HOST",
    "a_user": "SERVER_A_USER_ID",
    "a_token": "SERVER_A_TOKEN",
    "b_host": "SERVER_B_HOST",
    "b_user": "SERVER_B_USER_ID",
    "b_token": "SERVER_B_TOKEN",
    "dry_run": "DRY_RUN",
    "mode": "ONE_WAY_MODE",
    "log_level": "LOG_LEVEL",
    "timeout": "REQUEST_TIMEOUT_SECONDS",
}


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="playsync",
        description="Sync played movies between two Jellyfin/Emby servers. "
                    "Flags override SERVER_* environment variables.",
    )
    parser.add_argument("--a-host", help="Host for server A (e.g. jellyfin.example.net or https://...)")
    parser.add_argument("--a-user", help="User ID on server A")
    parser.add_argument("--a-token", help="API token for server A")
    parser.add_argument("--b-host", help="Host for server B")
    parser.add_argument("--b-user", help="User ID on server B")
    parser.add_argument("--b-token", help="API token for server B")
    parser.add_argument("--dry-run", action=argparse.BooleanOptionalAction, default=None,
                        help="Only print actions, do not mark items (default: on)")
    parser.add_argument("--mode", choices=["bidirectional", "a_to_b", "b_to_a"])
    parser.add_argument("--log-level")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    return parser.parse_args(argv)


async def run_sync(settings: Settings,
                   transport: Optional[httpx.AsyncBaseTransport] = None) -> Tuple[List[SyncOutcome], bool]:
    """
    Runs the configured directional passes one after another.
    Returns the outcomes of the passes that completed and whether any pass aborted.
    """
    dry_run = settings.DRY_RUN
    timeout = settings.REQUEST_TIMEOUT_SECONDS
    outcomes: List[SyncOutcome] = []
    failed = False

    logger.info(f"Starting sync (dry-run: {dry_run})")

    async with MediaServerClient(settings.server_a(), timeout, transport) as a, \
            MediaServerClient(settings.server_b(), timeout, transport) as b:
        passes = []
        if settings.ONE_WAY_MODE in ("bidirectional", "a_to_b"):
            passes.append(("A->B", a, b))
        if settings.ONE_WAY_MODE in ("bidirectional", "b_to_a"):
            passes.append(("B->A", b, a))

        for label, source, destination in passes:
            logger.info(f"Syncing played from {source.host} -> {destination.host}")
            try:
                outcome = await SyncEngine(source, destination, dry_run).run()
            except MediaServerError as e:
                logger.error(f"Error syncing {label}: {e}")
                failed = True
                continue

            if outcome.error_count:
                logger.warning(f"{label}: {outcome.error_count} items could not be synced")
            logger.info(
                f"{label}: marked {outcome.marked_count}, already played {outcome.already_played_count}, "
                f"unmatched {outcome.unmatched_count}"
            )
            outcomes.append(outcome)

    if not any(o.marked_count for o in outcomes):
        logger.info("No items to mark.")
    else:
        counts = " and ".join(f"{o.marked_count} items {o.source} -> {o.destination}" for o in outcomes)
        logger.info(f"Done. Marked {counts} (dry-run={dry_run})")

    return outcomes, failed


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    overrides = {
        field: getattr(args, flag)
        for flag, field in _FLAG_FIELDS.items()
        if getattr(args, flag) is not None
    }

    try:
        settings = Settings(**overrides)
        settings.server_a()
        settings.server_b()
    except ValidationError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(f"Invalid or missing configuration: {e}")
        return 2

    setup_logging(settings.LOG_LEVEL)
    _, failed = asyncio.run(run_sync(settings))
    return 1 if failed else 0


def handle_sigterm(sig, frame):
    logger.info("Received SIGTERM, shutting down...")
    sys.exit(0)


def cli():
    signal.signal(signal.SIGTERM, handle_sigterm)
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    cli()
