import logging
from collections import Counter
from typing import Optional, Sequence
from .clients.media_client import MediaServerClient, MediaServerError
from .models import ItemResult, MediaItem, SyncOutcome

logger = logging.getLogger(__name__)


def find_match(source: MediaItem, candidates: Sequence[MediaItem]) -> Optional[MediaItem]:
    """
    Picks the candidate that most likely is the same movie as `source`.

    Rules are tried in order and the first one that hits wins: same id
    (case-insensitive), same name (exact), same runtime. A runtime of 0 means
    unknown and never matches. Within a rule the first candidate in search
    order is taken.
    """
    source_id = source.id.casefold()
    for c in candidates:
        if c.id.casefold() == source_id:
            return c

    for c in candidates:
        if c.name == source.name:
            return c

    if source.runtime_ticks != 0:
        for c in candidates:
            if c.runtime_ticks == source.runtime_ticks:
                return c

    return None


class SyncEngine:
    """One directional pass: played on `source` -> marked played on `destination`."""

    def __init__(self, source: MediaServerClient, destination: MediaServerClient, dry_run: bool = False):
        self.source = source
        self.destination = destination
        self.dry_run = dry_run

    async def run(self) -> SyncOutcome:
        # Discovery failures are fatal for the pass and propagate to the caller
        played = await self.source.fetch_played_items()

        counts = Counter()
        for item in played:
            counts[await self.sync_item(item)] += 1

        return SyncOutcome(
            source=self.source.host,
            destination=self.destination.host,
            dry_run=self.dry_run,
            marked_count=counts[ItemResult.MARKED],
            unmatched_count=counts[ItemResult.UNMATCHED],
            already_played_count=counts[ItemResult.ALREADY_PLAYED],
            error_count=counts[ItemResult.ERROR],
        )

    async def sync_item(self, item: MediaItem) -> ItemResult:
        dest = self.destination.host
        try:
            candidates = await self.destination.search_items(item.name)
        except MediaServerError as e:
            logger.error(f"Search error for '{item.name}' on {dest}: {e}")
            return ItemResult.ERROR

        match = find_match(item, candidates)
        if match is None:
            logger.debug(f"No match for '{item.name}' on {dest}")
            return ItemResult.UNMATCHED

        if match.is_played:
            logger.debug(f"'{match.name}' already played on {dest}")
            return ItemResult.ALREADY_PLAYED

        if self.dry_run:
            logger.info(f"[DRY RUN] Would mark played: {self.source.host} -> {dest} '{match.name}' (item {match.id})")
            return ItemResult.MARKED

        try:
            await self.destination.mark_played(match.id)
        except MediaServerError as e:
            logger.error(f"Failed to mark {match.id} as played on {dest}: {e}")
            return ItemResult.ERROR

        logger.info(f"Marked played: '{match.name}' on {dest} (item {match.id})")
        return ItemResult.MARKED
