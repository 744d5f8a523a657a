"""
Watchlist availability tracking for cinescout.
Compares each run's streaming availability for the watchlist against the
snapshot stored by the previous run and reports what changed.
"""

import random
import logging
from typing import Dict, List, NamedTuple, Optional

from pydantic import ValidationError

from utils.api_client import ExternalServiceError
from utils.cache import CacheError, CacheStore
from utils.schemas import SnapshotEntry, WatchlistEntry

from .availability import StreamingAvailability
from .base import BatchReport

logger = logging.getLogger('cinescout')

SNAPSHOT_KEY = 'watchlist-availability'


class AvailabilityChange(NamedTuple):
    """A watchlist title flipping between available and unavailable."""
    title: str
    now_available: bool
    providers: List[str]
    link: Optional[str] = None

    @property
    def message(self) -> str:
        if not self.now_available:
            return f"{self.title} is no longer available on your subscribed services."
        message = f"{self.title} is now available on {', '.join(self.providers)}."
        if self.link:
            message += f" Watch here: {self.link}"
        return message


class TrackerRun(NamedTuple):
    changes: List[AvailabilityChange]
    snapshot: Dict[str, Dict]
    report: BatchReport


class WatchlistPick(NamedTuple):
    entry: WatchlistEntry
    providers: List[str]
    link: Optional[str] = None


class WatchlistTracker:
    """
    Two-state (available / unavailable) tracker per watchlist title.

    The snapshot lives in the generic cache under a single key and is
    replaced wholesale at the end of every run. Availability is judged
    against the subscribed services, but an available title records every
    flatrate provider in the region.
    """

    def __init__(self, availability: StreamingAvailability, cache: CacheStore):
        """
        Args:
            availability: Availability checker for the configured region and services
            cache: Cache holding the previous snapshot
        """
        self.availability = availability
        self.cache = cache

    def load_snapshot(self) -> Dict[str, SnapshotEntry]:
        """
        Previous run's snapshot, or an empty mapping on the first run.

        Raises:
            CacheError: If the stored snapshot or any entry in it is malformed
        """
        snapshot = self.cache.get(SNAPSHOT_KEY)
        if snapshot is None:
            return {}
        if not isinstance(snapshot, dict):
            raise CacheError(f"Stored {SNAPSHOT_KEY} is not a mapping")
        try:
            return {title: SnapshotEntry.model_validate(entry) for title, entry in snapshot.items()}
        except ValidationError as e:
            raise CacheError(f"Stored {SNAPSHOT_KEY} has a malformed entry: {e}") from e

    def check_for_changes(self, watchlist: List[WatchlistEntry]) -> TrackerRun:
        """
        Recompute availability for every watchlist title and diff it.

        Titles absent from the previous snapshot have nothing to compare
        against and never produce a change, so the first run is silent.
        Titles that fail to resolve get no entry in the new snapshot. The
        new snapshot replaces the stored one even when some titles failed.

        Returns:
            TrackerRun with the changes, the new snapshot, and per-title report
        """
        previous = self.load_snapshot()
        current: Dict[str, Dict] = {}
        changes: List[AvailabilityChange] = []
        report = BatchReport("watchlist availability")

        for _, entry in self.availability.paced(watchlist, "Checking watchlist"):
            title = entry.title
            try:
                movie = self.availability.resolve_title(title)
                if movie is None:
                    report.failure(title, "no TMDB match")
                    continue
                status = self.availability.check(movie.id)
            except ExternalServiceError as e:
                report.failure(title, str(e))
                continue

            state = SnapshotEntry(
                is_available=status.is_available,
                providers=list(status.region_providers),
                link=status.link,
            )
            current[title] = state.model_dump()
            report.success(title)

            before = previous.get(title)
            if before is None or before.is_available == state.is_available:
                continue
            change = AvailabilityChange(title, state.is_available, state.providers, state.link)
            logger.info(change.message)
            changes.append(change)

        self.cache.set(SNAPSHOT_KEY, current)
        return TrackerRun(changes, current, report)

    def pick_available(self, watchlist: List[WatchlistEntry],
                       rng: Optional[random.Random] = None) -> Optional[WatchlistPick]:
        """
        Suggest a random watchlist title that streams on a subscribed service.

        Titles are tried in shuffled order; lookup failures move on to the
        next title.

        Returns:
            The first streamable pick, or None if nothing on the watchlist streams
        """
        rng = rng or random.Random()
        shuffled = list(watchlist)
        rng.shuffle(shuffled)

        for _, entry in self.availability.paced(shuffled, "Searching watchlist"):
            try:
                movie = self.availability.resolve_title(entry.title)
                if movie is None:
                    continue
                status = self.availability.check(movie.id)
            except ExternalServiceError as e:
                logger.warning(f"Skipping {entry.title}: {e}")
                continue
            if status.is_available:
                return WatchlistPick(entry, status.providers, status.link)
        return None
