"""
Base classes for cinescout recommenders.
Provides batch outcome tracking, pacing, and title resolution shared by the
recommendation pipeline, availability filter, and watchlist tracker.
"""

import time
import logging
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, TypeVar

from pydantic import BaseModel, Field

from utils.config import DEFAULT_ITEM_DELAY
from utils.counters import extract_features
from utils.display import show_progress
from utils.schemas import MovieCredits, MovieDetails, MovieSummary
from utils.tmdb import TMDBClient

logger = logging.getLogger('cinescout')

T = TypeVar('T')


class ItemResult(NamedTuple):
    """Outcome of processing one item inside a batch loop."""
    item: str
    ok: bool
    reason: Optional[str] = None


class BatchReport:
    """
    Per-item outcomes for one batch loop.

    Loops record every item here instead of skipping silently; the caller
    decides whether a partial batch is good enough.
    """

    def __init__(self, label: str):
        self.label = label
        self.results: List[ItemResult] = []

    def success(self, item: str) -> None:
        self.results.append(ItemResult(item, True))

    def failure(self, item: str, reason: str) -> None:
        logger.warning(f"{self.label}: skipped {item}: {reason}")
        self.results.append(ItemResult(item, False, reason))

    @property
    def succeeded(self) -> List[ItemResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[ItemResult]:
        return [r for r in self.results if not r.ok]

    @property
    def complete(self) -> bool:
        return not self.failed

    def __len__(self) -> int:
        return len(self.results)

    def __repr__(self) -> str:
        return f"BatchReport({self.label!r}, ok={len(self.succeeded)}, failed={len(self.failed)})"


class ScoredCandidate(BaseModel):
    """A candidate movie with its profile score and matched attributes."""

    movie: MovieSummary
    details: MovieDetails
    score: int = Field(ge=0)
    matches: Dict[str, List[str]] = Field(default_factory=dict)
    providers: List[str] = Field(default_factory=list)
    link: Optional[str] = None

    @property
    def title(self) -> str:
        return self.details.title

    def to_display_dict(self) -> Dict:
        return {
            'title': self.details.title,
            'release_date': self.details.release_date,
            'overview': self.details.overview,
            'genres': self.details.genre_names,
            'score': self.score,
            'matches': self.matches,
            'providers': self.providers,
            'link': self.link,
        }


class BaseRecommender:
    """
    Shared plumbing for components that walk lists of movies against TMDB.

    Items are processed strictly one at a time with a fixed pause between
    them to stay under TMDB's rate limit.
    """

    def __init__(self, tmdb: TMDBClient, item_delay: float = DEFAULT_ITEM_DELAY,
                 progress: bool = False):
        """
        Args:
            tmdb: Cache-backed TMDB client
            item_delay: Seconds to wait between items in a batch
            progress: Whether to draw a progress line while looping
        """
        self.tmdb = tmdb
        self.item_delay = item_delay
        self.progress = progress

    def paced(self, items: Iterable[T], label: str = "Processing") -> Iterator[Tuple[int, T]]:
        """
        Yield (index, item) pairs, sleeping item_delay between consecutive items.
        """
        items = list(items)
        total = len(items)
        for i, item in enumerate(items, 1):
            if i > 1 and self.item_delay > 0:
                time.sleep(self.item_delay)
            if self.progress:
                show_progress(label, i, total)
            yield i, item

    def resolve_title(self, title: str) -> Optional[MovieSummary]:
        """
        Resolve an export title to a TMDB movie by taking the first search hit.

        No disambiguation by year is attempted.
        """
        return self.tmdb.search_movie(title)

    def fetch_features(self, movie_id: int) -> Tuple[MovieDetails, MovieCredits, Dict[str, List[str]]]:
        """Fetch (cache-backed) details and credits and extract scoring features."""
        details = self.tmdb.get_movie_details(movie_id)
        credits = self.tmdb.get_movie_credits(movie_id)
        return details, credits, extract_features(details, credits)
