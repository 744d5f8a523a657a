"""
Letterboxd export loading for cinescout.
Reads ratings.csv, diary.csv and watchlist.csv into validated records.
"""

import csv
import os
import logging
from typing import Callable, Iterable, List, Optional, Set, TypeVar

from pydantic import ValidationError

from .config import HIGH_RATING_THRESHOLD
from .schemas import DiaryEntry, RatingEntry, SavedListEntry, WatchlistEntry

logger = logging.getLogger('cinescout')

RATINGS_FILE = 'ratings.csv'
DIARY_FILE = 'diary.csv'
WATCHLIST_FILE = 'watchlist.csv'

T = TypeVar('T')


def _parse_year(value: Optional[str]) -> Optional[int]:
    value = (value or '').strip()
    return int(value) if value.isdigit() else None


def _parse_rating(value: Optional[str]) -> Optional[float]:
    value = (value or '').strip()
    if not value:
        return None
    return float(value)


def _load_rows(path: str, build: Callable[[dict], T]) -> List[T]:
    """
    Read a CSV export and convert each row, skipping rows that don't fit.

    A missing file yields an empty list.
    """
    if not os.path.exists(path):
        logger.debug(f"Export file not found: {path}")
        return []

    records = []
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            try:
                records.append(build(row))
            except (ValidationError, ValueError) as e:
                logger.warning(f"Skipping {os.path.basename(path)} line {line_no}: {e}")
    return records


def _rating_from_row(row: dict) -> RatingEntry:
    return RatingEntry(
        title=(row.get('Name') or '').strip(),
        year=_parse_year(row.get('Year')),
        rating=_parse_rating(row.get('Rating')),
    )


def _diary_from_row(row: dict) -> DiaryEntry:
    return DiaryEntry(
        title=(row.get('Name') or '').strip(),
        year=_parse_year(row.get('Year')),
        watched_date=(row.get('Watched Date') or row.get('Date') or None),
        rating=_parse_rating(row.get('Rating')),
        rewatch=(row.get('Rewatch') or '').strip().lower() == 'yes',
    )


def _watchlist_from_row(row: dict) -> WatchlistEntry:
    return WatchlistEntry(
        title=(row.get('Name') or '').strip(),
        year=_parse_year(row.get('Year')),
        added_date=row.get('Date') or None,
    )


def _require_title(build: Callable[[dict], T]) -> Callable[[dict], T]:
    def wrapper(row: dict) -> T:
        if not (row.get('Name') or '').strip():
            raise ValueError("missing Name")
        return build(row)
    return wrapper


def load_ratings(data_dir: str) -> List[RatingEntry]:
    return _load_rows(os.path.join(data_dir, RATINGS_FILE), _require_title(_rating_from_row))


def load_diary(data_dir: str) -> List[DiaryEntry]:
    return _load_rows(os.path.join(data_dir, DIARY_FILE), _require_title(_diary_from_row))


def load_watchlist(data_dir: str) -> List[WatchlistEntry]:
    return _load_rows(os.path.join(data_dir, WATCHLIST_FILE), _require_title(_watchlist_from_row))


def select_highly_rated(ratings: Iterable[RatingEntry],
                        threshold: float = HIGH_RATING_THRESHOLD) -> List[RatingEntry]:
    """Ratings at or above threshold, in export order."""
    return [r for r in ratings if r.rating >= threshold]


def excluded_titles(*collections: Iterable) -> Set[str]:
    """
    Lower-cased titles from any number of diary/watchlist collections.

    Titles are the only identity the exports carry, so two films sharing a
    title are treated as the same film.
    """
    return {entry.title.lower() for entries in collections for entry in entries}


def watched_in_year(diary: Iterable[DiaryEntry], year: int) -> List[DiaryEntry]:
    """Diary entries whose watched date falls in the given year."""
    prefix = f"{year:04d}"
    return [entry for entry in diary if (entry.watched_date or '').startswith(prefix)]


# Saved lists scraped from Letterboxd are cached whole in the generic store,
# keyed by list URL. Scraping itself happens outside this package.
SAVED_LIST_PREFIX = 'saved-list:'


def saved_list_key(url: str) -> str:
    return f"{SAVED_LIST_PREFIX}{url.strip().rstrip('/')}"


def cache_saved_list(cache, entry: SavedListEntry, titles: Iterable[str]) -> None:
    """Store the titles scraped from a saved list, replacing any earlier scrape."""
    cache.set(saved_list_key(entry.url), {'label': entry.label, 'titles': list(titles)})


def load_saved_list(cache, entry: SavedListEntry,
                    ttl_seconds: Optional[float] = None) -> Optional[List[str]]:
    """
    Titles from a previously cached scrape of a saved list.

    Returns:
        List of titles, or None if the list was never scraped or has expired
    """
    cached = cache.get(saved_list_key(entry.url), ttl_seconds)
    if cached is None:
        return None
    return list(cached.get('titles', []))
