"""
Persistent cache for cinescout.
SQLite-backed key/value storage with lazy TTL expiry, plus typed stores for
movie details, credits, and discovery pages.
"""

import os
import json
import time
import logging
import sqlite3
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger('cinescout')

GENERIC_TABLE = 'generic_cache'


class CacheError(Exception):
    """Raised when the cache database cannot be read or written."""
    pass


def canonical_query_key(params: Mapping[str, Any]) -> str:
    """
    Build a stable cache key from query parameters.

    Parameters are sorted by name and None values dropped, so logically
    identical queries always produce the same key regardless of the order
    the caller passed them in.

    Args:
        params: Query parameters (e.g., sort_by, page, with_genres)

    Returns:
        String like 'page=1&sort_by=popularity.desc'
    """
    parts = []
    for name in sorted(params):
        value = params[name]
        if value is None:
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = sorted(value) if isinstance(value, (set, frozenset)) else value
            value = ','.join(str(v) for v in items)
        parts.append(f"{name}={value}")
    return '&'.join(parts)


def _dumps(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise CacheError(f"Value is not JSON serializable: {e}") from e


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise CacheError(f"Corrupt cache entry: {e}") from e


class _TableStore:
    """
    Key/value view over one cache table.

    Subclasses describe the table layout and how a value maps onto its
    columns; expiry and upsert behaviour live here.
    """

    table: str = None
    key_column: str = None
    columns: tuple = ()

    def __init__(self, cache: 'CacheStore'):
        self._cache = cache

    def _to_row(self, value: Any) -> tuple:
        raise NotImplementedError

    def _from_row(self, row: sqlite3.Row) -> Any:
        raise NotImplementedError

    def set(self, key, value: Any) -> None:
        """Insert or replace the value for key, refreshing its timestamp."""
        row = self._to_row(value)
        cols = [f'"{c}"' for c in (self.key_column,) + self.columns + ('cached_at',)]
        placeholders = ', '.join('?' for _ in cols)
        updates = ', '.join(f'{c}=excluded.{c}' for c in cols[1:])
        sql = (
            f'INSERT INTO {self.table} ({", ".join(cols)}) '
            f'VALUES ({placeholders}) '
            f'ON CONFLICT({cols[0]}) DO UPDATE SET {updates}'
        )
        self._cache._execute(sql, (key,) + row + (self._cache._now(),), commit=True)

    def get(self, key, ttl_seconds: Optional[float] = None) -> Optional[Any]:
        """
        Get the value for key, or None on a miss.

        When ttl_seconds is given and the entry is older than that, the row
        is deleted and the read counts as a miss.
        """
        row = self._cache._execute(
            f'SELECT * FROM {self.table} WHERE "{self.key_column}" = ?', (key,)
        ).fetchone()
        if row is None:
            return None
        if ttl_seconds is not None and self._cache._now() - row['cached_at'] > ttl_seconds:
            logger.debug(f"Cache entry {self.table}[{key}] expired")
            self.delete(key)
            return None
        return self._from_row(row)

    def delete(self, key) -> None:
        self._cache._execute(
            f'DELETE FROM {self.table} WHERE "{self.key_column}" = ?', (key,), commit=True
        )

    def count(self) -> int:
        return self._cache._execute(f'SELECT COUNT(*) FROM {self.table}').fetchone()[0]


class GenericStore(_TableStore):
    """Arbitrary string keys holding JSON values (scraped lists, snapshots)."""

    table = GENERIC_TABLE
    key_column = 'key'
    columns = ('value',)

    def _to_row(self, value):
        return (_dumps(value),)

    def _from_row(self, row):
        return _loads(row['value'])


class MovieStore(_TableStore):
    """Movie details keyed by TMDB id."""

    table = 'movies'
    key_column = 'id'
    columns = ('title', 'overview', 'release_date', 'genres')

    def _to_row(self, value):
        return (
            value.get('title'),
            value.get('overview'),
            value.get('release_date'),
            _dumps(value.get('genres', [])),
        )

    def _from_row(self, row):
        return {
            'id': row['id'],
            'title': row['title'],
            'overview': row['overview'],
            'release_date': row['release_date'],
            'genres': _loads(row['genres']),
        }


class CreditsStore(_TableStore):
    """Cast and crew lists keyed by TMDB id."""

    table = 'movie_credits'
    key_column = 'movie_id'
    columns = ('cast', 'crew')

    def _to_row(self, value):
        return (_dumps(value.get('cast', [])), _dumps(value.get('crew', [])))

    def _from_row(self, row):
        return {
            'id': row['movie_id'],
            'cast': _loads(row['cast']),
            'crew': _loads(row['crew']),
        }


class DiscoverStore(_TableStore):
    """Discovery result pages keyed by canonical query string."""

    table = 'discover_cache'
    key_column = 'query_params'
    columns = ('results',)

    def _to_row(self, value):
        return (_dumps(value),)

    def _from_row(self, row):
        return _loads(row['results'])


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS movies (
        id INTEGER PRIMARY KEY,
        title TEXT,
        overview TEXT,
        release_date TEXT,
        genres TEXT NOT NULL,
        cached_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS movie_credits (
        movie_id INTEGER PRIMARY KEY,
        "cast" TEXT NOT NULL,
        crew TEXT NOT NULL,
        cached_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS discover_cache (
        query_params TEXT PRIMARY KEY,
        results TEXT NOT NULL,
        cached_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS generic_cache (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        cached_at REAL NOT NULL
    )
    """,
)


class CacheStore:
    """
    SQLite cache shared by every component of a run.

    Construct one instance and pass it to whatever needs it. Storage
    failures raise CacheError; nothing here degrades silently.
    """

    def __init__(self, path: str):
        """
        Open (creating if needed) the cache database.

        Args:
            path: Database file path, or ':memory:' for a throwaway cache
        """
        self.path = path
        try:
            if path != ':memory:':
                directory = os.path.dirname(os.path.abspath(path))
                os.makedirs(directory, exist_ok=True)
            self.conn = sqlite3.connect(path)
            self.conn.row_factory = sqlite3.Row
            with self.conn:
                for statement in SCHEMA:
                    self.conn.execute(statement)
        except (OSError, sqlite3.Error) as e:
            raise CacheError(f"Could not open cache at {path}: {e}") from e

        self.generic = GenericStore(self)
        self.movies = MovieStore(self)
        self.credits = CreditsStore(self)
        self.discover = DiscoverStore(self)
        logger.debug(f"Cache opened at {path}")

    def _now(self) -> float:
        return time.time()

    def _execute(self, sql: str, params: tuple = (), commit: bool = False) -> sqlite3.Cursor:
        try:
            if commit:
                with self.conn:
                    return self.conn.execute(sql, params)
            return self.conn.execute(sql, params)
        except sqlite3.Error as e:
            raise CacheError(f"Cache operation failed: {e}") from e

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key (last write wins)."""
        self.generic.set(key, value)

    def get(self, key: str, ttl_seconds: Optional[float] = None) -> Optional[Any]:
        """Read a value stored with set(), expiring it lazily when ttl_seconds is given."""
        return self.generic.get(key, ttl_seconds)

    def delete(self, key: str) -> None:
        self.generic.delete(key)

    def clear(self) -> None:
        """Remove every entry from every table."""
        for store in (self.generic, self.movies, self.credits, self.discover):
            self._execute(f'DELETE FROM {store.table}', commit=True)

    def stats(self) -> Dict[str, int]:
        """Row counts per table."""
        return {
            store.table: store.count()
            for store in (self.movies, self.credits, self.discover, self.generic)
        }

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
