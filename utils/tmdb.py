"""
TMDB API client for cinescout.
Cache-aware wrapper around movie search, details, credits, watch providers,
discovery, and the regional provider catalog.
"""

import logging
from typing import Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .api_client import BaseAPIClient, ExternalServiceError
from .cache import CacheStore, canonical_query_key
from .config import (
    ConfigError,
    DEFAULT_CATALOG_TTL_DAYS,
    DEFAULT_DISCOVER_TTL_HOURS,
    DEFAULT_PROVIDERS_TTL_HOURS,
    get_cache_config,
    get_tmdb_config,
)
from .schemas import (
    DiscoverPage,
    MovieCredits,
    MovieDetails,
    MovieSummary,
    ProviderCatalog,
    ProviderInfo,
    SearchResults,
    WatchProviders,
)

logger = logging.getLogger('cinescout')

TMDB_API_URL = "https://api.themoviedb.org/3"
DEFAULT_SORT = 'popularity.desc'

ModelT = TypeVar('ModelT', bound=BaseModel)


def parse_payload(model: Type[ModelT], payload, what: str) -> ModelT:
    """
    Validate an upstream payload against its expected shape.

    Raises:
        ExternalServiceError: If the payload does not match the model
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ExternalServiceError(f"Unexpected TMDB response for {what}: {e.error_count()} validation error(s)") from e


class TMDBClient(BaseAPIClient):
    """
    TMDB v3 client backed by the shared cache.

    Everything except title search is cache-first: a hit returns the stored
    value, a miss calls TMDB and writes the validated result through.
    """

    api_name = "TMDB"
    base_url = TMDB_API_URL

    def __init__(self, api_key: str, cache: CacheStore,
                 discover_ttl: Optional[int] = DEFAULT_DISCOVER_TTL_HOURS * 3600,
                 providers_ttl: Optional[int] = DEFAULT_PROVIDERS_TTL_HOURS * 3600,
                 catalog_ttl: Optional[int] = DEFAULT_CATALOG_TTL_DAYS * 86400,
                 session: Optional[requests.Session] = None):
        """
        Initialize TMDB client.

        Args:
            api_key: TMDB v3 API key
            cache: Open cache store shared with the rest of the run
            discover_ttl: Max age in seconds for cached discovery pages (None = forever)
            providers_ttl: Max age for cached per-movie watch providers
            catalog_ttl: Max age for cached regional provider catalogs
            session: Optional requests session

        Raises:
            ConfigError: If no API key is given
        """
        if not api_key:
            raise ConfigError("TMDB API key is required.")
        super().__init__(session)
        self.api_key = api_key
        self.cache = cache
        self.discover_ttl = discover_ttl
        self.providers_ttl = providers_ttl
        self.catalog_ttl = catalog_ttl

    def _get_auth_params(self) -> Dict[str, str]:
        return {'api_key': self.api_key}

    def search_movie(self, title: str) -> Optional[MovieSummary]:
        """
        Search TMDB by title and return the first result.

        Never cached: free-text queries have no stable key and results shift
        as the catalog changes.

        Returns:
            Best match or None when nothing matches
        """
        data = self._make_request('GET', 'search/movie', params={'query': title})
        results = parse_payload(SearchResults, data, f"search '{title}'").results
        return results[0] if results else None

    def get_movie_details(self, movie_id: int) -> MovieDetails:
        """Get movie details, from cache when present."""
        cached = self.cache.movies.get(movie_id)
        if cached is not None:
            return parse_payload(MovieDetails, cached, f"cached movie {movie_id}")

        data = self._make_request('GET', f'movie/{movie_id}')
        details = parse_payload(MovieDetails, data, f"movie {movie_id}")
        self.cache.movies.set(movie_id, details.model_dump())
        return details

    def get_movie_credits(self, movie_id: int) -> MovieCredits:
        """Get cast and crew, from cache when present."""
        cached = self.cache.credits.get(movie_id)
        if cached is not None:
            return parse_payload(MovieCredits, cached, f"cached credits {movie_id}")

        data = self._make_request('GET', f'movie/{movie_id}/credits')
        credits = parse_payload(MovieCredits, data, f"credits {movie_id}")
        self.cache.credits.set(movie_id, credits.model_dump())
        return credits

    def get_watch_providers(self, movie_id: int) -> WatchProviders:
        """Get per-region streaming offers for a movie."""
        key = f"watch-providers:{movie_id}"
        cached = self.cache.get(key, self.providers_ttl)
        if cached is not None:
            return parse_payload(WatchProviders, cached, f"cached providers {movie_id}")

        data = self._make_request('GET', f'movie/{movie_id}/watch/providers')
        providers = parse_payload(WatchProviders, data, f"providers {movie_id}")
        self.cache.set(key, providers.model_dump())
        return providers

    def discover_movies(self, sort_by: str = DEFAULT_SORT, page: int = 1,
                        with_genres: Optional[str] = None) -> DiscoverPage:
        """
        Get one page of discovery results.

        Args:
            sort_by: TMDB sort order
            page: 1-based page number
            with_genres: Optional comma-separated genre id filter

        Returns:
            DiscoverPage with its movie summaries
        """
        params = {'sort_by': sort_by, 'page': page, 'with_genres': with_genres}
        key = canonical_query_key(params)
        cached = self.cache.discover.get(key, self.discover_ttl)
        if cached is not None:
            return parse_payload(DiscoverPage, cached, f"cached discover {key}")

        query = {name: value for name, value in params.items() if value is not None}
        data = self._make_request('GET', 'discover/movie', params=query)
        result = parse_payload(DiscoverPage, data, f"discover {key}")
        self.cache.discover.set(key, result.model_dump())
        return result

    def list_providers(self, region: str) -> List[ProviderInfo]:
        """Get every movie watch provider TMDB knows for a region."""
        region = region.upper()
        key = f"providers:{region}"
        cached = self.cache.get(key, self.catalog_ttl)
        if cached is not None:
            return parse_payload(ProviderCatalog, cached, f"cached providers {region}").results

        data = self._make_request('GET', 'watch/providers/movie', params={'watch_region': region})
        catalog = parse_payload(ProviderCatalog, data, f"providers {region}")
        self.cache.set(key, catalog.model_dump())
        return catalog.results


def create_tmdb_client(config: Dict, cache: CacheStore) -> TMDBClient:
    """
    Create a TMDB client from config.

    Args:
        config: Full config dict containing 'tmdb' and optional 'cache' sections
        cache: Open cache store

    Raises:
        ConfigError: If no API key is configured
    """
    tmdb_config = get_tmdb_config(config)
    ttls = get_cache_config(config)
    return TMDBClient(
        tmdb_config['api_key'],
        cache,
        discover_ttl=ttls['discover_ttl'],
        providers_ttl=ttls['providers_ttl'],
        catalog_ttl=ttls['catalog_ttl'],
    )
