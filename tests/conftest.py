"""Shared fixtures: an in-memory stand-in for TMDBClient and model builders."""

from unittest.mock import Mock

import pytest

from utils.api_client import ExternalServiceError
from utils.cache import CacheStore
from utils.schemas import (
    DiscoverPage,
    MovieCredits,
    MovieDetails,
    MovieSummary,
    WatchProviders,
)


class FakeTMDB:
    """
    Serves canned movies, discovery pages and watch providers.

    Methods are Mocks wrapping the fake lookups so tests can assert on calls.
    Titles, ids and pages in the fail_* sets raise ExternalServiceError.
    """

    def __init__(self):
        self.movies = {}
        self.pages = {}
        self.providers = {}
        self.fail_titles = set()
        self.fail_ids = set()
        self.fail_pages = set()

        self.search_movie = Mock(side_effect=self._search)
        self.get_movie_details = Mock(side_effect=self._details)
        self.get_movie_credits = Mock(side_effect=self._credits)
        self.get_watch_providers = Mock(side_effect=self._watch_providers)
        self.discover_movies = Mock(side_effect=self._discover)
        self.list_providers = Mock(return_value=[])

    def add_movie(self, movie_id, title, genres=(), cast=(), directors=(), writers=(),
                  overview='', release_date='2000-01-01'):
        self.movies[movie_id] = {
            'details': {
                'id': movie_id,
                'title': title,
                'overview': overview,
                'release_date': release_date,
                'genres': [{'id': i, 'name': name} for i, name in enumerate(genres)],
            },
            'credits': {
                'id': movie_id,
                'cast': [{'name': name} for name in cast],
                'crew': ([{'name': name, 'job': 'Director'} for name in directors] +
                         [{'name': name, 'job': 'Screenplay'} for name in writers]),
            },
        }
        return movie_id

    def set_providers(self, movie_id, names, region='GB', link=None):
        results = {}
        if names is not None:
            results[region] = {
                'link': link or f'https://www.themoviedb.org/movie/{movie_id}/watch',
                'flatrate': [{'provider_name': name} for name in names],
            }
        self.providers[movie_id] = WatchProviders.model_validate({'id': movie_id, 'results': results})

    def add_page(self, page, movie_ids):
        self.pages[page] = list(movie_ids)

    def summary(self, movie_id):
        details = self.movies[movie_id]['details']
        return MovieSummary(id=movie_id, title=details['title'], overview=details['overview'],
                            release_date=details['release_date'])

    def _search(self, title):
        if title in self.fail_titles:
            raise ExternalServiceError(f"search failed for {title}")
        for movie_id, movie in self.movies.items():
            if movie['details']['title'].lower() == title.lower():
                return self.summary(movie_id)
        return None

    def _details(self, movie_id):
        if movie_id in self.fail_ids:
            raise ExternalServiceError(f"details failed for {movie_id}")
        return MovieDetails.model_validate(self.movies[movie_id]['details'])

    def _credits(self, movie_id):
        if movie_id in self.fail_ids:
            raise ExternalServiceError(f"credits failed for {movie_id}")
        return MovieCredits.model_validate(self.movies[movie_id]['credits'])

    def _watch_providers(self, movie_id):
        if movie_id in self.fail_ids:
            raise ExternalServiceError(f"providers failed for {movie_id}")
        return self.providers.get(movie_id, WatchProviders(id=movie_id))

    def _discover(self, sort_by='popularity.desc', page=1, with_genres=None):
        if page in self.fail_pages:
            raise ExternalServiceError(f"discover page {page} failed")
        return DiscoverPage(page=page, results=[self.summary(i) for i in self.pages.get(page, [])])


@pytest.fixture
def fake_tmdb():
    return FakeTMDB()


@pytest.fixture
def cache():
    store = CacheStore(':memory:')
    yield store
    store.close()
