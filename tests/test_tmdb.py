"""Tests for utils/tmdb.py"""

from unittest.mock import Mock, patch

import pytest

from utils.api_client import ExternalServiceError
from utils.cache import CacheStore
from utils.config import ConfigError
from utils.tmdb import TMDBClient, create_tmdb_client, parse_payload
from utils.schemas import MovieDetails

MATRIX = {
    'id': 603,
    'title': 'The Matrix',
    'overview': 'A hacker discovers reality is a simulation.',
    'release_date': '1999-03-30',
    'genres': [{'id': 28, 'name': 'Action'}, {'id': 878, 'name': 'Science Fiction'}],
    'runtime': 136,
}

MATRIX_CREDITS = {
    'id': 603,
    'cast': [{'name': 'Keanu Reeves', 'character': 'Neo', 'order': 0}],
    'crew': [{'name': 'Lana Wachowski', 'job': 'Director', 'department': 'Directing'}],
}

DISCOVER_PAGE = {
    'page': 1,
    'results': [{'id': 603, 'title': 'The Matrix', 'genre_ids': [28, 878]}],
    'total_pages': 500,
    'total_results': 10000,
}


def _ok(payload):
    response = Mock()
    response.status_code = 200
    response.json.return_value = payload
    return response


@pytest.fixture
def cache():
    store = CacheStore(':memory:')
    yield store
    store.close()


@pytest.fixture
def client(cache):
    return TMDBClient('test-key', cache)


class TestTMDBClientInit:
    """Tests for TMDBClient construction"""

    def test_requires_api_key(self, cache):
        with pytest.raises(ConfigError):
            TMDBClient('', cache)

    def test_create_from_config(self, cache):
        client = create_tmdb_client({'tmdb': {'api_key': 'abc'}, 'cache': {'discover_ttl_hours': 2}}, cache)
        assert client.api_key == 'abc'
        assert client.discover_ttl == 7200

    def test_create_without_key_raises(self, cache):
        with pytest.raises(ConfigError):
            create_tmdb_client({}, cache)


class TestSearchMovie:
    """Tests for search_movie"""

    @patch('utils.api_client.requests.request')
    def test_returns_first_result(self, mock_request, client):
        mock_request.return_value = _ok({'results': [
            {'id': 1, 'title': 'Heat'}, {'id': 2, 'title': 'Heat 2'}
        ]})

        movie = client.search_movie('Heat')

        assert movie.id == 1
        assert mock_request.call_args.kwargs['params']['query'] == 'Heat'
        assert mock_request.call_args.kwargs['params']['api_key'] == 'test-key'

    @patch('utils.api_client.requests.request')
    def test_no_results_returns_none(self, mock_request, client):
        mock_request.return_value = _ok({'results': []})
        assert client.search_movie('zzzz') is None

    @patch('utils.api_client.requests.request')
    def test_never_cached(self, mock_request, client):
        mock_request.return_value = _ok({'results': [{'id': 1, 'title': 'Heat'}]})
        client.search_movie('Heat')
        client.search_movie('Heat')
        assert mock_request.call_count == 2


class TestCacheFirstLookups:
    """Tests for cache-backed details, credits, providers and discovery"""

    @patch('utils.api_client.requests.request')
    def test_details_fetched_once(self, mock_request, client, cache):
        mock_request.return_value = _ok(MATRIX)

        first = client.get_movie_details(603)
        second = client.get_movie_details(603)

        assert mock_request.call_count == 1
        assert first == second
        assert second.genre_names == ['Action', 'Science Fiction']
        assert cache.movies.get(603)['title'] == 'The Matrix'

    @patch('utils.api_client.requests.request')
    def test_credits_fetched_once(self, mock_request, client):
        mock_request.return_value = _ok(MATRIX_CREDITS)

        client.get_movie_credits(603)
        credits = client.get_movie_credits(603)

        assert mock_request.call_count == 1
        assert credits.directors == ['Lana Wachowski']
        assert credits.top_cast() == ['Keanu Reeves']

    @patch('utils.api_client.requests.request')
    def test_discover_same_query_one_upstream_call(self, mock_request, client):
        mock_request.return_value = _ok(DISCOVER_PAGE)

        client.discover_movies(sort_by='popularity.desc', page=1)
        page = client.discover_movies(page=1, sort_by='popularity.desc')

        assert mock_request.call_count == 1
        assert [m.title for m in page.results] == ['The Matrix']
        assert 'with_genres' not in mock_request.call_args.kwargs['params']

    @patch('utils.api_client.requests.request')
    def test_discover_different_pages_are_separate(self, mock_request, client):
        mock_request.return_value = _ok(DISCOVER_PAGE)
        client.discover_movies(page=1)
        client.discover_movies(page=2)
        assert mock_request.call_count == 2

    @patch('utils.cache.time')
    @patch('utils.api_client.requests.request')
    def test_discover_refetches_after_ttl(self, mock_request, mock_time, cache):
        mock_request.return_value = _ok(DISCOVER_PAGE)
        client = TMDBClient('test-key', cache, discover_ttl=60)

        mock_time.time.return_value = 0.0
        client.discover_movies(page=1)
        mock_time.time.return_value = 61.0
        client.discover_movies(page=1)

        assert mock_request.call_count == 2

    @patch('utils.api_client.requests.request')
    def test_watch_providers_cached(self, mock_request, client):
        mock_request.return_value = _ok({'id': 603, 'results': {
            'GB': {'link': 'https://tmdb/603', 'flatrate': [{'provider_name': 'Netflix'}]}
        }})

        client.get_watch_providers(603)
        providers = client.get_watch_providers(603)

        assert mock_request.call_count == 1
        assert providers.for_region('gb').flatrate[0].provider_name == 'Netflix'
        assert providers.for_region('US') is None

    @patch('utils.api_client.requests.request')
    def test_list_providers(self, mock_request, client):
        mock_request.return_value = _ok({'results': [
            {'provider_id': 8, 'provider_name': 'Netflix'},
            {'provider_id': 337, 'provider_name': 'Disney Plus'},
        ]})

        providers = client.list_providers('gb')
        client.list_providers('GB')

        assert [p.provider_name for p in providers] == ['Netflix', 'Disney Plus']
        assert mock_request.call_args.kwargs['params']['watch_region'] == 'GB'
        assert mock_request.call_count == 1


class TestShapeValidation:
    """Tests for boundary validation of TMDB payloads"""

    @patch('utils.api_client.requests.request')
    def test_malformed_details_raise(self, mock_request, client, cache):
        mock_request.return_value = _ok({'title': 'No id'})

        with pytest.raises(ExternalServiceError):
            client.get_movie_details(1)
        assert cache.movies.get(1) is None

    @patch('utils.api_client.requests.request')
    def test_malformed_discover_raises(self, mock_request, client):
        mock_request.return_value = _ok({'results': 'not a list'})
        with pytest.raises(ExternalServiceError):
            client.discover_movies(page=1)

    @patch('utils.api_client.requests.request')
    def test_upstream_error_propagates(self, mock_request, client):
        response = Mock()
        response.status_code = 503
        response.json.return_value = {'status_message': 'Service unavailable'}
        mock_request.return_value = response

        with pytest.raises(ExternalServiceError) as exc_info:
            client.get_movie_details(603)
        assert exc_info.value.status_code == 503

    def test_parse_payload_ignores_extra_fields(self):
        details = parse_payload(MovieDetails, MATRIX, 'movie 603')
        assert details.year == 1999
