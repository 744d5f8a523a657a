"""
Tests for utils/exports.py - Letterboxd CSV loading.
"""

import os
import tempfile

import pytest

from utils.cache import CacheStore
from utils.exports import (
    cache_saved_list,
    excluded_titles,
    load_diary,
    load_ratings,
    load_saved_list,
    load_watchlist,
    select_highly_rated,
    watched_in_year,
)
from utils.schemas import RatingEntry, SavedListEntry


@pytest.fixture
def data_dir():
    with tempfile.TemporaryDirectory() as tmp:
        yield tmp


def _write(data_dir, name, text):
    with open(os.path.join(data_dir, name), 'w', encoding='utf-8') as f:
        f.write(text)


class TestLoadRatings:
    """Tests for load_ratings() function."""

    def test_reads_rows(self, data_dir):
        _write(data_dir, 'ratings.csv',
               "Date,Name,Year,Letterboxd URI,Rating\n"
               "2024-01-02,Heat,1995,https://boxd.it/a,4.5\n"
               "2024-01-03,Cats,2019,https://boxd.it/b,0.5\n")

        ratings = load_ratings(data_dir)

        assert [(r.title, r.year, r.rating) for r in ratings] == [('Heat', 1995, 4.5), ('Cats', 2019, 0.5)]

    def test_missing_file_is_empty(self, data_dir):
        assert load_ratings(data_dir) == []

    def test_skips_bad_rows(self, data_dir):
        _write(data_dir, 'ratings.csv',
               "Date,Name,Year,Letterboxd URI,Rating\n"
               "2024-01-02,Heat,1995,https://boxd.it/a,4\n"
               "2024-01-02,,1995,https://boxd.it/c,4\n"
               "2024-01-02,Unrated,1995,https://boxd.it/d,\n"
               "2024-01-02,Too High,1995,https://boxd.it/e,7\n"
               "2024-01-02,Not A Number,1995,https://boxd.it/f,great\n")

        assert [r.title for r in load_ratings(data_dir)] == ['Heat']

    def test_handles_byte_order_mark(self, data_dir):
        _write(data_dir, 'ratings.csv', "\ufeffDate,Name,Year,Letterboxd URI,Rating\n2024-01-02,Heat,1995,x,5\n")
        assert load_ratings(data_dir)[0].title == 'Heat'


class TestLoadDiaryAndWatchlist:
    """Tests for load_diary() and load_watchlist()."""

    def test_diary_rows(self, data_dir):
        _write(data_dir, 'diary.csv',
               "Date,Name,Year,Letterboxd URI,Rating,Rewatch,Tags,Watched Date\n"
               "2023-05-01,Heat,1995,x,4,Yes,,2023-04-30\n"
               "2023-06-01,Alien,1979,y,,,,2023-06-01\n")

        diary = load_diary(data_dir)

        assert diary[0].title == 'Heat'
        assert diary[0].rewatch is True
        assert diary[0].watched_date == '2023-04-30'
        assert diary[1].rating is None
        assert diary[1].rewatch is False

    def test_watchlist_rows(self, data_dir):
        _write(data_dir, 'watchlist.csv',
               "Date,Name,Year,Letterboxd URI\n"
               "2024-02-01,Paddington 2,2017,x\n")

        watchlist = load_watchlist(data_dir)

        assert watchlist[0].title == 'Paddington 2'
        assert watchlist[0].year == 2017
        assert watchlist[0].added_date == '2024-02-01'


class TestHelpers:
    """Tests for selection and exclusion helpers."""

    def test_select_highly_rated_threshold_inclusive(self):
        ratings = [
            RatingEntry(title='A', rating=4),
            RatingEntry(title='B', rating=3.5),
            RatingEntry(title='C', rating=5),
        ]
        assert [r.title for r in select_highly_rated(ratings)] == ['A', 'C']

    def test_select_highly_rated_custom_threshold(self):
        ratings = [RatingEntry(title='A', rating=4), RatingEntry(title='B', rating=4.5)]
        assert [r.title for r in select_highly_rated(ratings, threshold=4.5)] == ['B']

    def test_excluded_titles_lowercased_union(self, data_dir):
        _write(data_dir, 'diary.csv', "Name,Year,Watched Date\nHeat,1995,2023-01-01\n")
        _write(data_dir, 'watchlist.csv', "Name,Year,Date\nALIEN,1979,2024-01-01\n")

        excluded = excluded_titles(load_diary(data_dir), load_watchlist(data_dir))

        assert excluded == {'heat', 'alien'}

    def test_watched_in_year(self, data_dir):
        _write(data_dir, 'diary.csv',
               "Name,Year,Watched Date\nHeat,1995,2023-01-01\nAlien,1979,2024-03-03\n")
        assert [d.title for d in watched_in_year(load_diary(data_dir), 2024)] == ['Alien']


class TestSavedLists:
    """Tests for cached saved-list scrapes."""

    def test_cache_and_load(self):
        entry = SavedListEntry(label='Favourites', url='https://letterboxd.com/me/list/favs/')
        with CacheStore(':memory:') as cache:
            assert load_saved_list(cache, entry) is None
            cache_saved_list(cache, entry, ['Heat', 'Alien'])
            assert load_saved_list(cache, entry) == ['Heat', 'Alien']

    def test_trailing_slash_same_list(self):
        with CacheStore(':memory:') as cache:
            cache_saved_list(cache, SavedListEntry(label='A', url='https://x/list/'), ['Heat'])
            assert load_saved_list(cache, SavedListEntry(label='A', url='https://x/list')) == ['Heat']
