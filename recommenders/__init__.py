"""
cinescout - Recommendation engines over TMDB metadata.
"""

from .base import BaseRecommender, BatchReport, ItemResult, ScoredCandidate
from .movie import MovieRecommender, RandomRecommendation, RecommendationRun
from .availability import Availability, StreamingAvailability, WhereToWatch
from .watchlist import AvailabilityChange, TrackerRun, WatchlistPick, WatchlistTracker

__all__ = [
    'BaseRecommender', 'BatchReport', 'ItemResult', 'ScoredCandidate',
    'MovieRecommender', 'RandomRecommendation', 'RecommendationRun',
    'Availability', 'StreamingAvailability', 'WhereToWatch',
    'AvailabilityChange', 'TrackerRun', 'WatchlistPick', 'WatchlistTracker',
]
