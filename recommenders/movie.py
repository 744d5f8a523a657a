"""
Movie recommender for cinescout.
Builds a taste profile from highly-rated movies, pulls popular candidates
from TMDB discovery, scores them against the profile, and optionally keeps
only those streamable on the user's services.
"""

import random
import logging
from collections import Counter
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

from utils.api_client import ExternalServiceError
from utils.config import (
    DEFAULT_DISCOVER_PAGES,
    DEFAULT_LIMIT_RESULTS,
    DEFAULT_RANDOM_ATTEMPTS,
    DEFAULT_RANDOM_PAGE_LIMIT,
)
from utils.counters import add_movie_to_profile, create_empty_profile
from utils.schemas import MovieDetails, MovieSummary, RatingEntry
from utils.scoring import build_recommendation_reasons, calculate_profile_score, rank_by_score
from utils.tmdb import DEFAULT_SORT

from .base import BaseRecommender, BatchReport, ScoredCandidate

logger = logging.getLogger('cinescout')


class RandomRecommendation(NamedTuple):
    """A randomly drawn movie and the reasons it fits, or movie=None when none was found."""
    movie: Optional[MovieDetails]
    reasons: List[str]
    attempts: int


class RecommendationRun(NamedTuple):
    """Everything one pass of the pipeline produced."""
    profile: Dict[str, Counter]
    ranked: List[ScoredCandidate]
    recommendations: List[ScoredCandidate]
    reports: List[BatchReport]


class MovieRecommender(BaseRecommender):
    """
    Frequency-count recommender over TMDB metadata.

    Profiles and candidate pools are rebuilt on every call; only the TMDB
    lookups behind them are cached.
    """

    def build_taste_profile(self, entries: Iterable[RatingEntry]) -> Tuple[Dict[str, Counter], BatchReport]:
        """
        Build a taste profile from highly-rated entries.

        The caller chooses which entries count as highly rated. Each entry is
        resolved by title search (first hit); entries with no match or a
        failed lookup are recorded in the report and skipped.

        Args:
            entries: Rated entries to learn from

        Returns:
            Tuple of (profile counters, per-entry report)
        """
        profile = create_empty_profile()
        report = BatchReport("taste profile")

        for _, entry in self.paced(entries, "Building taste profile"):
            try:
                match = self.resolve_title(entry.title)
                if match is None:
                    report.failure(entry.title, "no TMDB match")
                    continue
                _, _, features = self.fetch_features(match.id)
            except ExternalServiceError as e:
                report.failure(entry.title, str(e))
                continue

            add_movie_to_profile(profile, features)
            report.success(entry.title)

        logger.info(f"Taste profile built from {len(report.succeeded)}/{len(report)} movies")
        return profile, report

    def generate_candidates(self, excluded_titles: Set[str],
                            pages: int = DEFAULT_DISCOVER_PAGES,
                            sort_by: str = DEFAULT_SORT) -> Tuple[List[MovieSummary], BatchReport]:
        """
        Collect unseen movies from the first `pages` discovery pages.

        Candidates whose lower-cased title is in excluded_titles are dropped.
        Movies repeated across pages are kept as separate candidates.

        Args:
            excluded_titles: Lower-cased titles already watched or watchlisted
            pages: Number of discovery pages to fetch
            sort_by: TMDB discovery sort order

        Returns:
            Tuple of (candidate pool in page order, per-page report)
        """
        candidates = []
        report = BatchReport("candidate pool")

        for page in range(1, pages + 1):
            label = f"discover page {page}"
            try:
                result = self.tmdb.discover_movies(sort_by=sort_by, page=page)
            except ExternalServiceError as e:
                report.failure(label, str(e))
                continue
            candidates.extend(m for m in result.results if m.title.lower() not in excluded_titles)
            report.success(label)

        logger.info(f"Candidate pool: {len(candidates)} movies from {len(report.succeeded)} pages")
        return candidates, report

    def score_candidates(self, candidates: List[MovieSummary], profile: Dict[str, Counter],
                         limit: int = DEFAULT_LIMIT_RESULTS) -> Tuple[List[ScoredCandidate], BatchReport]:
        """
        Rank candidates by their additive profile score.

        Zero scores are dropped, ties keep pool order, and the result is cut
        to the top `limit`.

        Returns:
            Tuple of (ranked candidates, per-candidate report)
        """
        scored = []
        report = BatchReport("scoring")

        for _, movie in self.paced(candidates, "Scoring candidates"):
            try:
                details, _, features = self.fetch_features(movie.id)
            except ExternalServiceError as e:
                report.failure(movie.title, str(e))
                continue
            score, matches = calculate_profile_score(profile, features)
            scored.append((ScoredCandidate(movie=movie, details=details, score=score, matches=matches), score))
            report.success(movie.title)

        ranked = [candidate for candidate, _ in rank_by_score(scored, limit)]
        return ranked, report

    def get_recommendations(self, highly_rated: Iterable[RatingEntry], excluded_titles: Set[str],
                            availability=None, pages: int = DEFAULT_DISCOVER_PAGES,
                            limit: int = DEFAULT_LIMIT_RESULTS) -> RecommendationRun:
        """
        Run the full pipeline: profile, candidates, scoring, then availability.

        Args:
            highly_rated: Entries that feed the taste profile
            excluded_titles: Lower-cased titles to keep out of the pool
            availability: Optional StreamingAvailability; when given, the ranked
                list is filtered to the user's services (never backfilled)
            pages: Discovery pages to pull candidates from
            limit: Number of top-scored candidates to keep

        Returns:
            RecommendationRun with the profile, ranked list, final list and reports
        """
        profile, profile_report = self.build_taste_profile(highly_rated)
        candidates, pool_report = self.generate_candidates(excluded_titles, pages=pages)
        ranked, score_report = self.score_candidates(candidates, profile, limit=limit)
        reports = [profile_report, pool_report, score_report]

        if availability is None:
            return RecommendationRun(profile, ranked, ranked, reports)

        final, availability_report = availability.filter_recommendations(ranked)
        reports.append(availability_report)
        return RecommendationRun(profile, ranked, final, reports)

    def random_recommendation(self, profile: Dict[str, Counter], excluded_titles: Set[str],
                              max_attempts: int = DEFAULT_RANDOM_ATTEMPTS,
                              page_limit: int = DEFAULT_RANDOM_PAGE_LIMIT,
                              rng: Optional[random.Random] = None) -> RandomRecommendation:
        """
        Draw one random unseen movie and explain why it fits the profile.

        Each attempt samples a random discovery page and a random
        non-excluded movie from it. Running out of attempts is a normal
        "no recommendation" result, not an error.

        Args:
            profile: Taste profile to explain the pick against
            excluded_titles: Lower-cased titles already watched or watchlisted
            max_attempts: Attempts before giving up
            page_limit: Highest discovery page to sample
            rng: Optional random source

        Returns:
            RandomRecommendation
        """
        rng = rng or random.Random()

        for attempt in range(1, max_attempts + 1):
            page = rng.randint(1, page_limit)
            try:
                result = self.tmdb.discover_movies(sort_by=DEFAULT_SORT, page=page)
            except ExternalServiceError as e:
                logger.warning(f"Random pick attempt {attempt}: discover page {page} failed: {e}")
                continue

            pool = [m for m in result.results if m.title.lower() not in excluded_titles]
            if not pool:
                continue
            pick = rng.choice(pool)

            try:
                details, _, features = self.fetch_features(pick.id)
            except ExternalServiceError as e:
                logger.warning(f"Random pick attempt {attempt}: {pick.title} failed: {e}")
                continue

            reasons = build_recommendation_reasons(profile, features, details.overview or "")
            return RandomRecommendation(details, reasons, attempt)

        return RandomRecommendation(None, [], max_attempts)
