"""
Counter utilities for cinescout.
Handles feature extraction and taste profile accumulation.
"""

import re
from collections import Counter
from typing import Dict, List, Optional, Set

from .config import MIN_KEYWORD_LENGTH, TOP_CAST_COUNT
from .schemas import MovieCredits, MovieDetails

# Dimensions of a taste profile, in scoring order
PROFILE_DIMENSIONS = ('genres', 'actors', 'directors', 'writers', 'keywords')

TOKEN_SPLIT = re.compile(r"[\W_]+", re.UNICODE)


def create_empty_profile() -> Dict[str, Counter]:
    """
    Create empty counter structure for a taste profile.

    Returns:
        Dictionary with a Counter for each profile dimension
    """
    return {dimension: Counter() for dimension in PROFILE_DIMENSIONS}


def tokenize_synopsis(text: Optional[str]) -> List[str]:
    """
    Split a synopsis into lower-cased keyword tokens.

    Splits on whitespace and punctuation and keeps tokens longer than two
    characters, in order of appearance with duplicates removed.
    """
    if not text:
        return []
    tokens = []
    seen = set()
    for token in TOKEN_SPLIT.split(text.lower()):
        if len(token) >= MIN_KEYWORD_LENGTH and token not in seen:
            seen.add(token)
            tokens.append(token)
    return tokens


def extract_features(details: MovieDetails, credits: MovieCredits) -> Dict[str, List[str]]:
    """
    Pull the scoring attributes out of a movie's details and credits.

    Returns:
        Dict mapping each profile dimension to the movie's attribute values
    """
    return {
        'genres': details.genre_names,
        'actors': credits.top_cast(TOP_CAST_COUNT),
        'directors': credits.directors,
        'writers': credits.writers,
        'keywords': tokenize_synopsis(details.overview),
    }


def add_movie_to_profile(profile: Dict[str, Counter], features: Dict[str, List[str]]) -> None:
    """
    Count one highly-rated movie into the profile.

    Each attribute counts at most once per movie, so a weight is the number
    of movies carrying it.
    """
    for dimension in PROFILE_DIMENSIONS:
        values: Set[str] = {v for v in features.get(dimension, []) if v}
        profile[dimension].update(values)


def profile_is_empty(profile: Dict[str, Counter]) -> bool:
    return not any(profile[dimension] for dimension in PROFILE_DIMENSIONS)


def top_attributes(profile: Dict[str, Counter], dimension: str, count: int = 5) -> List[str]:
    """Highest-weighted attributes for a dimension, for display."""
    return [name for name, _ in profile[dimension].most_common(count)]
