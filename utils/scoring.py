"""
Profile scoring utilities for cinescout.
Handles additive candidate-to-profile scoring, ranking, and reasoning text.
"""

from collections import Counter
from typing import Dict, List, Sequence, Tuple, TypeVar

from .config import DEFAULT_LIMIT_RESULTS, SYNOPSIS_EXCERPT_LENGTH
from .counters import PROFILE_DIMENSIONS

T = TypeVar('T')

FALLBACK_REASON = "It's a popular pick you haven't seen yet."


def calculate_profile_score(
    profile: Dict[str, Counter],
    features: Dict[str, List[str]]
) -> Tuple[int, Dict[str, List[str]]]:
    """
    Score a candidate's attributes against a taste profile.

    The score is the sum, over every dimension, of the profile weight of each
    candidate attribute the profile knows about. Raw counts, no normalization.

    Args:
        profile: Taste profile counters
        features: Candidate attributes per dimension (see extract_features)

    Returns:
        Tuple of (score, matched attributes per dimension)
    """
    score = 0
    matches = {}
    for dimension in PROFILE_DIMENSIONS:
        weights = profile.get(dimension, {})
        matched = []
        for value in dict.fromkeys(features.get(dimension, [])):
            weight = weights.get(value, 0)
            if weight > 0:
                score += weight
                matched.append(value)
        matches[dimension] = matched
    return score, matches


def rank_by_score(scored: Sequence[Tuple[T, int]], limit: int = DEFAULT_LIMIT_RESULTS) -> List[Tuple[T, int]]:
    """
    Drop zero scores, sort by descending score, and keep the top `limit`.

    The sort is stable, so equal scores keep their input order.
    """
    positive = [pair for pair in scored if pair[1] > 0]
    positive.sort(key=lambda pair: pair[1], reverse=True)
    return positive[:limit]


def truncate_synopsis(text: str, length: int = SYNOPSIS_EXCERPT_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length].rstrip() + "..."


def build_recommendation_reasons(
    profile: Dict[str, Counter],
    features: Dict[str, List[str]],
    overview: str = ""
) -> List[str]:
    """
    Explain in plain sentences why a movie fits the profile.

    Each reason appears only when its overlap is non-empty; with no overlap
    at all a single generic reason is returned.
    """
    _, matches = calculate_profile_score(profile, features)
    reasons = []

    if matches['genres']:
        reasons.append(f"It's a {', '.join(matches['genres'])} movie, genres you rate highly.")
    if matches['actors']:
        reasons.append(f"It stars {', '.join(matches['actors'])}, who appear in movies you love.")
    if matches['directors']:
        reasons.append(f"It's directed by {', '.join(matches['directors'])}, a director you rate highly.")
    if matches['keywords'] and overview:
        reasons.append(f"Its story touches on themes you enjoy: {truncate_synopsis(overview)}")

    return reasons or [FALLBACK_REASON]
