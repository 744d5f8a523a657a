"""
cinescout Utilities Package.

This package contains modular utility functions organized by responsibility.
Public names are re-exported here for convenience.
"""

# Config utilities
from .config import (
    __version__,
    TOP_CAST_COUNT,
    DIRECTOR_JOBS,
    WRITER_JOBS,
    HIGH_RATING_THRESHOLD,
    DEFAULT_DISCOVER_PAGES,
    DEFAULT_LIMIT_RESULTS,
    DEFAULT_RANDOM_ATTEMPTS,
    DEFAULT_ITEM_DELAY,
    ConfigError,
    get_config_section,
    parse_services,
    load_config,
    get_tmdb_config,
    get_streaming_config,
    get_recommendation_config,
    get_cache_config,
    get_paths_config,
)

# Display utilities
from .display import (
    RED,
    GREEN,
    YELLOW,
    CYAN,
    RESET,
    ANSI_PATTERN,
    ColoredFormatter,
    setup_logging,
    print_status,
    log_warning,
    log_error,
    show_progress,
    format_recommendation,
    print_batch_failures,
)

# Cache utilities
from .cache import (
    CacheError,
    CacheStore,
    canonical_query_key,
)

# API clients
from .api_client import BaseAPIClient, ExternalServiceError
from .tmdb import TMDBClient, create_tmdb_client

# Export loading
from .exports import (
    load_ratings,
    load_diary,
    load_watchlist,
    select_highly_rated,
    excluded_titles,
    watched_in_year,
    cache_saved_list,
    load_saved_list,
)

# Counter utilities
from .counters import (
    PROFILE_DIMENSIONS,
    create_empty_profile,
    tokenize_synopsis,
    extract_features,
    add_movie_to_profile,
    profile_is_empty,
    top_attributes,
)

# Scoring utilities
from .scoring import (
    calculate_profile_score,
    rank_by_score,
    build_recommendation_reasons,
)
