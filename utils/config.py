"""
Configuration utilities for cinescout.
Handles config loading, environment overrides, and section access.
"""

import os
import re
from typing import Dict, List, Optional

import yaml

# Project version - single source of truth
__version__ = "1.0.0"

# Common constants used across recommenders
TOP_CAST_COUNT = 5                  # Number of top-billed actors in the taste profile
DIRECTOR_JOBS = ('Director',)
WRITER_JOBS = ('Screenplay', 'Story', 'Writer')
MIN_KEYWORD_LENGTH = 3              # Synopsis tokens must be longer than two characters
HIGH_RATING_THRESHOLD = 4           # Ratings at or above this feed the taste profile
DEFAULT_DISCOVER_PAGES = 5
DEFAULT_LIMIT_RESULTS = 5
DEFAULT_RANDOM_ATTEMPTS = 20
DEFAULT_RANDOM_PAGE_LIMIT = 10
DEFAULT_ITEM_DELAY = 0.25           # Seconds between items in batch loops
SYNOPSIS_EXCERPT_LENGTH = 150

# Cache lifetimes
DEFAULT_DISCOVER_TTL_HOURS = 24
DEFAULT_PROVIDERS_TTL_HOURS = 6
DEFAULT_CATALOG_TTL_DAYS = 7

DEFAULT_CONFIG_PATH = 'config.yml'
DEFAULT_DATA_DIR = 'data'
DEFAULT_CACHE_PATH = os.path.join('cache', 'cache.sqlite')

REGION_PATTERN = re.compile(r'^[A-Za-z]{2}$')


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def get_config_section(config: Dict, key: str, default: Dict = None) -> Dict:
    """
    Get a config section case-insensitively.

    Args:
        config: The configuration dictionary
        key: The key to look for (will check lowercase and uppercase)
        default: Default value if key not found

    Returns:
        The config section or default value
    """
    if default is None:
        default = {}
    section = config.get(key.lower(), config.get(key.upper(), default))
    return section if section is not None else default


def parse_services(services) -> List[str]:
    """
    Normalize subscribed streaming services to lower-cased names.

    Accepts the comma-separated string form used in .env files as well as a
    YAML list.
    """
    if not services:
        return []
    if isinstance(services, str):
        services = services.split(',')
    return [str(s).strip().lower() for s in services if str(s).strip()]


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """
    Load YAML configuration and apply environment overrides.

    Environment variables take precedence over all config values:
        TMDB_API_KEY            -> tmdb.api_key
        STREAMING_COUNTRY_CODE  -> streaming.country_code
        STREAMING_SERVICES      -> streaming.services

    A missing config file is not an error; the environment may supply
    everything that is required. An unreadable or malformed file is.

    Args:
        config_path: Path to config.yml file

    Returns:
        Parsed and merged config dictionary

    Raises:
        ConfigError: If the file exists but cannot be parsed
    """
    config = {}
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

    env_overrides = [
        ('TMDB_API_KEY', 'tmdb', 'api_key'),
        ('STREAMING_COUNTRY_CODE', 'streaming', 'country_code'),
        ('STREAMING_SERVICES', 'streaming', 'services'),
    ]

    for env_var, section, key in env_overrides:
        value = os.environ.get(env_var)
        if value:
            if not isinstance(config.get(section), dict):
                config[section] = {}
            config[section][key] = value

    return config


def get_tmdb_config(config: Dict, required: bool = True) -> Dict:
    """
    Get TMDB configuration section.

    Raises:
        ConfigError: If required and no API key is configured
    """
    tmdb_config = get_config_section(config, 'tmdb')
    api_key = tmdb_config.get('api_key')
    if required and not api_key:
        raise ConfigError("TMDB API key is required (set tmdb.api_key or TMDB_API_KEY)")
    return {'api_key': api_key}


def get_streaming_config(config: Dict, required: bool = True) -> Dict:
    """
    Get streaming region and subscribed services.

    Returns:
        Dict with upper-cased 'country_code' and lower-cased 'services' list

    Raises:
        ConfigError: If required and the region is missing or not two letters
    """
    streaming = get_config_section(config, 'streaming')
    country_code = streaming.get('country_code') or streaming.get('region')
    if country_code:
        country_code = str(country_code).strip()
        if not REGION_PATTERN.match(country_code):
            raise ConfigError(f"Invalid streaming country code: {country_code!r}")
        country_code = country_code.upper()
    elif required:
        raise ConfigError("Streaming country code is required (set streaming.country_code or STREAMING_COUNTRY_CODE)")

    return {
        'country_code': country_code,
        'services': parse_services(streaming.get('services')),
    }


def get_recommendation_config(config: Dict) -> Dict:
    """Get recommendation tuning options with defaults."""
    rec = get_config_section(config, 'recommendations')
    return {
        'discover_pages': int(rec.get('discover_pages', DEFAULT_DISCOVER_PAGES)),
        'limit': int(rec.get('limit', DEFAULT_LIMIT_RESULTS)),
        'random_attempts': int(rec.get('random_attempts', DEFAULT_RANDOM_ATTEMPTS)),
        'random_page_limit': int(rec.get('random_page_limit', DEFAULT_RANDOM_PAGE_LIMIT)),
        'min_rating': float(rec.get('min_rating', HIGH_RATING_THRESHOLD)),
        'item_delay': float(rec.get('item_delay', DEFAULT_ITEM_DELAY)),
    }


def get_cache_config(config: Dict) -> Dict:
    """Get cache lifetimes in seconds."""
    cache = get_config_section(config, 'cache')
    return {
        'discover_ttl': int(float(cache.get('discover_ttl_hours', DEFAULT_DISCOVER_TTL_HOURS)) * 3600),
        'providers_ttl': int(float(cache.get('providers_ttl_hours', DEFAULT_PROVIDERS_TTL_HOURS)) * 3600),
        'catalog_ttl': int(float(cache.get('catalog_ttl_days', DEFAULT_CATALOG_TTL_DAYS)) * 86400),
    }


def get_paths_config(config: Dict, data_dir: Optional[str] = None) -> Dict:
    """Get data directory and cache database path, with CLI override for data_dir."""
    paths = get_config_section(config, 'paths')
    return {
        'data_dir': data_dir or paths.get('data_dir', DEFAULT_DATA_DIR),
        'cache_path': paths.get('cache_path', DEFAULT_CACHE_PATH),
    }
