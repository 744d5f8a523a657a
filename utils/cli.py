"""
Command line interface for cinescout.
Wires config, cache, TMDB client and recommenders together for each command.
"""

import argparse
import sys
from datetime import datetime
from typing import List, Optional

from recommenders.availability import StreamingAvailability
from recommenders.movie import MovieRecommender
from recommenders.watchlist import WatchlistTracker

from .api_client import ExternalServiceError
from .cache import CacheError, CacheStore
from .config import (
    __version__,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    get_paths_config,
    get_recommendation_config,
    get_streaming_config,
    load_config,
)
from .counters import profile_is_empty, top_attributes
from .display import (
    CYAN, GREEN, RESET, YELLOW,
    format_recommendation,
    log_error,
    log_warning,
    print_batch_failures,
    print_status,
    setup_logging,
)
from .exports import (
    excluded_titles,
    load_diary,
    load_ratings,
    load_watchlist,
    select_highly_rated,
    watched_in_year,
)
from .tmdb import create_tmdb_client


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cinescout',
        description='Movie recommendations from your Letterboxd history and streaming services'
    )
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Path to config.yml')
    parser.add_argument('--data-dir', help='Directory holding the Letterboxd CSV exports')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('recommend', help='Top picks from popular movies, filtered to your services')
    commands.add_parser('random', help='One random unseen movie with reasons it suits you')
    commands.add_parser('track', help='Report watchlist movies that became (un)available')
    commands.add_parser('pick', help='Pick a random watchlist movie you can stream now')
    where = commands.add_parser('where', help='Find where to stream a movie')
    where.add_argument('title', nargs='+', help='Movie title')
    commands.add_parser('providers', help='List streaming services in your region')
    stats = commands.add_parser('stats', help='Counts from your exports')
    stats.add_argument('--year', type=int, help='List movies watched in this year')
    cache = commands.add_parser('cache', help='Show cache statistics')
    cache.add_argument('--clear', action='store_true', help='Delete every cached entry')
    return parser


class Session:
    """Per-invocation wiring: config, paths, and the lazily opened cache/client."""

    def __init__(self, config: dict, data_dir: Optional[str] = None):
        self.config = config
        self.paths = get_paths_config(config, data_dir)
        self.options = get_recommendation_config(config)
        self._cache = None
        self._tmdb = None

    @property
    def cache(self) -> CacheStore:
        if self._cache is None:
            self._cache = CacheStore(self.paths['cache_path'])
        return self._cache

    @property
    def tmdb(self):
        if self._tmdb is None:
            self._tmdb = create_tmdb_client(self.config, self.cache)
        return self._tmdb

    def streaming(self, require_services: bool = True):
        streaming = get_streaming_config(self.config)
        if require_services and not streaming['services']:
            raise ConfigError("No subscribed services configured (set streaming.services or STREAMING_SERVICES)")
        return streaming

    def availability(self, require_services: bool = True):
        streaming = self.streaming(require_services)
        return StreamingAvailability(
            self.tmdb, streaming['services'], streaming['country_code'],
            item_delay=self.options['item_delay'], progress=True
        )

    def recommender(self):
        return MovieRecommender(self.tmdb, item_delay=self.options['item_delay'], progress=True)

    def close(self):
        if self._cache is not None:
            self._cache.close()


def _report_failures(report) -> None:
    if not report.complete:
        print_batch_failures(report.label, report.failed)


def _build_profile(session: Session):
    ratings = load_ratings(session.paths['data_dir'])
    highly_rated = select_highly_rated(ratings, session.options['min_rating'])
    if not highly_rated:
        log_warning(f"No ratings of {session.options['min_rating']:g}+ found in {session.paths['data_dir']}")
        return None
    print(f"Building taste profile from {len(highly_rated)} highly-rated movies...")
    profile, report = session.recommender().build_taste_profile(highly_rated)
    _report_failures(report)
    if profile_is_empty(profile):
        log_warning("Could not resolve any of your rated movies on TMDB")
        return None
    print(f"{YELLOW}Favourite genres:{RESET} {', '.join(top_attributes(profile, 'genres'))}")
    return profile


def _exclusions(session: Session):
    data_dir = session.paths['data_dir']
    return excluded_titles(load_diary(data_dir), load_watchlist(data_dir))


def cmd_recommend(session: Session, args) -> int:
    streaming = get_streaming_config(session.config, required=False)
    availability = session.availability(require_services=False) if streaming['services'] else None
    if availability is None:
        log_warning("No subscribed services configured; showing recommendations without availability filtering")

    data_dir = session.paths['data_dir']
    highly_rated = select_highly_rated(load_ratings(data_dir), session.options['min_rating'])
    if not highly_rated:
        log_warning(f"No ratings of {session.options['min_rating']:g}+ found in {data_dir}")
        return 0

    recommender = session.recommender()
    run = recommender.get_recommendations(
        highly_rated, _exclusions(session), availability=availability,
        pages=session.options['discover_pages'], limit=session.options['limit']
    )
    for report in run.reports:
        _report_failures(report)

    if not run.recommendations:
        if run.ranked:
            print_status(f"None of your top {len(run.ranked)} matches stream on your services in "
                         f"{availability.region}", "warning")
        else:
            print_status("No candidates matched your taste profile", "warning")
        return 0

    print(f"\n{GREEN}Recommended for you:{RESET}")
    for i, candidate in enumerate(run.recommendations, 1):
        print(format_recommendation(candidate.to_display_dict(), index=i))
    return 0


def cmd_random(session: Session, args) -> int:
    profile = _build_profile(session)
    if profile is None:
        return 0
    result = session.recommender().random_recommendation(
        profile, _exclusions(session),
        max_attempts=session.options['random_attempts'],
        page_limit=session.options['random_page_limit'],
    )
    if result.movie is None:
        print_status(f"No recommendation found after {result.attempts} attempts", "warning")
        return 0
    year = f" ({result.movie.year})" if result.movie.year else ""
    print(f"\nHow about {CYAN}{result.movie.title}{RESET}{year}?")
    for reason in result.reasons:
        print(f"  - {reason}")
    return 0


def cmd_track(session: Session, args) -> int:
    watchlist = load_watchlist(session.paths['data_dir'])
    if not watchlist:
        log_warning("Your watchlist is empty or watchlist.csv is missing")
        return 0
    tracker = WatchlistTracker(session.availability(), session.cache)
    run = tracker.check_for_changes(watchlist)
    if not run.report.complete:
        print_batch_failures(run.report.label, run.report.failed)
        print_status(f"{len(run.report.failed)} title(s) were not checked and will be treated as new next run",
                     "warning")
    if not run.changes:
        print_status("No changes in watchlist availability")
        return 0
    for change in run.changes:
        print_status(change.message, "success" if change.now_available else "warning")
    return 0


def cmd_pick(session: Session, args) -> int:
    watchlist = load_watchlist(session.paths['data_dir'])
    if not watchlist:
        log_warning("Your watchlist is empty or watchlist.csv is missing")
        return 0
    pick = WatchlistTracker(session.availability(), session.cache).pick_available(watchlist)
    if pick is None:
        print_status("Could not find any movie from your watchlist available on your subscribed services.",
                     "warning")
        return 0
    print(f"How about watching: {CYAN}{pick.entry.title}{RESET}?")
    print("You can stream it on:")
    for provider in pick.providers:
        print(f"- {provider}")
    if pick.link:
        print(f"\nWatch it here: {pick.link}")
    return 0


def cmd_where(session: Session, args) -> int:
    title = ' '.join(args.title)
    result = session.availability(require_services=False).where_to_watch(title)
    if result.movie is None:
        print_status("Movie not found on TMDB.", "warning")
        return 0
    year = f" ({result.movie.release_date[:4]})" if result.movie.release_date else ""
    print(f"Found movie: {result.movie.title}{year}")
    if not result.offers:
        print_status("Not available for streaming in your country.", "warning")
        return 0
    print("Available to stream on:")
    for offer in result.offers:
        print(f"- {offer.name}{' (Subscribed)' if offer.subscribed else ''}")
    if result.link:
        print(f"\nWatch it here: {result.link}")
    return 0


def cmd_providers(session: Session, args) -> int:
    availability = session.availability(require_services=False)
    names = availability.list_region_providers()
    if not names:
        print_status(f"Could not find any streaming services for country code: {availability.region}", "warning")
        return 0
    print(f"Available streaming services in {availability.region}:")
    print('\n'.join(names))
    print("\nCopy the exact names of the services you subscribe to into streaming.services "
          "(or STREAMING_SERVICES), separated by commas.")
    return 0


def cmd_stats(session: Session, args) -> int:
    data_dir = session.paths['data_dir']
    diary = load_diary(data_dir)
    watchlist = load_watchlist(data_dir)
    if not diary and not watchlist:
        log_error(f"No data files found in {data_dir}")
        return 1
    print(f"You have watched {len(diary)} movies.")
    print(f"You have {len(watchlist)} movies on your watchlist.")
    if args.year:
        movies = watched_in_year(diary, args.year)
        if movies:
            print(f"\nMovies watched in {args.year}:")
            for entry in movies:
                print(f"- {entry.title}")
        else:
            print(f"No movies found for the year {args.year}.")
    return 0


def cmd_cache(session: Session, args) -> int:
    if args.clear:
        session.cache.clear()
        print_status("Cache cleared", "success")
    for table, count in session.cache.stats().items():
        print(f"  {table}: {count}")
    return 0


COMMANDS = {
    'recommend': cmd_recommend,
    'random': cmd_random,
    'track': cmd_track,
    'pick': cmd_pick,
    'where': cmd_where,
    'providers': cmd_providers,
    'stats': cmd_stats,
    'cache': cmd_cache,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point: parse arguments, run one command, and map failures to exit codes.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        log_error(str(e))
        return 1

    logger = setup_logging(debug=args.debug, config=config)
    logger.debug(f"cinescout v{__version__} running '{args.command}'")

    start_time = datetime.now()
    session = Session(config, args.data_dir)
    try:
        return COMMANDS[args.command](session, args)
    except ConfigError as e:
        log_error(f"Configuration error: {e}")
        return 1
    except CacheError as e:
        log_error(f"Cache error: {e}")
        return 1
    except ExternalServiceError as e:
        log_error(f"Error fetching data from TMDB: {e}")
        return 1
    finally:
        session.close()
        logger.debug(f"Finished in {(datetime.now() - start_time).total_seconds():.1f}s")


if __name__ == '__main__':
    sys.exit(main())
