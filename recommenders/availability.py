"""
Streaming availability for cinescout.
Checks TMDB watch providers against the user's subscriptions in one region.
"""

import logging
from typing import Iterable, List, NamedTuple, Optional, Tuple

from utils.api_client import ExternalServiceError
from utils.config import DEFAULT_ITEM_DELAY
from utils.schemas import MovieSummary, RegionProviders
from utils.tmdb import TMDBClient

from .base import BaseRecommender, BatchReport, ScoredCandidate

logger = logging.getLogger('cinescout')


class Availability(NamedTuple):
    """
    Subscription-inclusive availability of one movie in the configured region.

    providers holds the subscribed matches. region_providers holds every
    flatrate offer in the region and is only filled when the movie is available.
    """
    is_available: bool
    providers: List[str]
    link: Optional[str] = None
    region_providers: Tuple[str, ...] = ()


class ProviderListing(NamedTuple):
    name: str
    subscribed: bool


class WhereToWatch(NamedTuple):
    """Streaming offers for one looked-up title; movie is None when nothing matched."""
    movie: Optional[MovieSummary]
    offers: List[ProviderListing]
    link: Optional[str] = None


def region_availability(region_offers: Optional[RegionProviders], services: Iterable[str]) -> Availability:
    """
    Decide availability from one region's offers.

    Only flatrate offers count; names match subscriptions case-insensitively.
    """
    if region_offers is None:
        return Availability(False, [])
    matched = region_offers.subscribed_offers(services)
    if not matched:
        return Availability(False, [])
    everything = tuple(offer.provider_name for offer in region_offers.flatrate)
    return Availability(True, matched, region_offers.link, everything)


class StreamingAvailability(BaseRecommender):
    """
    Availability checks for a fixed region and set of subscribed services.
    """

    def __init__(self, tmdb: TMDBClient, services: Iterable[str], region: str,
                 item_delay: float = DEFAULT_ITEM_DELAY, progress: bool = False):
        """
        Args:
            tmdb: Cache-backed TMDB client
            services: Subscribed service names (any case)
            region: Two-letter country code
        """
        super().__init__(tmdb, item_delay, progress)
        self.services = [s.lower() for s in services]
        self.region = region.upper()

    def check(self, movie_id: int) -> Availability:
        """Availability of a TMDB movie on the subscribed services."""
        providers = self.tmdb.get_watch_providers(movie_id)
        return region_availability(providers.for_region(self.region), self.services)

    def filter_recommendations(self, ranked: List[ScoredCandidate]) -> Tuple[List[ScoredCandidate], BatchReport]:
        """
        Keep ranked candidates streamable on a subscribed service.

        This only filters: if fewer candidates survive than were passed in,
        the shorter list is returned as is.

        Returns:
            Tuple of (surviving candidates with providers and link set, report)
        """
        kept = []
        report = BatchReport("availability")

        for _, candidate in self.paced(ranked, "Checking availability"):
            try:
                availability = self.check(candidate.movie.id)
            except ExternalServiceError as e:
                report.failure(candidate.title, str(e))
                continue
            report.success(candidate.title)
            if availability.is_available:
                kept.append(candidate.model_copy(update={
                    'providers': availability.providers,
                    'link': availability.link,
                }))

        logger.info(f"{len(kept)}/{len(ranked)} recommendations streamable in {self.region}")
        return kept, report

    def where_to_watch(self, title: str) -> WhereToWatch:
        """
        Look up where a single title streams in the region.

        A title with no TMDB match, or with no flatrate offers in the region,
        gives an empty result. Upstream failures propagate to the caller.
        """
        movie = self.resolve_title(title)
        if movie is None:
            return WhereToWatch(None, [])

        region_offers = self.tmdb.get_watch_providers(movie.id).for_region(self.region)
        if region_offers is None or not region_offers.flatrate:
            return WhereToWatch(movie, [])

        offers = [
            ProviderListing(offer.provider_name, offer.provider_name.lower() in self.services)
            for offer in region_offers.flatrate
        ]
        return WhereToWatch(movie, offers, region_offers.link)

    def list_region_providers(self) -> List[str]:
        """Every provider name TMDB lists for the region, alphabetically."""
        return sorted({p.provider_name for p in self.tmdb.list_providers(self.region)}, key=str.lower)
