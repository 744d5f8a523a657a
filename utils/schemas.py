"""
Validated record shapes for cinescout.

TMDB payloads are parsed into these models at the client boundary so the
rest of the code never reaches into raw JSON. Export records (ratings, diary,
watchlist) are modelled here too.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, StrictBool

from .config import DIRECTOR_JOBS, TOP_CAST_COUNT, WRITER_JOBS


class _TMDBModel(BaseModel):
    model_config = {"extra": "ignore"}


class Genre(_TMDBModel):
    id: int
    name: str


class MovieSummary(_TMDBModel):
    """A movie as it appears in search and discovery result lists."""

    id: int
    title: str
    overview: Optional[str] = ""
    release_date: Optional[str] = None
    genre_ids: List[int] = Field(default_factory=list)
    popularity: Optional[float] = None


class MovieDetails(_TMDBModel):
    """Full movie record with named genres."""

    id: int
    title: str
    overview: Optional[str] = ""
    release_date: Optional[str] = None
    genres: List[Genre] = Field(default_factory=list)

    @property
    def genre_names(self) -> List[str]:
        return [g.name for g in self.genres]

    @property
    def year(self) -> Optional[int]:
        if self.release_date and self.release_date[:4].isdigit():
            return int(self.release_date[:4])
        return None


class CastMember(_TMDBModel):
    name: str
    character: Optional[str] = None
    order: Optional[int] = None


class CrewMember(_TMDBModel):
    name: str
    job: str
    department: Optional[str] = None


class MovieCredits(_TMDBModel):
    id: Optional[int] = None
    cast: List[CastMember] = Field(default_factory=list)
    crew: List[CrewMember] = Field(default_factory=list)

    def top_cast(self, count: int = TOP_CAST_COUNT) -> List[str]:
        """Names of the first `count` billed cast members."""
        return [member.name for member in self.cast[:count]]

    def crew_with_jobs(self, jobs) -> List[str]:
        """Crew names whose job string exactly matches one of jobs, first occurrence order."""
        names = []
        for member in self.crew:
            if member.job in jobs and member.name not in names:
                names.append(member.name)
        return names

    @property
    def directors(self) -> List[str]:
        return self.crew_with_jobs(DIRECTOR_JOBS)

    @property
    def writers(self) -> List[str]:
        return self.crew_with_jobs(WRITER_JOBS)


class DiscoverPage(_TMDBModel):
    page: int = 1
    results: List[MovieSummary] = Field(default_factory=list)
    total_pages: Optional[int] = None
    total_results: Optional[int] = None


class ProviderOffer(_TMDBModel):
    provider_id: Optional[int] = None
    provider_name: str
    display_priority: Optional[int] = None


class RegionProviders(_TMDBModel):
    """Offers for one region; flatrate entries are subscription-inclusive."""

    link: Optional[str] = None
    flatrate: List[ProviderOffer] = Field(default_factory=list)
    rent: List[ProviderOffer] = Field(default_factory=list)
    buy: List[ProviderOffer] = Field(default_factory=list)

    def subscribed_offers(self, services) -> List[str]:
        """Names of flatrate providers matching any subscribed service, case-insensitively."""
        wanted = {s.lower() for s in services}
        return [offer.provider_name for offer in self.flatrate
                if offer.provider_name.lower() in wanted]


class WatchProviders(_TMDBModel):
    id: Optional[int] = None
    results: Dict[str, RegionProviders] = Field(default_factory=dict)

    def for_region(self, region: str) -> Optional[RegionProviders]:
        return self.results.get(region.upper())


class ProviderInfo(_TMDBModel):
    provider_id: Optional[int] = None
    provider_name: str
    display_priority: Optional[int] = None


class ProviderCatalog(_TMDBModel):
    results: List[ProviderInfo] = Field(default_factory=list)


class SearchResults(_TMDBModel):
    results: List[MovieSummary] = Field(default_factory=list)


# Export records

class RatingEntry(BaseModel):
    title: str
    year: Optional[int] = None
    rating: float = Field(ge=0, le=5)


class DiaryEntry(BaseModel):
    title: str
    year: Optional[int] = None
    watched_date: Optional[str] = None
    rating: Optional[float] = None
    rewatch: bool = False


class WatchlistEntry(BaseModel):
    title: str
    year: Optional[int] = None
    added_date: Optional[str] = None


# Cached state

class SnapshotEntry(BaseModel):
    """One title's state in the stored watchlist availability snapshot."""

    is_available: StrictBool
    providers: List[str] = Field(default_factory=list)
    link: Optional[str] = None


class SavedListEntry(BaseModel):
    label: str
    url: str
