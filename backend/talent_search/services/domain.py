"""
Value objects exchanged between the HTTP layer and the search engine.
"""
from dataclasses import dataclass, field

from talent_search.models.candidate import Candidate


@dataclass(frozen=True)
class MaterializedCandidate:
    candidate: Candidate


@dataclass(frozen=True)
class CandidateID:
    id: int


FavoriteReference = MaterializedCandidate | CandidateID


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SearchRequest:
    query: str | None = None
    center: GeoPoint | None = None
    radius_km: float | None = None
    apply_recency: bool = True
    include_all_cities: bool = False
    featured_only: bool = False
    page_size: int = 20
    offset: int = 0
    favorites: tuple[FavoriteReference, ...] = ()

    @property
    def has_geo(self) -> bool:
        return self.center is not None or self.radius_km is not None


@dataclass
class SearchResult:
    candidates: list[Candidate]
    has_more: bool = False
    offset: int = 0
    page_size: int = 0
    favorites: list[Candidate] = field(default_factory=list)
    sampled: bool = False
