from typing import Any

from pydantic import BaseModel

from talent_search.schemas.candidate import CandidateResponse
from talent_search.services.domain import GeoPoint, SearchRequest
from talent_search.services.errors import InvalidRequest
from talent_search.services.favorites import to_favorite_reference


class SearchQuery(BaseModel):
    query: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None
    apply_recency: bool = True
    include_all_cities: bool = False
    featured_only: bool = False
    page_size: int | None = None
    offset: int = 0
    # Candidate ids as ints, numeric strings or {"id": ...} objects.
    favorites: list[Any] = []

    def to_request(self, default_page_size: int) -> SearchRequest:
        if (self.latitude is None) != (self.longitude is None):
            raise InvalidRequest("latitude and longitude must be given together")
        center = None
        if self.latitude is not None:
            center = GeoPoint(self.latitude, self.longitude)
        return SearchRequest(
            query=self.query,
            center=center,
            radius_km=self.radius_km,
            apply_recency=self.apply_recency,
            include_all_cities=self.include_all_cities,
            featured_only=self.featured_only,
            page_size=default_page_size if self.page_size is None else self.page_size,
            offset=self.offset,
            favorites=tuple(to_favorite_reference(f) for f in self.favorites),
        )


class FeaturedQuery(BaseModel):
    query: str | None = None
    sample_size: int | None = None
    apply_recency: bool = True


class SearchResponse(BaseModel):
    results: list[CandidateResponse]
    favorites: list[CandidateResponse] = []
    has_more: bool
    offset: int
    page_size: int
    sampled: bool = False


class IndexStatusResponse(BaseModel):
    pending: int
    refresh_interval_seconds: float
