"""
Compile a SearchRequest into one SQL statement over the candidate tables.

The plan is the AND of independent, optional predicates (recency, geo, text,
featured). Validation happens here, before any SQL is built, so a bad request
never reaches the store.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from sqlalchemy import Select, and_, or_, select

from talent_search.config import Settings, settings as default_settings
from talent_search.models.candidate import Candidate
from talent_search.models.city import candidate_cities
from talent_search.services.candidate_store import SQLITE_INTEGER_MAX
from talent_search.services.domain import SearchRequest
from talent_search.services.errors import InvalidRequest
from talent_search.services.geo import GeoMembershipResolver, validate_geo
from talent_search.services.search_index import (
    candidates_fts,
    match_expression,
    query_tokens,
    relevance_column,
)
from talent_search.utils.timestamps import format_timestamp, utcnow


@dataclass(frozen=True)
class SearchPlan:
    statement: Select
    order_by: tuple
    ranked_by_text: bool
    recency_cutoff: str | None


class QueryCompiler:
    def __init__(self, settings: Settings | None = None, geo: GeoMembershipResolver | None = None):
        self.settings = settings or default_settings
        self.geo = geo or GeoMembershipResolver()

    def validate(self, request: SearchRequest) -> None:
        if request.page_size < 0:
            raise InvalidRequest("page_size must not be negative")
        if request.page_size > self.settings.max_page_size:
            raise InvalidRequest(f"page_size must not exceed {self.settings.max_page_size}")
        if request.offset < 0:
            raise InvalidRequest("offset must not be negative")
        if request.offset + request.page_size + 1 > SQLITE_INTEGER_MAX:
            raise InvalidRequest("offset is too large")
        if request.has_geo:
            validate_geo(request.center, request.radius_km)

    def recency_cutoff(self, now: datetime | None = None) -> str:
        now = now or utcnow()
        return format_timestamp(now - timedelta(days=self.settings.recency_window_days))

    def compile(self, request: SearchRequest, now: datetime | None = None) -> SearchPlan:
        self.validate(request)

        conditions = []
        cutoff = None
        if request.apply_recency:
            cutoff = self.recency_cutoff(now)
            conditions.append(Candidate.created_at >= cutoff)

        if request.has_geo:
            conditions.append(self._geo_condition(request))

        if request.featured_only:
            conditions.append(Candidate.featured.is_(True))

        tokens = query_tokens(request.query)
        if tokens:
            relevance = relevance_column()
            stmt = select(Candidate, relevance).join(candidates_fts, candidates_fts.c.rowid == Candidate.id)
            conditions.append(candidates_fts.c.search_document.op("MATCH")(match_expression(tokens)))
            order_by = (relevance.desc(), Candidate.search_index.desc(), Candidate.id.desc())
        else:
            stmt = select(Candidate)
            order_by = (Candidate.search_index.desc(), Candidate.id.desc())

        if conditions:
            stmt = stmt.where(and_(*conditions))

        return SearchPlan(
            statement=stmt,
            order_by=order_by,
            ranked_by_text=bool(tokens),
            recency_cutoff=cutoff,
        )

    def compile_featured(self, request: SearchRequest, now: datetime | None = None) -> SearchPlan:
        """Featured-only, location-unrestricted variant of the request."""
        featured = replace(
            request,
            featured_only=True,
            center=None,
            radius_km=None,
            include_all_cities=False,
        )
        return self.compile(featured, now)

    def _geo_condition(self, request: SearchRequest):
        linked_in_range = Candidate.id.in_(
            select(candidate_cities.c.candidate_id).where(
                candidate_cities.c.city_id.in_(self.geo.city_ids_within(request.center, request.radius_km))
            )
        )
        if not request.include_all_cities:
            return linked_in_range
        unlinked = ~Candidate.id.in_(select(candidate_cities.c.candidate_id))
        return or_(linked_in_range, unlinked)
