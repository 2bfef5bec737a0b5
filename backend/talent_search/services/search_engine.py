"""
Entry point for candidate search: ranked pages and featured samples.

Both operations are read-only and open their own session, so one
SearchEngine can serve concurrent callers.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import sessionmaker

from talent_search.config import Settings, settings as default_settings
from talent_search.services.candidate_store import CandidateStore
from talent_search.services.domain import SearchRequest, SearchResult
from talent_search.services.errors import InvalidRequest
from talent_search.services.favorites import resolve_favorites
from talent_search.services.query_compiler import QueryCompiler
from talent_search.services.sampling import sample

logger = logging.getLogger(__name__)


class SearchEngine:
    def __init__(self, session_factory: sessionmaker, settings: Settings | None = None,
                 compiler: QueryCompiler | None = None):
        self.session_factory = session_factory
        self.settings = settings or default_settings
        self.compiler = compiler or QueryCompiler(self.settings)

    def search(self, request: SearchRequest, now: datetime | None = None) -> SearchResult:
        plan = self.compiler.compile(request, now)

        with self.session_factory() as db:
            store = CandidateStore(db)
            if request.page_size == 0:
                page, has_more = [], False
            else:
                # One extra row tells us whether another page exists.
                stmt = plan.statement.order_by(*plan.order_by).limit(request.page_size + 1).offset(request.offset)
                rows = store.fetch_candidates(stmt)
                page, has_more = rows[: request.page_size], len(rows) > request.page_size
            favorites = resolve_favorites(store, request.favorites) if request.favorites else []

        logger.debug(
            "search query=%r geo=%s returned=%d has_more=%s",
            request.query, request.has_geo, len(page), has_more,
        )
        return SearchResult(
            candidates=page,
            has_more=has_more,
            offset=request.offset,
            page_size=request.page_size,
            favorites=favorites,
        )

    def featured_sample(self, request: SearchRequest, sample_size: int | None = None,
                        now: datetime | None = None) -> SearchResult:
        k = request.page_size if sample_size is None else sample_size
        if k > self.settings.max_page_size:
            raise InvalidRequest(f"Sample size must not exceed {self.settings.max_page_size}")
        plan = self.compiler.compile_featured(request, now)

        with self.session_factory() as db:
            candidates = sample(CandidateStore(db), plan, k)

        return SearchResult(candidates=candidates, page_size=k, sampled=True)
