from fastapi import APIRouter, Depends, HTTPException

from talent_search.config import settings
from talent_search.dependencies import get_search_engine
from talent_search.schemas.candidate import CandidateResponse
from talent_search.schemas.search import FeaturedQuery, SearchQuery, SearchResponse
from talent_search.services.domain import SearchRequest, SearchResult
from talent_search.services.errors import InvalidRequest, StoreUnavailable
from talent_search.services.search_engine import SearchEngine

router = APIRouter(prefix="/candidates", tags=["search"])


def _result_to_response(result: SearchResult) -> SearchResponse:
    return SearchResponse(
        results=[CandidateResponse.model_validate(c) for c in result.candidates],
        favorites=[CandidateResponse.model_validate(c) for c in result.favorites],
        has_more=result.has_more,
        offset=result.offset,
        page_size=result.page_size,
        sampled=result.sampled,
    )


@router.post("/search", response_model=SearchResponse)
def search_candidates(req: SearchQuery, engine: SearchEngine = Depends(get_search_engine)):
    try:
        result = engine.search(req.to_request(settings.default_page_size))
    except InvalidRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _result_to_response(result)


@router.post("/featured", response_model=SearchResponse)
def featured_candidates(req: FeaturedQuery, engine: SearchEngine = Depends(get_search_engine)):
    request = SearchRequest(
        query=req.query,
        apply_recency=req.apply_recency,
        page_size=settings.featured_sample_size,
    )
    try:
        result = engine.featured_sample(request, sample_size=req.sample_size)
    except InvalidRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _result_to_response(result)
