from fastapi import APIRouter, Depends, HTTPException

from talent_search.dependencies import get_index_refresher
from talent_search.schemas.search import IndexStatusResponse
from talent_search.services.errors import StoreUnavailable
from talent_search.services.search_index import SearchIndexRefresher

router = APIRouter(prefix="/search-index", tags=["search-index"])


@router.get("/status", response_model=IndexStatusResponse)
def index_status(refresher: SearchIndexRefresher = Depends(get_index_refresher)):
    try:
        pending = refresher.pending_count()
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return IndexStatusResponse(pending=pending, refresh_interval_seconds=refresher.interval_seconds)


@router.post("/rebuild", status_code=202)
def rebuild_index(refresher: SearchIndexRefresher = Depends(get_index_refresher)):
    try:
        queued = refresher.rebuild_all()
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"queued": queued}
