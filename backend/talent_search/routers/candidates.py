from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from talent_search.database import get_db
from talent_search.models.candidate import Candidate
from talent_search.models.city import DesiredCity
from talent_search.schemas.candidate import (
    CandidateCreate,
    CandidateResponse,
    CandidateUpdate,
    CityLinksUpdate,
)
from talent_search.schemas.city import CityResponse
from talent_search.utils.timestamps import now_timestamp

router = APIRouter(prefix="/candidates", tags=["candidates"])


def _load_cities(db: Session, city_ids: list[int]) -> list[DesiredCity]:
    wanted = set(city_ids)
    cities = db.query(DesiredCity).filter(DesiredCity.id.in_(wanted)).all() if wanted else []
    missing = wanted - {c.id for c in cities}
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown city ids: {sorted(missing)}")
    return cities


def _get_candidate(db: Session, candidate_id: int) -> Candidate:
    candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return candidate


@router.post("", response_model=CandidateResponse, status_code=201)
async def create_candidate(req: CandidateCreate, db: Session = Depends(get_db)):
    now = now_timestamp()
    candidate = Candidate(
        display_name=req.display_name,
        location_text=req.location_text,
        desired_positions=req.desired_positions,
        bio=req.bio,
        featured=req.featured,
        created_at=now,
        updated_at=now,
    )
    candidate.cities = _load_cities(db, req.city_ids)
    db.add(candidate)
    db.commit()
    db.refresh(candidate)
    return candidate


@router.get("/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(candidate_id: int, db: Session = Depends(get_db)):
    return _get_candidate(db, candidate_id)


@router.patch("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(candidate_id: int, req: CandidateUpdate, db: Session = Depends(get_db)):
    candidate = _get_candidate(db, candidate_id)

    # Text field changes are picked up by the index triggers; no direct index write here.
    update_data = req.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(candidate, key, value)
    candidate.updated_at = now_timestamp()

    db.commit()
    db.refresh(candidate)
    return candidate


@router.delete("/{candidate_id}")
async def delete_candidate(candidate_id: int, db: Session = Depends(get_db)):
    candidate = _get_candidate(db, candidate_id)
    db.delete(candidate)
    db.commit()
    return {"message": "Candidate deleted"}


@router.get("/{candidate_id}/cities", response_model=list[CityResponse])
async def list_candidate_cities(candidate_id: int, db: Session = Depends(get_db)):
    candidate = _get_candidate(db, candidate_id)
    return sorted(candidate.cities, key=lambda c: c.name)


@router.put("/{candidate_id}/cities", response_model=list[CityResponse])
async def set_candidate_cities(candidate_id: int, req: CityLinksUpdate, db: Session = Depends(get_db)):
    candidate = _get_candidate(db, candidate_id)
    candidate.cities = _load_cities(db, req.city_ids)
    candidate.updated_at = now_timestamp()
    db.commit()
    return sorted(candidate.cities, key=lambda c: c.name)
