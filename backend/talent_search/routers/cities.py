from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from talent_search.database import get_db
from talent_search.models.city import DesiredCity, candidate_cities
from talent_search.schemas.city import CityCreate, CityResponse

router = APIRouter(prefix="/cities", tags=["cities"])


@router.post("", response_model=CityResponse, status_code=201)
async def create_city(req: CityCreate, db: Session = Depends(get_db)):
    city = DesiredCity(name=req.name, latitude=req.latitude, longitude=req.longitude)
    db.add(city)
    db.commit()
    db.refresh(city)
    return city


@router.get("", response_model=list[CityResponse])
async def list_cities(db: Session = Depends(get_db)):
    return db.query(DesiredCity).order_by(DesiredCity.name).all()


@router.delete("/{city_id}")
async def delete_city(city_id: int, db: Session = Depends(get_db)):
    city = db.query(DesiredCity).filter(DesiredCity.id == city_id).first()
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    linked = db.query(func.count(candidate_cities.c.candidate_id)).filter(
        candidate_cities.c.city_id == city_id
    ).scalar()
    db.delete(city)
    db.commit()
    return {"message": "City deleted", "unlinked_candidates": linked}
