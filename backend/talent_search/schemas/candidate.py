from pydantic import BaseModel


class CandidateCreate(BaseModel):
    display_name: str
    location_text: str | None = None
    desired_positions: str | None = None
    bio: str | None = None
    featured: bool = False
    city_ids: list[int] = []


class CandidateUpdate(BaseModel):
    display_name: str | None = None
    location_text: str | None = None
    desired_positions: str | None = None
    bio: str | None = None
    featured: bool | None = None


class CityLinksUpdate(BaseModel):
    city_ids: list[int]


class CandidateResponse(BaseModel):
    id: int
    display_name: str
    location_text: str | None
    desired_positions: str | None
    bio: str | None
    featured: bool
    search_index: int
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
