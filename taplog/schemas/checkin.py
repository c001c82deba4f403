from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from taplog.schemas.rating import Context, Ratings


class CheckinCreate(BaseModel):
    venue_id: int
    beer_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    ratings: Ratings
    context: Context
    overall: Optional[int] = Field(None, ge=0, le=10)
    ai_review: Optional[str] = None
    ai_model: Optional[str] = Field(None, max_length=100)


class CheckinCreated(BaseModel):
    id: int


class CheckinUpdate(BaseModel):
    image_paths: Optional[Annotated[list[str], Field(max_length=6)]] = None


class CheckinRead(BaseModel):
    id: int
    user_id: str
    venue_id: int
    beer_name: Optional[str]
    description: Optional[str]
    taste: int
    bitterness: int
    aroma: int
    smoothness: int
    carbonation: int
    temperature: int
    music: int
    lighting: int
    crowd_vibe: int
    cleanliness: int
    decor: int
    overall: Optional[int]
    day_of_week: int
    group_size: int
    company_type: str
    beers_already: int
    ai_review: Optional[str]
    ai_model: Optional[str]
    image_paths: list[str] = []
    created_at: datetime
    model_config = {"from_attributes": True}


class VenueBrief(BaseModel):
    name: str
    address: Optional[str]
    model_config = {"from_attributes": True}


class MyCheckin(BaseModel):
    id: int
    venue_id: int
    beer_name: Optional[str]
    ai_review: Optional[str]
    overall: Optional[int]
    created_at: datetime
    venue: VenueBrief
    model_config = {"from_attributes": True}


class MyCheckinsResponse(BaseModel):
    rows: list[MyCheckin]
