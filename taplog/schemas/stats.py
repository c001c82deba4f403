from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class DayCount(BaseModel):
    day: date
    count: int


class RecentCheckin(BaseModel):
    id: int
    venue_id: int
    beer_name: Optional[str]
    overall: Optional[int]
    created_at: datetime
    model_config = {"from_attributes": True}


class UserStats(BaseModel):
    total: int
    unique_venues: int
    unique_beers: int
    by_day: list[DayCount]
    recent: list[RecentCheckin]


class TopVenue(BaseModel):
    venue_id: int
    name: str
    address: Optional[str]
    count: int
    avg: int


class TopVenuesResponse(BaseModel):
    top: list[TopVenue]
