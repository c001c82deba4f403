from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VenueRead(BaseModel):
    id: int
    name: str
    address: Optional[str]
    lat: Optional[float]
    lng: Optional[float]
    created_at: datetime
    model_config = {"from_attributes": True}


class VenueSummaryResponse(BaseModel):
    summary: str
    cached: bool
    aggregate_scores: dict[str, float]
