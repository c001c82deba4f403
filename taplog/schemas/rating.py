from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

RATING_KEYS: tuple[str, ...] = (
    "taste", "bitterness", "aroma", "smoothness", "carbonation", "temperature",
    "music", "lighting", "crowd_vibe", "cleanliness", "decor",
)


class Context(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_of_week: int = Field(..., ge=0, le=6)
    group_size: int = Field(..., ge=1, le=50)
    company_type: str = Field(..., examples=["friends"])
    beers_already: int = Field(..., ge=0, le=20)


class Ratings(BaseModel):
    taste: int = Field(..., ge=0, le=10)
    bitterness: int = Field(..., ge=0, le=10)
    aroma: int = Field(..., ge=0, le=10)
    smoothness: int = Field(..., ge=0, le=10)
    carbonation: int = Field(..., ge=0, le=10)
    temperature: int = Field(..., ge=0, le=10)
    music: int = Field(..., ge=0, le=10)
    lighting: int = Field(..., ge=0, le=10)
    crowd_vibe: int = Field(..., ge=0, le=10)
    cleanliness: int = Field(..., ge=0, le=10)
    decor: int = Field(..., ge=0, le=10)


class BeerMeta(BaseModel):
    name: Optional[str] = None


class CategorizeRequest(BaseModel):
    # beerMeta is the wire name older clients send
    model_config = ConfigDict(populate_by_name=True)

    description: str = Field(..., min_length=3, examples=["Crisp pilsner, loud jazz, dim lights"])
    context: Context
    beer_meta: Optional[BeerMeta] = Field(None, alias="beerMeta")


class CategorizeResponse(BaseModel):
    ratings: Ratings
    overall: int = Field(..., ge=0, le=10)
    ai_review: str
    ai_model: Optional[str] = None
    # Present only when the ratings are the neutral fallback
    error: Optional[str] = None
