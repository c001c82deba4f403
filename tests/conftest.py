"""
Pytest fixtures shared by the taplog test suite.

Settings are read at import time, so the environment is prepared before any
``taplog`` module is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["APP_ENV"] = "test"
os.environ["REDIS_URL"] = ""
os.environ["GEMINI_API_KEY"] = ""

import json  # noqa: E402
from typing import Any, List  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import taplog.models  # noqa: E402,F401
from taplog.core.security import create_access_token  # noqa: E402
from taplog.db.session import Base, get_db  # noqa: E402
from taplog.main import app  # noqa: E402
from taplog.models.venue import Venue  # noqa: E402
from taplog.services.rate_limit import MemoryCounterStore, RateLimiter, get_rate_limiter  # noqa: E402
from taplog.services.rating_engine import RatingEngine, get_rating_engine  # noqa: E402


# --- Sample Data ---

FULL_RATINGS = {
    "taste": 8, "bitterness": 6, "aroma": 7, "smoothness": 8, "carbonation": 5,
    "temperature": 9, "music": 7, "lighting": 6, "crowd_vibe": 8,
    "cleanliness": 9, "decor": 6,
}

SAMPLE_CONTEXT = {
    "day_of_week": 5,
    "group_size": 4,
    "company_type": "friends",
    "beers_already": 1,
}


def model_json(**overrides: Any) -> str:
    data = {**FULL_RATINGS, "overall": 8, "review": "Crisp and lively."}
    data.update(overrides)
    return json.dumps(data)


class FakeBackend:
    """
    Scripted generative backend.

    Each call consumes the next scripted item; the last one repeats. An
    exception instance is raised, anything else is returned as the raw
    response.
    """

    name = "fake"

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses) or [{"output_text": model_json()}]
        self.calls: List[str] = []
        self.payloads: List[str] = []

    def script(self, *responses: Any) -> None:
        self.responses = list(responses)

    async def generate(self, *, instructions: str, schema: dict, payload: str, model: str) -> Any:
        self.calls.append(model)
        self.payloads.append(payload)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return item


# --- Fixtures ---

@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def rating_engine(fake_backend) -> RatingEngine:
    return RatingEngine(
        backend=fake_backend,
        primary_model="primary-model",
        fallback_model="fallback-model",
        timeout_seconds=2.0,
    )


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter(MemoryCounterStore(), limit=30, window_seconds=3600)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def venue(db) -> Venue:
    v = Venue(name="The Hop Yard", address="1 Brewery Lane", lat=51.45, lng=-2.58)
    db.add(v)
    await db.commit()
    await db.refresh(v)
    return v


@pytest.fixture
async def client(session_maker, rating_engine, rate_limiter):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rating_engine] = lambda: rating_engine
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def auth_headers(user_id: str = "user-1") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
