import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from taplog.core.config import settings
from taplog.db.session import engine
from taplog.api.v1.ai import router as ai_router
from taplog.api.v1.checkins import router as checkins_router
from taplog.api.v1.community import router as community_router
from taplog.api.v1.me import router as me_router
from taplog.api.v1.venues import router as venues_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await engine.dispose()


app = FastAPI(
    title="TapLog API",
    version="0.3.0",
    description="Backend for TapLog – beer and bar check-ins with AI-assisted ratings.",
    lifespan=lifespan,
)

app.include_router(ai_router,       prefix="/api/v1")
app.include_router(checkins_router, prefix="/api/v1")
app.include_router(venues_router,   prefix="/api/v1")
app.include_router(me_router,       prefix="/api/v1")
app.include_router(community_router, prefix="/api/v1")


@app.get("/health", tags=["meta"])
async def health_check():
    return {"status": "ok", "version": app.version}
