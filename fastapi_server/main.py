import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session, text

from wellness.cache import ResultCache
from wellness.config import CORS_ORIGINS, DATABASE_URL, LOG_LEVEL, is_production
from wellness.database import create_db_and_tables, get_session
from wellness.dependencies import get_cache
from wellness.errors import WellnessError
from wellness.routers import activities, leaderboard, teams, users

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger("wellness")

APP_VERSION = "0.1.0"
HEALTH_CACHE_KEY = "health"
HEALTH_CACHE_TTL_MS = 60 * 1000


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the shared result cache on startup."""
    if DATABASE_URL.startswith("sqlite"):
        (Path.cwd() / "data").mkdir(parents=True, exist_ok=True)
    create_db_and_tables()

    app.state.cache = ResultCache()
    logger.info("Wellness API started")
    yield
    app.state.cache.clear_all()


app = FastAPI(title="Wellness Challenge API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(activities.router)
app.include_router(teams.router)
app.include_router(leaderboard.router)
app.include_router(users.router)


@app.exception_handler(WellnessError)
async def handle_wellness_error(request: Request, exc: WellnessError):
    """Render service errors; internal detail is hidden in production."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)

    body = {"error": exc.kind.value, "message": exc.message}
    if exc.detail and not is_production():
        body["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/api/health")
def health(
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Service health with database reachability.

    Results are cached for a minute to keep frequent health checks off the database.
    """
    started = time.perf_counter()
    cached = cache.get(HEALTH_CACHE_KEY)
    if cached is not None:
        return {**cached, "from_cache": True}

    status = {
        "status": "ok",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected",
        "database_latency_ms": None,
    }
    try:
        session.exec(text("SELECT 1"))
        status["database_latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    except Exception as e:
        logger.warning("Health check could not reach the database: %s", e)
        status["status"] = "degraded"
        status["database"] = "unreachable"
        if not is_production():
            status["error"] = str(e)
        return JSONResponse(status_code=503, content={**status, "from_cache": False})

    cache.set(HEALTH_CACHE_KEY, status, HEALTH_CACHE_TTL_MS)
    return {**status, "from_cache": False}
