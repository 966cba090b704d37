import contextlib
import logging

from fastapi import FastAPI, Depends, Response, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from redis.asyncio import Redis

from voltsage.core.config import settings
from voltsage.redis_client import init_redis_pool, close_redis_pool, get_redis_client
from voltsage.api.v1.api import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# --- Lifespan Context Manager ---
@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application startup: provider={settings.DATA_PROVIDER} favorites={settings.FAVORITES_BACKEND}")
    if settings.FAVORITES_BACKEND == "redis" or settings.CACHE_REDIS_ENABLED:
        await init_redis_pool()
    yield
    logger.info("Application shutdown: cleaning up resources")
    await close_redis_pool()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.API_VERSION,
    description="Voltsage EV charging station search API",
    lifespan=lifespan,
)

# --- CORS: restrict origins to allowed list from env ---
if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/", tags=["Infrastructure"])
def read_root():
    return {
        "message": "Server is running successfully!",
        "project": settings.PROJECT_NAME,
        "api_version": settings.API_VERSION,
    }


@app.head("/", include_in_schema=False)
def head_root():
    """Explicit HEAD handler so uptime probes get 200 without a body."""
    return Response(status_code=200)


@app.get("/health", tags=["Infrastructure"], summary="Health check (Redis)")
async def health_check(redis_client: Optional[Redis] = Depends(get_redis_client)):
    """Returns 503 only when favorites are configured for Redis and Redis is down.

    Response body example:
    {
      "status": "ok",
      "provider": "nrel",
      "redis": false
    }
    """
    redis_ok = False
    try:
        if redis_client:
            await redis_client.ping()
            redis_ok = True
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")

    if settings.FAVORITES_BACKEND == "redis" and not redis_ok:
        status_str = "down"
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_str = "ok"
        code = 200

    return JSONResponse(
        status_code=code,
        content={"status": status_str, "provider": settings.DATA_PROVIDER, "redis": redis_ok},
    )


app.include_router(api_router, prefix="/api/v1")
