from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from metierflow.api.v1.endpoints.entities import routers as entity_routers
from metierflow.api.v1.endpoints.views import router as views_router
from metierflow.api.v1.endpoints.workspace import router as workspace_router

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
from contextlib import asynccontextmanager
from metierflow.core.config import settings
from metierflow.core.dependencies import create_store, create_workspace
from metierflow.core.limiter import limiter
from metierflow.store.errors import StoreError
from metierflow.store.seed import seed_snapshot

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def _seed_if_needed(store) -> None:
    if not settings.SEED_ON_STARTUP:
        return
    if settings.FORCE_SEED or await store.is_empty():
        logger.info("🌱 Seeding entity store with initial data...")
        await store.seed(seed_snapshot())
        logger.info("✅ Seed data written")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    logger.info("🚀 Starting Metier WorkFlow application...")
    store = create_store()
    app.state.store = store
    app.state.workspace = create_workspace(store)

    try:
        logger.info("🔌 Initializing entity store...")
        await store.init()
        await _seed_if_needed(store)
        logger.info("✅ Entity store ready")
    except StoreError as e:
        # The workspace falls back to the cached snapshot or the seed data.
        logger.error(f"⚠️ Entity store unavailable at startup: {str(e)}")

    result = await app.state.workspace.load()
    logger.info(f"📦 Workspace loaded from {result.source}")

    try:
        logger.info("🏁 Metier WorkFlow application startup complete")
        yield
    finally:
        try:
            logger.info("🛑 Beginning application shutdown...")
            await store.close()
            logger.info("✅ Entity store closed cleanly")
        except Exception as e:
            logger.error(f"⚠️ Error during shutdown: {str(e)}")
            raise
        finally:
            logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="Metier WorkFlow API",
    description="API for Metier WorkFlow - phase-based project and task tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.get("/", tags=["Health Check"])
@app.get("/api/health", tags=["Health Check"])
async def health_check(request: Request):
    store = request.app.state.store
    workspace = request.app.state.workspace
    try:
        await store.get_all("departments")
        return {
            "status": "healthy",
            "service": "Metier WorkFlow API",
            "store": store.name,
            "snapshot_source": workspace.source,
        }
    except StoreError as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "Metier WorkFlow API",
            "store": store.name,
            "snapshot_source": workspace.source,
            "error": str(e)
        }


for entity_router in entity_routers:
    app.include_router(entity_router, prefix="/api")
app.include_router(views_router, prefix="/api", tags=["Views"])
app.include_router(workspace_router, prefix="/api", tags=["Workspace"])

logger.info(f"✅ Loaded {len(app.routes)} routes")
