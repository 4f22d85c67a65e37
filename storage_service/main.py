"""Main FastAPI application module"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storage_service.config import settings
from storage_service.api import projects, folders, files, workspaces
from storage_service.api.errors import register_exception_handlers
from storage_service.database import init_db, ping_db, engine
from storage_service.metrics import metrics_middleware, metrics_response

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.db_auto_migrate:
        await init_db()
    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    debug=settings.debug,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.metrics_enabled:
    app.middleware("http")(metrics_middleware)

register_exception_handlers(app)

# Include routers
storage_prefix = f"{settings.api_prefix}/storage"
app.include_router(projects.router, prefix=storage_prefix, tags=["projects"])
app.include_router(folders.router, prefix=storage_prefix, tags=["folders"])
app.include_router(files.router, prefix=storage_prefix, tags=["files"])
app.include_router(workspaces.router, prefix=storage_prefix, tags=["workspaces"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": settings.app_version}


@app.get("/ready")
async def readiness_check():
    """Readiness check: the database must answer"""
    if not await ping_db():
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "down"})
    return {"status": "ready", "database": "up"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
