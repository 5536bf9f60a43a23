from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os

from pathlab.api.api_v1.api import api_router as api_v1_router
from pathlab.api.exception_handlers import register_exception_handlers
from pathlab.core.config import settings
from pathlab.core.logging_config import setup_logging, get_logger
from pathlab.services.scheduler import init_scheduler, shutdown_scheduler, get_scheduler_status
from pathlab.db.init_db import ensure_tables_exist

# Logging setup
log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(log_level, settings.LOG_DIR)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    logger.info("🚀 Starting up...")

    try:
        await ensure_tables_exist()
        logger.info("📊 Database tables ready")
    except Exception as e:
        logger.warning(f"Table initialisation warning: {e}")

    init_scheduler()
    yield
    logger.info("🛑 Shutting down...")
    shutdown_scheduler()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Pathology lab sample tracking",
    lifespan=lifespan
)

# CORS
if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"CORS origins: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

logger.info(f"Registering API v1 routes under {settings.API_V1_STR}")
app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME}


@app.get("/health")
async def health():
    return {"status": "ok", "scheduler": get_scheduler_status()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
