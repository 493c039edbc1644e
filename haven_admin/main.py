from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from haven_admin.config import settings
from haven_admin.core.error_handling import ErrorHandlingMiddleware, register_exception_handlers
from haven_admin.core.logging import get_logger
from haven_admin.database import Base, engine
from haven_admin import models  # noqa: F401  registers every table on Base.metadata
from haven_admin.routers import auth_api, staff_admin, super_admin, therapist_admin

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Haven admin service...")

    logger.info("Creating database tables...")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")

    if not settings.has_s3_credentials():
        logger.info(f"Serving uploads from local storage at {settings.LOCAL_STORAGE_DIR}")

    logger.info("Haven admin service startup complete")
    yield
    logger.info("Shutting down Haven admin service")


app = FastAPI(
    title="Haven Admin",
    description="Administration dashboards for the Haven mental-health platform",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ErrorHandlingMiddleware)

register_exception_handlers(app)

app.include_router(auth_api.router)
app.include_router(staff_admin.router)
app.include_router(therapist_admin.router)
app.include_router(super_admin.router)

app.mount("/storage", StaticFiles(directory=settings.LOCAL_STORAGE_DIR, check_dir=False), name="storage")


@app.get("/")
async def root(error: Optional[str] = None):
    return {
        "message": "Haven Admin API",
        "version": "1.0.0",
        "status": "operational",
        "error": error
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "haven_admin.main:app",
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
