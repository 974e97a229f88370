"""
Department Admissions - FastAPI Application

Main entry point for the backend API.
Provides endpoints for the university catalogue, applications and rankings,
student profiles, and hierarchy administration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.settings import settings
from app.infrastructure.db.database import DatabaseManager
from app.infrastructure.exceptions import (
    AdmissionsError,
    ConflictError,
    MalformedInputError,
    MissingGpaError,
    NotFoundError,
    StoreFailureError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(f"{settings.app_name} starting in {settings.environment} mode...")

    db = DatabaseManager.from_settings(settings)
    app.state.db = db
    if settings.database_create_tables:
        await db.create_tables()
        logger.info("Database tables created")
    await db.ping()
    logger.info("Database connection pool initialized")

    yield

    # Shutdown
    await db.close()
    logger.info("Database connection pool closed")
    logger.info(f"{settings.app_name} shutting down...")


app = FastAPI(
    title=settings.app_name,
    description="University department applications ranked by GPA",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle missing students, departments and applications."""
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


@app.exception_handler(MissingGpaError)
async def missing_gpa_error_handler(request: Request, exc: MissingGpaError):
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


@app.exception_handler(MalformedInputError)
async def malformed_input_error_handler(request: Request, exc: MalformedInputError):
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    """Handle uniqueness violations that survived every retry."""
    return JSONResponse(
        status_code=409,
        content=exc.to_dict(),
    )


@app.exception_handler(StoreFailureError)
async def store_failure_error_handler(request: Request, exc: StoreFailureError):
    """Handle store failures without leaking driver details."""
    logger.error(f"Store failure: {exc.message}", exc_info=exc.original_error)
    return JSONResponse(
        status_code=500,
        content={
            "error": exc.code,
            "message": "The request could not be completed",
            "details": {},
        },
    )


@app.exception_handler(AdmissionsError)
async def general_error_handler(request: Request, exc: AdmissionsError):
    """Handle all other application errors."""
    return JSONResponse(
        status_code=500,
        content=exc.to_dict(),
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "department-admissions"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Department Admissions API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from app.api.routes import admin, applications, profiles, universities  # noqa: E402

app.include_router(universities.router)
app.include_router(applications.router)
app.include_router(profiles.router)
app.include_router(admin.router)
