"""FastAPI application."""
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .domain_errors import DomainError
from .logging_setup import configure_logging
from .problem_details import domain_error_handler
from .routers import audits, categories, cycles, dashboard, history, imports, people

configure_logging()

# Create app
app = FastAPI(
    title="PPE Inspection Logs",
    version="1.0.0",
    description="Monthly PPE inspections, completeness dashboards and quarterly audit sign-off"
)

# Production safety checks
if settings.ENV.lower() == "production" and any(origin.strip() == "*" for origin in settings.cors_origins):
    raise RuntimeError("ALLOWED_ORIGINS must be explicit in production (no wildcard).")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_exception_handler(DomainError, domain_error_handler)

# Include routers
app.include_router(people.router, prefix="/api/v1")
app.include_router(cycles.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(audits.router, prefix="/api/v1")
app.include_router(history.router, prefix="/api/v1")
app.include_router(imports.router, prefix="/api/v1")
app.include_router(categories.router, prefix="/api/v1")

# Defect photos
app.mount(
    settings.UPLOAD_URL_PREFIX.rstrip("/") or "/uploads",
    StaticFiles(directory=Path(settings.UPLOAD_DIR), check_dir=False),
    name="uploads",
)


@app.get("/api/v1/system/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "error"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "version": "1.0.0",
        "database": database,
    }


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "PPE Inspection Logs API",
        "version": "1.0.0",
        "docs": "/docs"
    }
