"""FastAPI application entry point."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.exceptions import (
    ConflictError,
    DonationTrackerError,
    NotFoundError,
    ValidationError,
)
from app.core.structured_logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Donation Tracker API",
    description="Donations, child sponsorships, and donor reconciliation",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Field-scoped business rule failures."""
    return JSONResponse(status_code=422, content={"errors": exc.errors})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    """A concurrent writer won a race that could not be resolved by reuse."""
    logger.warning("Unresolved write conflict on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(DonationTrackerError)
async def service_error_handler(request: Request, exc: DonationTrackerError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ============================================================================
# Routers
# ============================================================================

from app.routers import children, donations, donors, imports, projects, sponsorships

app.include_router(donors.router, prefix="/donors", tags=["donors"])
app.include_router(children.router, prefix="/children", tags=["children"])
app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(sponsorships.router, prefix="/sponsorships", tags=["sponsorships"])
app.include_router(donations.router, prefix="/donations", tags=["donations"])
app.include_router(imports.router, prefix="/imports", tags=["imports"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    db.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
