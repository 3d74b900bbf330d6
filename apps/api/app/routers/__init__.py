"""API routers."""

from app.routers.children import router as children_router
from app.routers.donations import router as donations_router
from app.routers.donors import router as donors_router
from app.routers.imports import router as imports_router
from app.routers.projects import router as projects_router
from app.routers.sponsorships import router as sponsorships_router

__all__ = [
    "children_router",
    "donations_router",
    "donors_router",
    "imports_router",
    "projects_router",
    "sponsorships_router",
]
