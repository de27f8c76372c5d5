"""
API Module
FastAPI routers for the PillPal application
"""

from api.medications import router as medications_router
from api.adherence import router as adherence_router
from api.achievements import router as achievements_router
from api.reports import router as reports_router

from api.deps import get_db, services


__all__ = [
    # Routers
    "medications_router",
    "adherence_router",
    "achievements_router",
    "reports_router",
    # Dependencies
    "get_db",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(medications_router, prefix=prefix)
    app.include_router(adherence_router, prefix=prefix)
    app.include_router(achievements_router, prefix=prefix)
    app.include_router(reports_router, prefix=prefix)
