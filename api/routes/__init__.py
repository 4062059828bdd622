"""API route modules."""

from routes.analytics_routes import router as analytics_router
from routes.completions_routes import router as completions_router
from routes.habits_routes import router as habits_router
from routes.health_routes import router as health_router
from routes.stats_routes import router as stats_router

__all__ = [
    "analytics_router",
    "completions_router",
    "habits_router",
    "health_router",
    "stats_router",
]
