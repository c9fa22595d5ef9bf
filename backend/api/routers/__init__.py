"""API Routers package

Routers are organized by feature domain.
"""

from . import stats_router

__all__ = [
    "stats_router",
]
