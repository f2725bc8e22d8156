"""Report console integration helpers exposed to the application."""

from app.console.api import router
from app.console.domain.container import configure, get_sync_engine

__all__ = ["router", "configure", "get_sync_engine"]
