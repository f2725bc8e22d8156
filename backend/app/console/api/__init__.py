"""Console API routers."""

from fastapi import APIRouter

from . import actions, dashboard

router = APIRouter()
router.include_router(dashboard.router)
router.include_router(actions.router)

__all__ = ["router"]
