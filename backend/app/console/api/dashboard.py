"""Read-only projection endpoints and engine controls for the console."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from app.console.domain.container import get_error_slot, get_projection, get_sync_engine
from app.console.domain.errors import ErrorSlot
from app.console.domain.models import ChartEntry, Report, Stats
from app.console.domain.projection import ProjectionStore
from app.console.domain.sync_engine import SyncEngine

router = APIRouter(prefix="/api/console/v1", tags=["console-dashboard"])


def _error_payload(errors: ErrorSlot) -> dict[str, object] | None:
	latest = errors.latest
	return latest.to_dict() if latest is not None else None


@router.get("/state")
async def console_state(
	projection: ProjectionStore = Depends(get_projection),
	engine: SyncEngine = Depends(get_sync_engine),
	errors: ErrorSlot = Depends(get_error_slot),
) -> dict[str, Any]:
	view = projection.view()
	return {
		**view.model_dump(mode="json", by_alias=True),
		"engine": engine.state.value,
		"error": _error_payload(errors),
	}


@router.get("/stats", response_model=Stats)
async def console_stats(projection: ProjectionStore = Depends(get_projection)) -> Stats:
	return projection.stats


@router.get("/reports")
async def console_reports(projection: ProjectionStore = Depends(get_projection)) -> list[dict[str, Any]]:
	return [report.model_dump(mode="json", by_alias=True) for report in projection.reports]


@router.get("/reports/{report_id}")
async def console_report(report_id: str, projection: ProjectionStore = Depends(get_projection)) -> dict[str, Any]:
	report: Report | None = projection.find_report(report_id)
	if report is None:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="report_not_found")
	return report.model_dump(mode="json", by_alias=True)


@router.get("/charts/community", response_model=list[ChartEntry])
async def console_community_chart(projection: ProjectionStore = Depends(get_projection)) -> list[ChartEntry]:
	return projection.community_chart


@router.get("/errors/latest")
async def console_latest_error(errors: ErrorSlot = Depends(get_error_slot)) -> dict[str, Any]:
	return {"error": _error_payload(errors)}


@router.delete("/errors", status_code=status.HTTP_204_NO_CONTENT)
async def console_clear_error(errors: ErrorSlot = Depends(get_error_slot)) -> None:
	errors.clear()


@router.post("/sync/restart")
async def console_sync_restart(engine: SyncEngine = Depends(get_sync_engine)) -> dict[str, str]:
	await engine.restart()
	return {"engine": engine.state.value}
