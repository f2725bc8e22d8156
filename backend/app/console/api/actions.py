"""Operator actions: respond to reports and block users."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.console.domain.container import get_moderation_actions, get_projection, get_resolution_workflow
from app.console.domain.models import ReportStatus
from app.console.domain.moderation import ModerationActions
from app.console.domain.projection import ProjectionStore
from app.console.domain.resolution import ResolutionWorkflow
from app.obs.logging import log_context

router = APIRouter(prefix="/api/console/v1", tags=["console-actions"])


class RespondRequest(BaseModel):
	"""Status and user default to the mirrored report when omitted."""

	response: str = ""
	current_status: Optional[ReportStatus] = None
	user_id: Optional[str] = None


@router.post("/reports/{report_id}/respond")
async def respond_to_report(
	report_id: str,
	payload: RespondRequest,
	workflow: ResolutionWorkflow = Depends(get_resolution_workflow),
	projection: ProjectionStore = Depends(get_projection),
) -> dict[str, Any]:
	current_status = payload.current_status
	user_id = payload.user_id
	if current_status is None or user_id is None:
		report = projection.find_report(report_id)
		if report is None:
			raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="report_not_found")
		current_status = current_status or report.status
		user_id = user_id or report.user_id
	if not user_id:
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id_required")
	with log_context(report_id=report_id):
		result = await workflow.respond(report_id, current_status, payload.response, user_id)
	return result.to_dict()


@router.post("/users/{user_id}/block")
async def block_user(
	user_id: str,
	moderation: ModerationActions = Depends(get_moderation_actions),
) -> dict[str, Any]:
	user = await moderation.block_user(user_id)
	return {"ok": True, "user_id": user.id, "blocked": user.blocked}
