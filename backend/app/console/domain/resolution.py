"""Two-step report resolution: status toggle, then user notification."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app.console.domain.errors import ErrorSlot
from app.console.domain.exceptions import ConsoleError, NotificationError
from app.console.domain.models import Notification, Report, ReportStatus, now_ms
from app.console.infra.realtime import RealtimeCollectionClient
from app.obs import metrics as obs_metrics
from app.settings import settings

_LOG = logging.getLogger(__name__)

_STATUS_FAILURE_MESSAGE = "Unable to update report status. Please check your permissions."
_NOTIFY_FAILURE_MESSAGE = "Failed to submit response. Please try again."


class Phase(str, enum.Enum):
	status = "status"
	notify = "notify"


class Outcome(str, enum.Enum):
	success = "success"
	status_only = "status_only"
	failed = "failed"


@dataclass(slots=True, frozen=True)
class PhaseResult:
	phase: Phase
	ok: bool
	error: Optional[ConsoleError] = None

	def to_dict(self) -> dict[str, object]:
		return {
			"phase": self.phase.value,
			"ok": self.ok,
			"error": self.error.detail if self.error is not None else None,
		}


@dataclass(slots=True, frozen=True)
class WorkflowResult:
	"""Ordered phase results of one ``respond`` call.

	The notify phase is missing when the status phase failed, and ``status``
	then holds the unchanged stored status.
	"""

	report_id: str
	status: ReportStatus
	phases: tuple[PhaseResult, ...]

	@property
	def outcome(self) -> Outcome:
		if not self.phases or not self.phases[0].ok:
			return Outcome.failed
		if len(self.phases) > 1 and self.phases[1].ok:
			return Outcome.success
		return Outcome.status_only

	@property
	def ok(self) -> bool:
		return self.outcome is Outcome.success

	@property
	def error(self) -> Optional[ConsoleError]:
		for phase in self.phases:
			if not phase.ok:
				return phase.error
		return None

	def to_dict(self) -> dict[str, object]:
		return {
			"report_id": self.report_id,
			"status": self.status.value,
			"outcome": self.outcome.value,
			"phases": [phase.to_dict() for phase in self.phases],
		}


def report_path(report_id: str) -> str:
	return f"reports/{report_id}"


def notification_path(user_id: str, report_id: str) -> str:
	return f"users/{user_id}/notifications/{report_id}"


class ResolutionWorkflow:
	"""Applies an operator response to a report and notifies its author.

	The status write always completes (or fails) before the notification
	write starts. A failed notification leaves the new status in place.
	Neither write touches the projection; the sync engine picks both up.
	"""

	def __init__(
		self,
		*,
		client: RealtimeCollectionClient | None = None,
		errors: ErrorSlot | None = None,
		clock: Callable[[], int] = now_ms,
		notification_type: str | None = None,
	) -> None:
		self.client = client or RealtimeCollectionClient()
		self.errors = errors or ErrorSlot()
		self.clock = clock
		self.notification_type = notification_type or settings.console_notification_type
		self._selected: Optional[Report] = None
		self.draft_text: str = ""

	async def respond(
		self,
		report_id: str,
		current_status: ReportStatus | str | None,
		response_text: str | None,
		target_user_id: str,
	) -> WorkflowResult:
		response = response_text or ""
		previous_status = ReportStatus.parse(current_status)
		new_status = previous_status.toggled()
		phases: list[PhaseResult] = []

		# resolvedAt is stamped on every toggle, including back to pending.
		update = {
			"status": new_status.value,
			"response": response,
			"resolvedAt": self.clock(),
		}
		try:
			await self.client.mutate(report_path(report_id), update)
		except ConsoleError as exc:
			self.errors.record("resolution.status", _STATUS_FAILURE_MESSAGE, exc)
			_LOG.error(
				"resolution.status_failed",
				extra={"report_id": report_id, "kind": type(exc).__name__},
				exc_info=exc,
			)
			phases.append(PhaseResult(Phase.status, ok=False, error=exc))
			return self._finish(report_id, previous_status, phases)
		phases.append(PhaseResult(Phase.status, ok=True))

		notification = Notification.for_response(
			report_id,
			response,
			type=self.notification_type,
			created_at=self.clock(),
		)
		try:
			await self.client.write(notification_path(target_user_id, report_id), notification.to_record())
		except ConsoleError as exc:
			error = NotificationError(cause=exc)
			self.errors.record("resolution.notify", _NOTIFY_FAILURE_MESSAGE, error)
			_LOG.error(
				"resolution.notify_failed",
				extra={"report_id": report_id, "target_user_id": target_user_id, "kind": type(exc).__name__},
				exc_info=exc,
			)
			phases.append(PhaseResult(Phase.notify, ok=False, error=error))
			return self._finish(report_id, new_status, phases)
		phases.append(PhaseResult(Phase.notify, ok=True))
		return self._finish(report_id, new_status, phases)

	def _finish(self, report_id: str, status: ReportStatus, phases: list[PhaseResult]) -> WorkflowResult:
		result = WorkflowResult(report_id=report_id, status=status, phases=tuple(phases))
		obs_metrics.record_resolution(result.outcome.value)
		_LOG.info(
			"resolution.completed",
			extra={"report_id": report_id, "outcome": result.outcome.value, "status": status.value},
		)
		return result

	# Operator draft

	@property
	def selected(self) -> Optional[Report]:
		return self._selected

	def open(self, report: Report) -> None:
		self._selected = report
		self.draft_text = report.response or ""

	def close(self) -> None:
		self._selected = None
		self.draft_text = ""

	async def submit(self) -> Optional[WorkflowResult]:
		"""Respond to the selected report with the draft text.

		The selection and draft are kept unless both steps succeed.
		"""
		report = self._selected
		if report is None:
			return None
		result = await self.respond(report.id, report.status, self.draft_text, report.user_id)
		if result.ok:
			self.close()
		return result


__all__ = [
	"Outcome",
	"Phase",
	"PhaseResult",
	"ResolutionWorkflow",
	"WorkflowResult",
	"notification_path",
	"report_path",
]
