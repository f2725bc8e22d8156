"""In-memory projection of the mirrored collections."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from pydantic import BaseModel

from app.console.domain.charts import community_chart
from app.console.domain.models import ChartEntry, Report, Stats

_LOG = logging.getLogger(__name__)

ProjectionListener = Callable[["ProjectionStore", str], None]


class ProjectionView(BaseModel):
	"""Read-only copy of the projection handed to renderers."""

	loaded: bool
	reports: list[Report]
	stats: Stats
	community_chart: list[ChartEntry]


class ProjectionStore:
	"""Reports list plus three independently updated counters.

	Only the sync engine calls the ``apply_*`` methods. Each call replaces one
	slice of state and then notifies listeners with the slice name. The
	counters come from different subscriptions, so a reader may briefly see a
	combination such as ``resolved_reports > total_reports``.
	"""

	def __init__(self) -> None:
		self._reports: tuple[Report, ...] = ()
		self._stats = Stats()
		self._loaded = False
		self._listeners: list[ProjectionListener] = []

	@property
	def reports(self) -> tuple[Report, ...]:
		return self._reports

	@property
	def stats(self) -> Stats:
		return self._stats

	@property
	def loaded(self) -> bool:
		return self._loaded

	@property
	def community_chart(self) -> list[ChartEntry]:
		return community_chart(self._reports)

	def find_report(self, report_id: str) -> Report | None:
		for report in self._reports:
			if report.id == report_id:
				return report
		return None

	def apply_reports(self, reports: Iterable[Report]) -> None:
		self._reports = tuple(reports)
		self._stats = self._stats.model_copy(update={"total_reports": len(self._reports)})
		self._loaded = True
		self._notify("reports")

	def apply_total_users(self, count: int) -> None:
		self._stats = self._stats.model_copy(update={"total_users": count})
		self._notify("total_users")

	def apply_resolved_reports(self, count: int) -> None:
		self._stats = self._stats.model_copy(update={"resolved_reports": count})
		self._notify("resolved_reports")

	def reset(self) -> None:
		self._reports = ()
		self._stats = Stats()
		self._loaded = False

	def add_listener(self, listener: ProjectionListener) -> Callable[[], None]:
		self._listeners.append(listener)

		def _remove() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return _remove

	def clear_listeners(self) -> None:
		self._listeners.clear()

	def view(self) -> ProjectionView:
		return ProjectionView(
			loaded=self._loaded,
			reports=list(self._reports),
			stats=self._stats,
			community_chart=self.community_chart,
		)

	def _notify(self, field: str) -> None:
		for listener in list(self._listeners):
			try:
				listener(self, field)
			except Exception:
				_LOG.exception("projection.listener_failed", extra={"field": field})


__all__ = ["ProjectionListener", "ProjectionStore", "ProjectionView"]
