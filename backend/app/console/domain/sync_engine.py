"""Live synchronization of the remote collections into the projection."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, Mapping

from app.console.domain.errors import ErrorSlot
from app.console.domain.exceptions import ConnectivityError, ConsoleError
from app.console.domain.models import Report, ReportStatus
from app.console.domain.projection import ProjectionStore
from app.console.infra.realtime import RealtimeCollectionClient, Snapshot, Subscription
from app.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)

REPORTS_PATH = "reports"
USERS_PATH = "users"

SUB_REPORTS = "reports"
SUB_USERS = "users"
SUB_RESOLVED = "resolved"

_SUBSCRIPTION_PATHS = {
	SUB_REPORTS: REPORTS_PATH,
	SUB_USERS: USERS_PATH,
	SUB_RESOLVED: REPORTS_PATH,
}

_FAILURE_MESSAGES = {
	SUB_REPORTS: "Unable to fetch reports. Please check your permissions.",
	SUB_USERS: "Unable to fetch users.",
	SUB_RESOLVED: "Unable to fetch resolved reports.",
}
_SETUP_FAILURE_MESSAGE = "Unable to connect to the database. Please try again later."


class EngineState(str, enum.Enum):
	idle = "idle"
	running = "running"
	failed = "failed"
	stopped = "stopped"


class SyncEngine:
	"""Keeps a ProjectionStore in step with the ``reports`` and ``users`` collections.

	Three subscriptions run as separate tasks and each one owns its slice of
	the projection:

	- ``reports``: every snapshot replaces the report list and ``total_reports``
	- ``users``: snapshot size becomes ``total_users``
	- ``resolved``: reports filtered on ``status == resolved``, size becomes ``resolved_reports``

	A failing subscription puts the engine in ``failed`` and writes the shared
	error slot. Nothing is retried; call ``restart()`` to resubscribe.
	"""

	def __init__(
		self,
		*,
		client: RealtimeCollectionClient | None = None,
		projection: ProjectionStore | None = None,
		errors: ErrorSlot | None = None,
	) -> None:
		self.client = client or RealtimeCollectionClient()
		self.projection = projection or ProjectionStore()
		self.errors = errors or ErrorSlot()
		self._tasks: dict[str, asyncio.Task] = {}
		self._subscriptions: list[Subscription] = []
		self._first_snapshot: dict[str, asyncio.Event] = {}
		self._state = EngineState.idle
		self._failure: ConsoleError | None = None

	@property
	def state(self) -> EngineState:
		return self._state

	@property
	def failure(self) -> ConsoleError | None:
		return self._failure

	@property
	def running(self) -> bool:
		return self._state is EngineState.running

	async def start(self) -> None:
		if self._tasks:
			return
		self.projection.reset()
		self._failure = None
		self._state = EngineState.running
		subscriptions: dict[str, tuple[Subscription, Callable[[Snapshot], None]]] = {
			SUB_REPORTS: (self.client.subscribe(REPORTS_PATH), self._apply_reports),
			SUB_USERS: (self.client.subscribe(USERS_PATH), self._apply_users),
			SUB_RESOLVED: (
				self.client.subscribe(REPORTS_PATH, order_by="status", equal_to=ReportStatus.resolved.value),
				self._apply_resolved,
			),
		}
		for name, (subscription, apply) in subscriptions.items():
			self._subscriptions.append(subscription)
			self._first_snapshot[name] = asyncio.Event()
			self._tasks[name] = asyncio.create_task(
				self._listen(name, subscription, apply),
				name=f"console-sync-{name}",
			)
		obs_metrics.set_sync_running(True)
		_LOG.info("sync_engine.started", extra={"subscriptions": list(subscriptions)})

	async def stop(self) -> None:
		tasks = list(self._tasks.values())
		self._tasks.clear()
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)
		# Tasks cancelled before their first step never reach their own cleanup.
		subscriptions, self._subscriptions = self._subscriptions, []
		for subscription in subscriptions:
			await subscription.aclose()
		self._first_snapshot.clear()
		if self._state is not EngineState.idle:
			self._state = EngineState.stopped
		obs_metrics.set_sync_running(False)
		_LOG.info("sync_engine.stopped")

	async def restart(self) -> None:
		await self.stop()
		await self.start()

	async def wait_ready(self, timeout: float | None = None) -> bool:
		"""Wait until every subscription delivered its first snapshot or ended.

		Returns False on timeout.
		"""
		events = list(self._first_snapshot.values())
		if not events:
			return False
		try:
			await asyncio.wait_for(asyncio.gather(*(event.wait() for event in events)), timeout=timeout)
		except asyncio.TimeoutError:
			return False
		return True

	async def _listen(
		self,
		name: str,
		subscription: Subscription,
		apply: Callable[[Snapshot], None],
	) -> None:
		received = False
		try:
			async for snapshot in subscription:
				apply(snapshot)
				received = True
				obs_metrics.record_snapshot(name)
				self._first_snapshot[name].set()
		except ConsoleError as exc:
			self._fail(name, exc, during_setup=not received)
		except Exception as exc:
			error = ConnectivityError(path=_SUBSCRIPTION_PATHS[name])
			error.__cause__ = exc
			self._fail(name, error, during_setup=not received)
		finally:
			event = self._first_snapshot.get(name)
			if event is not None:
				event.set()
			await subscription.aclose()

	def _fail(self, name: str, exc: ConsoleError, *, during_setup: bool) -> None:
		self._state = EngineState.failed
		self._failure = exc
		if during_setup and isinstance(exc, ConnectivityError):
			message = _SETUP_FAILURE_MESSAGE
		else:
			message = _FAILURE_MESSAGES[name]
		self.errors.record(f"sync.{name}", message, exc)
		obs_metrics.record_sync_failure(name, exc.detail)
		_LOG.error(
			"sync_engine.subscription_failed",
			extra={"subscription": name, "kind": type(exc).__name__, "during_setup": during_setup},
			exc_info=exc,
		)

	def _apply_reports(self, snapshot: Snapshot) -> None:
		reports: list[Report] = []
		for key, value in snapshot:
			if not isinstance(value, Mapping):
				self._skip_record(key, "not_a_mapping")
				continue
			reports.append(Report.from_snapshot(key, value))
		self.projection.apply_reports(reports)
		obs_metrics.set_stat("total_reports", len(reports))

	def _apply_users(self, snapshot: Snapshot) -> None:
		self.projection.apply_total_users(snapshot.size)
		obs_metrics.set_stat("total_users", snapshot.size)

	def _apply_resolved(self, snapshot: Snapshot) -> None:
		self.projection.apply_resolved_reports(snapshot.size)
		obs_metrics.set_stat("resolved_reports", snapshot.size)

	@staticmethod
	def _skip_record(key: str, reason: str) -> None:
		obs_metrics.SYNC_SKIPPED_RECORDS.inc()
		_LOG.warning("sync_engine.record_skipped", extra={"report_id": key, "reason": reason})


__all__ = ["EngineState", "SyncEngine"]
