"""Single-step moderation actions on user records."""

from __future__ import annotations

import logging

from app.console.domain.errors import ErrorSlot
from app.console.domain.exceptions import ConsoleError
from app.console.domain.models import User
from app.console.infra.realtime import RealtimeCollectionClient
from app.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)

_BLOCK_FAILURE_MESSAGE = "Unable to block user. Please check your permissions."


def user_path(user_id: str) -> str:
	return f"users/{user_id}"


class ModerationActions:
	def __init__(
		self,
		*,
		client: RealtimeCollectionClient | None = None,
		errors: ErrorSlot | None = None,
	) -> None:
		self.client = client or RealtimeCollectionClient()
		self.errors = errors or ErrorSlot()

	async def block_user(self, user_id: str) -> User:
		"""Set ``blocked`` on the user record; repeating it changes nothing."""
		try:
			record = await self.client.mutate(user_path(user_id), {"blocked": True})
		except ConsoleError as exc:
			self.errors.record("moderation.block", _BLOCK_FAILURE_MESSAGE, exc)
			obs_metrics.record_block("error")
			_LOG.error(
				"moderation.block_failed",
				extra={"target_user_id": user_id, "kind": type(exc).__name__},
				exc_info=exc,
			)
			raise
		obs_metrics.record_block("ok")
		_LOG.info("moderation.user_blocked", extra={"target_user_id": user_id})
		return User.model_validate({**record, "id": user_id})


__all__ = ["ModerationActions", "user_path"]
