"""Lightweight service container shared by console modules."""

from __future__ import annotations

from typing import Optional

from app.console.domain.errors import ErrorSlot
from app.console.domain.moderation import ModerationActions
from app.console.domain.projection import ProjectionStore
from app.console.domain.resolution import ResolutionWorkflow
from app.console.domain.sync_engine import SyncEngine
from app.console.infra.realtime import RealtimeCollectionClient
from app.infra.redis import RedisProxy, redis_client

_redis_proxy: RedisProxy = redis_client
_client = RealtimeCollectionClient(_redis_proxy)
_errors = ErrorSlot()
_projection = ProjectionStore()
_engine = SyncEngine(client=_client, projection=_projection, errors=_errors)
_workflow = ResolutionWorkflow(client=_client, errors=_errors)
_moderation = ModerationActions(client=_client, errors=_errors)


def configure(
	*,
	redis_proxy: Optional[RedisProxy] = None,
	client: Optional[RealtimeCollectionClient] = None,
	namespace: Optional[str] = None,
) -> None:
	"""Rebuild the console services around one client, error slot and projection.

	Services built earlier keep their references, so callers should stop the
	previous engine first.
	"""
	global _redis_proxy, _client, _errors, _projection, _engine, _workflow, _moderation
	_redis_proxy = redis_proxy or _redis_proxy
	_client = client or RealtimeCollectionClient(_redis_proxy, namespace=namespace)
	_errors = ErrorSlot()
	_projection = ProjectionStore()
	_engine = SyncEngine(client=_client, projection=_projection, errors=_errors)
	_workflow = ResolutionWorkflow(client=_client, errors=_errors)
	_moderation = ModerationActions(client=_client, errors=_errors)


def get_error_slot() -> ErrorSlot:
	return _errors


def get_projection() -> ProjectionStore:
	return _projection


def get_sync_engine() -> SyncEngine:
	return _engine


def get_resolution_workflow() -> ResolutionWorkflow:
	return _workflow


def get_moderation_actions() -> ModerationActions:
	return _moderation


__all__ = [
	"configure",
	"get_error_slot",
	"get_moderation_actions",
	"get_projection",
	"get_resolution_workflow",
	"get_sync_engine",
]
