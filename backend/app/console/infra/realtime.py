"""Redis-backed realtime collection client.

Collections are addressed by slash-separated paths (``reports``,
``users/<uid>/notifications``). Each collection lives in one Redis hash whose
fields are record keys and whose values are JSON documents. Every write
publishes a change message on the collection's channel, and on the channel of
its root collection when the record is nested, so live subscriptions re-read
and push a fresh snapshot.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from redis import exceptions as redis_exceptions

from app.console.domain.exceptions import ConnectivityError, PermissionDeniedError
from app.infra.redis import RedisProxy, redis_client
from app.settings import settings

_LOG = logging.getLogger(__name__)

# AuthenticationError and AuthorizationError subclass ConnectionError, so they are matched first.
_PERMISSION_ERRORS = (
	redis_exceptions.NoPermissionError,
	redis_exceptions.AuthenticationError,
	redis_exceptions.AuthorizationError,
)


@contextmanager
def _translate_errors(path: str) -> Iterator[None]:
	try:
		yield
	except _PERMISSION_ERRORS as exc:
		raise PermissionDeniedError(path=path) from exc
	except (redis_exceptions.RedisError, UnicodeDecodeError) as exc:
		raise ConnectivityError(path=path) from exc


def _normalise(path: str) -> str:
	parts = [part for part in path.strip().split("/") if part]
	if not parts:
		raise ValueError("empty realtime path")
	return "/".join(parts)


def split_record_path(path: str) -> tuple[str, str]:
	"""Split ``a/b/c`` into the collection path ``a/b`` and record key ``c``."""
	normalised = _normalise(path)
	collection, sep, key = normalised.rpartition("/")
	if not sep:
		raise ValueError(f"record path needs a collection and a key: {path!r}")
	return collection, key


def _decode(raw: Any) -> Any:
	if isinstance(raw, bytes):
		raw = raw.decode("utf-8")
	try:
		return json.loads(raw)
	except (TypeError, json.JSONDecodeError):
		return raw


def _encode(value: Any) -> str:
	return json.dumps(value, separators=(",", ":"))


@dataclass(slots=True, frozen=True)
class Snapshot:
	"""Point-in-time read of a collection, children ordered by key."""

	path: str
	children: tuple[tuple[str, Any], ...]

	def __iter__(self) -> Iterator[tuple[str, Any]]:
		return iter(self.children)

	def __len__(self) -> int:
		return len(self.children)

	@property
	def size(self) -> int:
		return len(self.children)

	def val(self) -> dict[str, Any]:
		return dict(self.children)


class RealtimeCollectionClient:
	"""Subscribe, read, and write path-addressed collections stored in Redis."""

	def __init__(
		self,
		redis: RedisProxy | None = None,
		*,
		namespace: str | None = None,
		poll_timeout: float | None = None,
	) -> None:
		self.redis = redis or redis_client
		self.namespace = namespace or settings.realtime_namespace
		self.poll_timeout = poll_timeout if poll_timeout is not None else settings.realtime_poll_timeout_seconds

	def hash_key(self, collection: str) -> str:
		return f"{self.namespace}:{_normalise(collection)}"

	def channel(self, collection: str) -> str:
		return f"{self.namespace}:changed:{_normalise(collection)}"

	def subscribe(
		self,
		path: str,
		*,
		order_by: str | None = None,
		equal_to: Any = None,
	) -> "Subscription":
		"""Open a live stream of snapshots for ``path``.

		When ``order_by`` is given only children whose ``order_by`` field equals
		``equal_to`` are included.
		"""
		return Subscription(self, _normalise(path), order_by=order_by, equal_to=equal_to)

	async def get(
		self,
		path: str,
		*,
		order_by: str | None = None,
		equal_to: Any = None,
	) -> Snapshot:
		collection = _normalise(path)
		with _translate_errors(collection):
			items = await self.redis.hgetall_sorted(self.hash_key(collection))
		children = []
		for key, raw in items:
			value = _decode(raw)
			if order_by is not None:
				if not isinstance(value, Mapping) or value.get(order_by) != equal_to:
					continue
			children.append((key, value))
		return Snapshot(path=collection, children=tuple(children))

	async def get_record(self, path: str) -> Optional[Any]:
		collection, key = split_record_path(path)
		with _translate_errors(path):
			raw = await self.redis.hget(self.hash_key(collection), key)
		if raw is None:
			return None
		return _decode(raw)

	async def mutate(self, path: str, partial: Mapping[str, Any]) -> dict[str, Any]:
		"""Merge ``partial`` into the record at ``path``, creating it when absent."""
		collection, key = split_record_path(path)
		hash_key = self.hash_key(collection)
		with _translate_errors(path):
			async with self.redis.pipeline(transaction=True) as pipe:
				while True:
					try:
						await pipe.watch(hash_key)
						current = await pipe.hget(hash_key, key)
						record = _decode(current) if current is not None else {}
						if not isinstance(record, dict):
							record = {}
						merged = {**record, **dict(partial)}
						pipe.multi()
						pipe.hset(hash_key, key, _encode(merged))
						await pipe.execute()
						break
					except redis_exceptions.WatchError:
						continue
			await self._publish(collection, key, op="mutate")
		return merged

	async def write(self, path: str, record: Mapping[str, Any]) -> None:
		"""Replace or create the record at ``path``."""
		collection, key = split_record_path(path)
		with _translate_errors(path):
			await self.redis.hset(self.hash_key(collection), key, _encode(dict(record)))
			await self._publish(collection, key, op="write")

	async def _publish(self, collection: str, key: str, *, op: str) -> None:
		message = _encode({"path": f"{collection}/{key}", "op": op})
		channels = [self.channel(collection)]
		root = collection.split("/", 1)[0]
		if root != collection:
			channels.append(self.channel(root))
		for channel in channels:
			await self.redis.publish(channel, message)


class Subscription:
	"""Async iterator over live snapshots of one collection.

	The first snapshot is read right after the change channel is joined; each
	later snapshot follows a change message. Snapshots are emitted in the order
	changes arrive on the channel.
	"""

	def __init__(
		self,
		client: RealtimeCollectionClient,
		path: str,
		*,
		order_by: str | None = None,
		equal_to: Any = None,
	) -> None:
		self.client = client
		self.path = path
		self.order_by = order_by
		self.equal_to = equal_to
		self._pubsub = None
		self._closed = False

	def __aiter__(self) -> "Subscription":
		return self

	async def __anext__(self) -> Snapshot:
		if self._closed:
			raise StopAsyncIteration
		if self._pubsub is None:
			with _translate_errors(self.path):
				pubsub = self.client.redis.pubsub()
				self._pubsub = pubsub
				await pubsub.subscribe(self.client.channel(self.path))
			_LOG.debug("realtime.subscribed", extra={"collection": self.path})
			return await self._read()
		while not self._closed:
			with _translate_errors(self.path):
				message = await self._pubsub.get_message(
					ignore_subscribe_messages=True,
					timeout=self.client.poll_timeout,
				)
			if message is None or message.get("type") != "message":
				continue
			return await self._read()
		raise StopAsyncIteration

	async def _read(self) -> Snapshot:
		return await self.client.get(self.path, order_by=self.order_by, equal_to=self.equal_to)

	async def aclose(self) -> None:
		if self._closed:
			return
		self._closed = True
		pubsub, self._pubsub = self._pubsub, None
		if pubsub is None:
			return
		try:
			await pubsub.unsubscribe()
			await pubsub.aclose()
		except redis_exceptions.RedisError:
			_LOG.warning("realtime.unsubscribe_failed", extra={"collection": self.path}, exc_info=True)


__all__ = ["RealtimeCollectionClient", "Snapshot", "Subscription", "split_record_path"]
