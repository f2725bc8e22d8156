import asyncio

import pytest
from redis import exceptions as redis_exceptions

from app.console.domain.exceptions import ConnectivityError, PermissionDeniedError
from app.console.infra.realtime import split_record_path


def test_split_record_path():
	assert split_record_path("reports/r1") == ("reports", "r1")
	assert split_record_path("/users/u1/notifications/r1/") == ("users/u1/notifications", "r1")
	with pytest.raises(ValueError):
		split_record_path("reports")


@pytest.mark.asyncio
async def test_write_then_get_orders_children_by_key(realtime_client):
	await realtime_client.write("reports/b", {"name": "B"})
	await realtime_client.write("reports/a", {"name": "A"})

	snapshot = await realtime_client.get("reports")
	assert snapshot.size == 2
	assert [key for key, _ in snapshot] == ["a", "b"]
	assert snapshot.val()["a"] == {"name": "A"}


@pytest.mark.asyncio
async def test_write_replaces_and_mutate_merges(realtime_client):
	await realtime_client.write("users/u1", {"name": "Alice", "role": "member"})
	await realtime_client.write("users/u1", {"name": "Alice"})
	assert await realtime_client.get_record("users/u1") == {"name": "Alice"}

	merged = await realtime_client.mutate("users/u1", {"blocked": True})
	assert merged == {"name": "Alice", "blocked": True}
	assert await realtime_client.get_record("users/u1") == {"name": "Alice", "blocked": True}


@pytest.mark.asyncio
async def test_mutate_creates_missing_record(realtime_client):
	await realtime_client.mutate("users/ghost", {"blocked": True})
	assert await realtime_client.get_record("users/ghost") == {"blocked": True}
	assert await realtime_client.get_record("users/nobody") is None


@pytest.mark.asyncio
async def test_filtered_get_matches_field_value(realtime_client):
	await realtime_client.write("reports/a", {"status": "resolved"})
	await realtime_client.write("reports/b", {"status": "pending"})
	await realtime_client.write("reports/c", {"status": "resolved"})

	snapshot = await realtime_client.get("reports", order_by="status", equal_to="resolved")
	assert [key for key, _ in snapshot] == ["a", "c"]


@pytest.mark.asyncio
async def test_subscription_emits_initial_and_changed_snapshots(realtime_client):
	await realtime_client.write("reports/a", {"status": "pending"})
	subscription = realtime_client.subscribe("reports")
	try:
		first = await asyncio.wait_for(subscription.__anext__(), timeout=2)
		assert first.size == 1

		await realtime_client.write("reports/b", {"status": "pending"})
		second = await asyncio.wait_for(subscription.__anext__(), timeout=2)
		assert [key for key, _ in second] == ["a", "b"]
	finally:
		await subscription.aclose()

	with pytest.raises(StopAsyncIteration):
		await subscription.__anext__()


@pytest.mark.asyncio
async def test_nested_write_notifies_root_collection(realtime_client):
	await realtime_client.write("users/u1", {"name": "Alice"})
	subscription = realtime_client.subscribe("users")
	try:
		await asyncio.wait_for(subscription.__anext__(), timeout=2)
		await realtime_client.write("users/u1/notifications/r1", {"read": False})
		snapshot = await asyncio.wait_for(subscription.__anext__(), timeout=2)
		assert snapshot.size == 1
	finally:
		await subscription.aclose()
	assert await realtime_client.get_record("users/u1/notifications/r1") == {"read": False}


@pytest.mark.asyncio
async def test_redis_errors_are_translated(realtime_client, monkeypatch):
	async def _denied(*args, **kwargs):
		raise redis_exceptions.NoPermissionError("NOPERM this user has no permissions")

	async def _down(*args, **kwargs):
		raise redis_exceptions.ConnectionError("connection refused")

	monkeypatch.setattr(realtime_client.redis.client, "hset", _denied)
	with pytest.raises(PermissionDeniedError) as denied:
		await realtime_client.write("users/u1/notifications/r1", {"read": False})
	assert denied.value.detail == "permission_denied"
	assert denied.value.path == "users/u1/notifications/r1"

	monkeypatch.setattr(realtime_client.redis.client, "hgetall", _down)
	with pytest.raises(ConnectivityError):
		await realtime_client.get("reports")


@pytest.mark.asyncio
async def test_undecodable_value_is_a_connectivity_error(realtime_client, fake_redis):
	await fake_redis.hset(realtime_client.hash_key("reports"), "X", b"\xff\xfe")
	with pytest.raises(ConnectivityError) as broken:
		await realtime_client.get("reports")
	assert broken.value.path == "reports"
	assert isinstance(broken.value.__cause__, UnicodeDecodeError)
