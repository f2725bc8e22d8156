import pytest

from app.console.domain.exceptions import PermissionDeniedError
from app.console.domain.models import ChartEntry, ReportStatus
from app.console.domain.resolution import Outcome
from app.console.domain.sync_engine import EngineState


async def _seed(client):
	await client.write(
		"reports/A",
		{"name": "Alice", "matterType": "Community", "status": "pending", "userId": "u1", "createdAt": 1},
	)
	await client.write(
		"reports/B",
		{"name": "Bob", "matterType": "Legal", "status": "resolved", "userId": "u2", "createdAt": 2, "resolvedAt": 3},
	)
	await client.write(
		"reports/C",
		{"name": "Carol", "matterType": "Community", "status": "pending", "userId": "u1", "createdAt": 4},
	)
	await client.write("users/u1", {"blocked": False})
	await client.write("users/u2", {"blocked": True})


@pytest.mark.asyncio
async def test_dashboard_scenario(console, realtime_client, eventually):
	await _seed(realtime_client)
	engine = console.get_sync_engine()
	await engine.start()
	assert await engine.wait_ready(timeout=2)

	projection = console.get_projection()
	stats = projection.stats
	assert (stats.total_reports, stats.resolved_reports, stats.total_users) == (3, 1, 2)
	assert [report.id for report in projection.reports] == ["A", "B", "C"]
	assert projection.community_chart == [
		ChartEntry(name="Alice", reports=1),
		ChartEntry(name="Carol", reports=1),
	]


@pytest.mark.asyncio
async def test_resolution_flows_back_through_subscriptions(console, realtime_client, eventually):
	await _seed(realtime_client)
	engine = console.get_sync_engine()
	await engine.start()
	assert await engine.wait_ready(timeout=2)
	projection = console.get_projection()

	result = await console.get_resolution_workflow().respond("A", "pending", "Handled", "u1")
	assert result.outcome is Outcome.success

	await eventually(lambda: projection.stats.resolved_reports == 2)
	report = projection.find_report("A")
	assert report.status is ReportStatus.resolved
	assert report.response == "Handled"
	assert report.resolved_at is not None
	assert projection.stats.total_reports == 3
	assert projection.stats.total_users == 2
	notification = await realtime_client.get_record("users/u1/notifications/A")
	assert notification["read"] is False
	assert notification["message"] == "Your report (ID: A) has been responded to."

	# re-running overwrites the notification instead of adding another
	await console.get_resolution_workflow().respond("A", "resolved", "Reopened", "u1")
	notifications = await realtime_client.get("users/u1/notifications")
	assert notifications.size == 1
	await eventually(lambda: projection.stats.resolved_reports == 1)
	assert projection.find_report("A").resolved_at is not None


@pytest.mark.asyncio
async def test_block_user_is_idempotent_against_store(console, realtime_client):
	moderation = console.get_moderation_actions()
	await realtime_client.write("users/u1", {"name": "Alice"})

	await moderation.block_user("u1")
	await moderation.block_user("u1")

	assert await realtime_client.get_record("users/u1") == {"name": "Alice", "blocked": True}
	assert console.get_error_slot().latest is None


@pytest.mark.asyncio
async def test_status_write_rejected_leaves_no_notification(console, realtime_client, monkeypatch):
	from redis import exceptions as redis_exceptions

	await _seed(realtime_client)

	def _reject(*args, **kwargs):
		raise redis_exceptions.NoPermissionError("NOPERM")

	monkeypatch.setattr(realtime_client.redis.client, "pipeline", _reject)
	result = await console.get_resolution_workflow().respond("A", "pending", "text", "u1")

	assert result.outcome is Outcome.failed
	assert isinstance(result.error, PermissionDeniedError)
	assert await realtime_client.get_record("users/u1/notifications/A") is None
	assert console.get_error_slot().latest.source == "resolution.status"


@pytest.mark.asyncio
async def test_restart_resubscribes_after_stop(console, realtime_client):
	await _seed(realtime_client)
	engine = console.get_sync_engine()
	await engine.start()
	assert await engine.wait_ready(timeout=2)
	await engine.restart()
	assert engine.state is EngineState.running
	assert await engine.wait_ready(timeout=2)
	assert console.get_projection().stats.total_reports == 3


@pytest.mark.asyncio
async def test_loosely_typed_reports_are_counted(console, realtime_client):
	await realtime_client.write("reports/A", {"name": "Alice", "phone": 788123456, "status": "pending"})
	await realtime_client.write("reports/B", {"name": None, "status": "resolved", "createdAt": 1700000000000.5})
	engine = console.get_sync_engine()
	await engine.start()
	assert await engine.wait_ready(timeout=2)

	projection = console.get_projection()
	assert [report.id for report in projection.reports] == ["A", "B"]
	assert projection.stats.total_reports == 2
	assert projection.stats.resolved_reports == 1
	assert projection.find_report("A").phone == "788123456"
	assert projection.find_report("B").created_at == 1700000000000


@pytest.mark.asyncio
async def test_undecodable_record_fails_engine_visibly(console, realtime_client, fake_redis, eventually):
	await _seed(realtime_client)
	engine = console.get_sync_engine()
	await engine.start()
	assert await engine.wait_ready(timeout=2)

	await fake_redis.hset(realtime_client.hash_key("reports"), "X", b"\xff\xfe")
	await fake_redis.publish(realtime_client.channel("reports"), "{}")

	await eventually(lambda: engine.state is EngineState.failed)
	latest = console.get_error_slot().latest
	assert latest.source in {"sync.reports", "sync.resolved"}
	assert latest.kind == "connectivity_error"
