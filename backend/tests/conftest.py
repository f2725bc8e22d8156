import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from app.console.domain import container
from app.console.infra.realtime import RealtimeCollectionClient
from app.infra.redis import redis_client
from app.main import app


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from app.infra.redis import set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest_asyncio.fixture
async def realtime_client(fake_redis) -> RealtimeCollectionClient:
	return RealtimeCollectionClient(redis_client, namespace="test", poll_timeout=0.05)


@pytest_asyncio.fixture
async def console(realtime_client):
	"""Fresh console services wired to fakeredis; the engine is stopped afterwards."""
	container.configure(client=realtime_client)
	try:
		yield container
	finally:
		await container.get_sync_engine().stop()


@pytest.fixture
def eventually():
	"""Poll an assertion-free predicate until it holds or the timeout expires."""

	async def _wait(predicate, *, timeout: float = 2.0, interval: float = 0.01) -> None:
		loop = asyncio.get_running_loop()
		deadline = loop.time() + timeout
		while not predicate():
			if loop.time() > deadline:
				raise AssertionError("condition not met before timeout")
			await asyncio.sleep(interval)

	return _wait


@pytest_asyncio.fixture
async def api_client(console):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
