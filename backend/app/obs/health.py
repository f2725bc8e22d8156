"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from app.console.domain.container import get_sync_engine
from app.console.domain.sync_engine import EngineState
from app.infra.redis import redis_client
from app.obs import metrics

LOGGER = logging.getLogger(__name__)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
		latency = perf_counter() - start
		metrics.mark_redis(True, latency_seconds=latency)
		return {"ok": True, "latency_ms": round(latency * 1000, 2)}
	except Exception as exc:  # pragma: no cover - depends on runtime
		metrics.mark_redis(False)
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc)}


def _sync_status() -> Dict[str, Any]:
	engine = get_sync_engine()
	state = engine.state
	payload: Dict[str, Any] = {
		"ok": state is not EngineState.failed,
		"state": state.value,
		"loaded": engine.projection.loaded,
	}
	if engine.failure is not None:
		payload["error"] = engine.failure.detail
	return payload


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	redis_state = await _redis_status()
	sync_state = _sync_status()
	ok = redis_state.get("ok") and sync_state.get("ok")
	status_code = 200 if ok else 503
	return (
		status_code,
		{
			"status": "ok" if ok else "degraded",
			"checks": {
				"redis": redis_state,
				"sync": sync_state,
			},
		},
	)
