"""
Report Caching Service.

Redis-backed cache for report payloads. Keys are namespaced by a generation
counter that every write bumps, so a cached report never outlives a change
to the underlying rows. Redis outages degrade to uncached reads.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi.encoders import jsonable_encoder

from fleet_backend.app.core import redis_client as redis_client_module
from fleet_backend.app.core.config import settings
from fleet_backend.app.core.reliability import cache_circuit_breaker, CircuitOpenError

logger = logging.getLogger("fleet.cache")

GENERATION_KEY = "reports:generation"


def _client():
    # Resolved per call so tests can swap the module-level client
    return redis_client_module.redis_client


class ReportCache:

    @staticmethod
    async def _generation() -> str:
        value = await _client().get(GENERATION_KEY)
        return str(value or 0)

    @staticmethod
    def build_key(generation: str, name: str, **params: Any) -> str:
        parts = [f"{key}={params[key]}" for key in sorted(params)]
        return f"reports:{generation}:{name}:" + "&".join(parts)

    @staticmethod
    async def get_or_compute(
        name: str,
        compute: Callable[[], Awaitable[Any]],
        **params: Any
    ) -> Any:
        """
        Return the cached JSON payload for (name, params) or compute and store it.

        The computed value is returned as produced by `compute`; cached hits are
        returned as plain JSON-compatible data.
        """
        ttl = settings.report_cache_ttl_seconds
        if ttl <= 0:
            return await compute()

        key: Optional[str] = None
        try:
            generation = await cache_circuit_breaker.call(ReportCache._generation)
            key = ReportCache.build_key(generation, name, **params)
            cached = await cache_circuit_breaker.call(_client().get, key)
            if cached is not None:
                return json.loads(cached)
        except CircuitOpenError:
            return await compute()
        except Exception as e:
            logger.warning("Report cache read failed for %s: %s", name, e)
            return await compute()

        result = await compute()

        try:
            payload = json.dumps(jsonable_encoder(result))
            await cache_circuit_breaker.call(_client().set, key, payload, ex=ttl)
        except CircuitOpenError:
            pass
        except Exception as e:
            logger.warning("Report cache write failed for %s: %s", name, e)

        return result

    @staticmethod
    async def invalidate() -> None:
        """Start a new cache generation; previous entries expire by TTL."""
        if settings.report_cache_ttl_seconds <= 0:
            return
        try:
            await cache_circuit_breaker.call(_client().incr, GENERATION_KEY)
        except CircuitOpenError:
            logger.warning("Report cache invalidation skipped: circuit open")
        except Exception as e:
            logger.warning("Report cache invalidation failed: %s", e)
