"""
Shared request dependencies for FastAPI.

Query-parameter parsing used by the reporting and list endpoints.
"""

from typing import Optional
from fastapi import Query

from fleet_backend.app.core.config import settings

MAX_LIST_LIMIT = 500


def parse_months(raw: Optional[str]) -> int:
    """
    Resolve the `meses` reporting window.

    Missing or non-integer values fall back to the configured default;
    integers are clamped into [1, report_max_months].
    """
    try:
        months = int(raw)
    except (TypeError, ValueError):
        return settings.report_default_months
    return max(1, min(months, settings.report_max_months))


async def months_window(
    meses: Optional[str] = Query(None, description="Window size in months (1-12, default 6)")
) -> int:
    """FastAPI dependency wrapping parse_months."""
    return parse_months(meses)


def limit_query(default: int):
    """Build a `limit` dependency with an endpoint-specific default."""

    async def dependency(
        limit: int = Query(default, ge=1, le=MAX_LIST_LIMIT, description="Maximum rows returned")
    ) -> int:
        return limit

    return dependency
