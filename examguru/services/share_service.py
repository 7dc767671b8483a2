"""Share-link storage for performance insights.

A payload is stored under a random URL-safe token in a TTL cache (7 days
by default) and can be fetched back until it expires.
"""

from __future__ import annotations

import secrets
from typing import Any

from examguru.interfaces.cache_provider import ICacheProvider
from examguru.services.performance_insights import build_performance_insights
from examguru.utils.logging import get_logger

_logger = get_logger(__name__)

SHARE_TTL_SECONDS = 7 * 24 * 60 * 60


class ShareService:
    """Creates and resolves share tokens for performance insights."""

    def __init__(self, cache: ICacheProvider, token_bytes: int = 24) -> None:
        self._cache = cache
        self._token_bytes = token_bytes

    async def create_share(self, payload: dict[str, Any]) -> str:
        """Store *payload* and return its share token."""
        token = secrets.token_urlsafe(self._token_bytes)
        await self._cache.set(token, payload)
        _logger.info("shared_analysis_created", token_prefix=token[:6])
        return token

    async def share_attempts(self, attempts: list[dict[str, Any]]) -> tuple[str, dict[str, Any]]:
        """Aggregate *attempts*, store the insights and return ``(token, insights)``."""
        insights = build_performance_insights(attempts)
        return await self.create_share(insights), insights

    async def get_shared(self, token: str) -> dict[str, Any] | None:
        """Return the stored payload, or ``None`` once expired or unknown."""
        payload = await self._cache.get(token)
        if payload is None:
            _logger.info("shared_analysis_missing", token_prefix=token[:6])
        return payload
