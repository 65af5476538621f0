"""
Rate limiting for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict, Tuple
import logging

from tai_test.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter

    Clients are keyed by bearer token when present, else by IP address.
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.windows: Tuple[Tuple[str, int, int], ...] = (
            ("minute", 60, requests_per_minute),
            ("hour", 3600, requests_per_hour),
        )
        # {client_id: deque of request timestamps}
        self.history: Dict[str, Deque[float]] = defaultdict(deque)

    def _get_client_id(self, request: Request) -> str:
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer ") and auth[7:].strip():
            return f"token:{auth[7:].strip()}"
        return request.client.host if request.client else "unknown"

    def reset(self) -> None:
        self.history.clear()

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop timestamps outside the widest window and forget idle clients"""
        cutoff = now - max(seconds for _, seconds, _ in self.windows)
        for client_id in list(self.history.keys()):
            history = self.history[client_id]
            while history and history[0] <= cutoff:
                history.popleft()
            if not history:
                del self.history[client_id]

    async def check_rate_limit(self, request: Request) -> None:
        """
        Record the request or reject it

        Raises:
            HTTPException: 429 if any window is exhausted
        """
        client_id = self._get_client_id(request)
        now = time.time()

        self._cleanup_old_entries(now)
        history = self.history[client_id]

        for name, seconds, limit in self.windows:
            count = sum(1 for ts in history if ts > now - seconds)
            if count >= limit:
                logger.warning(f"Rate limit exceeded ({name}): {client_id}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many requests. Limit: {limit} requests per {name}",
                        "retry_after": seconds
                    }
                )

        history.append(now)


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
