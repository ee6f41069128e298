"""
Rate limiting for the FastAPI API.
"""

import time
from typing import Dict, List, Optional

import structlog
from fastapi import HTTPException, Request, status

from api.config import config

logger = structlog.get_logger(__name__)


class RateLimiter:
    """
    Sliding-window request counter per client.

    Request timestamps live in process memory, so every worker process keeps
    its own window.
    """

    def __init__(self, rate_limit: int = 100, window: int = 3600):
        """
        Initialize the rate limiter.

        Args:
            rate_limit: Requests allowed per window
            window: Window length in seconds
        """
        self.rate_limit = rate_limit
        self.window = window
        self.requests: Dict[str, List[float]] = {}

    def _recent(self, client: str, current_time: float) -> List[float]:
        recent = [
            req_time for req_time in self.requests.get(client, [])
            if current_time - req_time < self.window
        ]
        self.requests[client] = recent
        return recent

    def check_rate_limit(self, client: str, current_time: Optional[float] = None) -> bool:
        """
        Record a request if the client is under its limit.

        Args:
            client: Client identifier
            current_time: Request time, defaults to now

        Returns:
            True if within limit, False if exceeded
        """
        current_time = time.time() if current_time is None else current_time
        recent = self._recent(client, current_time)

        if len(recent) < self.rate_limit:
            recent.append(current_time)
            return True

        return False

    def get_rate_limit_info(self, client: str, current_time: Optional[float] = None) -> Dict:
        """
        Get rate limit information for a client.

        Returns:
            Dictionary with rate limit information
        """
        current_time = time.time() if current_time is None else current_time
        recent = self._recent(client, current_time)

        reset_time = (recent[0] if recent else current_time) + self.window

        return {
            "requests_used": len(recent),
            "requests_remaining": max(0, self.rate_limit - len(recent)),
            "rate_limit": self.rate_limit,
            "reset_time": reset_time,
        }

    def get_rate_limit_headers(self, client: str) -> Dict[str, str]:
        """Rate limit headers for a response."""
        rate_info = self.get_rate_limit_info(client)
        return {
            "X-RateLimit-Limit": str(rate_info["rate_limit"]),
            "X-RateLimit-Remaining": str(rate_info["requests_remaining"]),
            "X-RateLimit-Reset": str(int(rate_info["reset_time"])),
        }


rate_limiter = RateLimiter(config.default_rate_limit, config.rate_limit_window)


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request) -> None:
    """
    Dependency rejecting requests over the per-client limit.

    Raises:
        HTTPException: 429 when the client exceeded its limit
    """
    if not config.rate_limit_enabled:
        return

    client = client_key(request)
    if not rate_limiter.check_rate_limit(client):
        logger.warning("Rate limit exceeded", client=client)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later",
            headers=rate_limiter.get_rate_limit_headers(client),
        )
