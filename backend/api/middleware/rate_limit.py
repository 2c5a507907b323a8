"""
Request-level rate limiting.

Every API route shares one per-IP budget sized from settings. The auth
routes additionally apply their own per-action policies in the service.
"""

import logging

from fastapi import Depends, Request

from modules.auth.exceptions import RateLimitExceededError

from ..dependencies import ServiceContainer, get_container

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Best-effort client address.

    Uses the first X-Forwarded-For hop when present, then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


async def enforce_api_rate_limit(
    ip: str = Depends(get_client_ip),
    container: ServiceContainer = Depends(get_container),
) -> None:
    """Reject the request with 429 once the client IP exhausts its budget."""
    policy = container.api_policy
    result = container.rate_limiter.check_policy(policy, ip)
    if not result.allowed:
        logger.info("API rate limit hit for %s", policy.key(ip))
        raise RateLimitExceededError("requests", result.retry_after_ms or 0)
