"""
Rate Limiter Configuration

In-memory storage by default; set RATE_LIMIT_STORAGE_URI (e.g. redis://...)
to share limits between instances. The default limit applies to every
route through SlowAPIMiddleware.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import Settings

logger = logging.getLogger(__name__)


def get_real_client_ip(request: Request) -> str:
    """Get real client IP behind a reverse proxy"""
    # Check X-Forwarded-For header (set by proxies)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter(settings: Settings) -> Limiter:
    """Create a rate limiter with the configured storage backend"""
    if settings.rate_limit_storage_uri:
        logger.info("Using shared rate limiter storage")
        return Limiter(
            key_func=get_real_client_ip,
            storage_uri=settings.rate_limit_storage_uri,
            default_limits=[settings.default_rate_limit],
            enabled=settings.rate_limit_enabled,
        )

    logger.info("Using in-memory rate limiter storage")
    return Limiter(
        key_func=get_real_client_ip,
        default_limits=[settings.default_rate_limit],
        enabled=settings.rate_limit_enabled,
    )
