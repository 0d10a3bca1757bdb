"""
Rate Limiter Configuration

In-memory by default; set REDIS_URL to share limits across instances.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import os

from ..config import settings


def get_real_client_ip(request: Request) -> str:
    """Get real client IP behind reverse proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Create the limiter, backed by Redis when REDIS_URL is set"""
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return Limiter(
            key_func=get_real_client_ip,
            storage_uri=redis_url,
            default_limits=["300/minute"]
        )
    return Limiter(
        key_func=get_real_client_ip,
        default_limits=["300/minute"]
    )


# Global rate limiter instance
limiter = create_limiter()


RATE_LIMITS = {
    # Public catalog reads (may write derived prices)
    "catalog": settings.catalog_rate_limit,

    # Partner writes
    "price_save": "60/minute",
    "apply_rules": "30/minute",
    "rate_plan_write": "30/minute",
    "inventory_save": "60/minute",
    "room_type_write": "30/minute",
}


def get_rate_limit(operation: str) -> str:
    """Get rate limit for a specific operation."""
    return RATE_LIMITS.get(operation, "100/minute")
