"""
Rate limiting middleware using slowapi
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
import structlog

from studyai import config

logger = structlog.get_logger()

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"],
    enabled=config.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Log and answer 429 when a client exceeds its own request budget"""
    client = request.client.host if request.client else "unknown"
    logger.warning("rate_limit_exceeded", client_ip=client, path=request.url.path, limit=str(exc.detail))
    return _rate_limit_exceeded_handler(request, exc)


# Rate limit decorators for different endpoints
def ai_generation_limit():
    """Rate limit for AI generation endpoints"""
    return limiter.limit(lambda: config.AI_RATE_LIMIT)


def file_processing_limit():
    """Rate limit for document uploads"""
    return limiter.limit("10/minute")
