"""
Middleware package exports.
"""

from middleware.request_id import RequestIDMiddleware, get_request_id
from middleware.rate_limiter import limiter, RateLimiter, RateLimitExceeded
from middleware.csrf import csrf_guard, CsrfGuard

__all__ = [
    "RequestIDMiddleware", "get_request_id",
    "limiter", "RateLimiter", "RateLimitExceeded",
    "csrf_guard", "CsrfGuard",
]
