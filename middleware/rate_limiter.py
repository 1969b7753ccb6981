"""
Fixed-window, per-client rate limiting.

Counters live in a `limits` storage (in-memory by default, so they are
per process). Each endpoint class has its own policy; a policy either
counts every request or only the failed ones (status >= 400), in which
case a successful request never uses up the budget.
"""

import functools
import inspect
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from limits import RateLimitItem, RateLimitItemPerHour, RateLimitItemPerMinute
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address
from starlette import status
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from core.config import settings
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    item: RateLimitItem
    message: str
    count_failed_only: bool = False

    @property
    def window_seconds(self) -> int:
        return self.item.get_expiry()


API_LIMIT = RateLimitPolicy(
    name="api",
    item=RateLimitItemPerMinute(100, 15),
    message="Too many requests from this IP, please try again later",
    count_failed_only=True,
)
AUTH_LIMIT = RateLimitPolicy(
    name="auth",
    item=RateLimitItemPerMinute(5, 15),
    message="Too many authentication attempts from this IP, please try again after 15 minutes",
    count_failed_only=True,
)
OTP_LIMIT = RateLimitPolicy(
    name="otp",
    item=RateLimitItemPerMinute(3, 10),
    message="Too many OTP verification attempts. Please request a new OTP",
)
PASSWORD_RESET_LIMIT = RateLimitPolicy(
    name="password_reset",
    item=RateLimitItemPerHour(3),
    message="Too many password reset requests. Please try again later",
)
REGISTER_LIMIT = RateLimitPolicy(
    name="register",
    item=RateLimitItemPerHour(5),
    message="Too many accounts created from this IP. Please try again later",
    count_failed_only=True,
)
UPLOAD_LIMIT = RateLimitPolicy(
    name="upload",
    item=RateLimitItemPerMinute(20, 15),
    message="Too many file uploads. Please try again later",
)


class RateLimitExceeded(HTTPException):
    def __init__(self, policy: RateLimitPolicy, retry_after: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": policy.message, "retry_after": retry_after},
            headers={"Retry-After": str(retry_after)}
        )
        self.policy = policy
        self.retry_after = retry_after


def _find_request(args, kwargs) -> Request:
    request = kwargs.get("request")
    if isinstance(request, Request):
        return request
    for arg in args:
        if isinstance(arg, Request):
            return arg
    raise RuntimeError("Rate limited endpoints must accept a `request: Request` argument")


class RateLimiter:
    def __init__(self, storage: Optional[Storage] = None,
                 key_func: Callable[[Request], str] = get_remote_address,
                 enabled: bool = True):
        self.storage = storage or MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)
        self.key_func = key_func
        self.enabled = enabled

    # ------------------------------------------------------------------
    # counters
    # ------------------------------------------------------------------
    def retry_after(self, policy: RateLimitPolicy, key: str) -> int:
        reset_time, _ = self.strategy.get_window_stats(policy.item, policy.name, key)
        return max(1, int(reset_time - time.time()))

    def hit(self, policy: RateLimitPolicy, key: str) -> bool:
        """Count one request. False when the window is already full."""
        return self.strategy.hit(policy.item, policy.name, key)

    def is_exhausted(self, policy: RateLimitPolicy, key: str) -> bool:
        return not self.strategy.test(policy.item, policy.name, key)

    def reset(self) -> None:
        self.storage.reset()

    def _reject(self, policy: RateLimitPolicy, key: str) -> RateLimitExceeded:
        retry_after = self.retry_after(policy, key)
        logger.warning(
            "Rate limit exceeded",
            extra={"client_key": key, "policy": policy.name, "retry_after": retry_after}
        )
        return RateLimitExceeded(policy, retry_after)

    def before_request(self, policy: RateLimitPolicy, key: str) -> None:
        """Raise RateLimitExceeded if this request may not run."""
        if policy.count_failed_only:
            if self.is_exhausted(policy, key):
                raise self._reject(policy, key)
        elif not self.hit(policy, key):
            raise self._reject(policy, key)

    def after_request(self, policy: RateLimitPolicy, key: str, failed: bool) -> None:
        if policy.count_failed_only and failed:
            self.hit(policy, key)

    # ------------------------------------------------------------------
    # integration
    # ------------------------------------------------------------------
    def limit(self, policy: RateLimitPolicy):
        """
        Decorate an endpoint; the endpoint must take `request: Request`.

            @router.post("/token")
            @limiter.limit(AUTH_LIMIT)
            async def login(request: Request, ...):
        """
        def decorator(func):
            is_async = inspect.iscoroutinefunction(func)

            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                if not self.enabled:
                    if is_async:
                        return await func(*args, **kwargs)
                    return await run_in_threadpool(func, *args, **kwargs)

                key = self.key_func(_find_request(args, kwargs))
                self.before_request(policy, key)

                try:
                    if is_async:
                        result = await func(*args, **kwargs)
                    else:
                        result = await run_in_threadpool(func, *args, **kwargs)
                except HTTPException as exc:
                    self.after_request(policy, key, failed=exc.status_code >= 400)
                    raise
                except Exception:
                    self.after_request(policy, key, failed=True)
                    raise

                failed = isinstance(result, Response) and result.status_code >= 400
                self.after_request(policy, key, failed=failed)
                return result

            return wrapper
        return decorator

    def middleware(self, policy: RateLimitPolicy):
        """
        App-wide HTTP middleware applying `policy` to every request:

            app.middleware("http")(limiter.middleware(API_LIMIT))
        """
        async def rate_limit_middleware(request: Request, call_next):
            if not self.enabled:
                return await call_next(request)

            key = self.key_func(request)
            try:
                self.before_request(policy, key)
            except RateLimitExceeded as exc:
                return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)

            response = await call_next(request)
            self.after_request(policy, key, failed=response.status_code >= 400)
            return response

        return rate_limit_middleware


limiter = RateLimiter(enabled=settings.ENV != "testing")
