"""
CSRF token guard.

Tokens are opaque random strings handed out by GET /csrf-token and sent
back on state-changing requests in the X-CSRF-Token header or a `_csrf`
body field. Two verification modes:

- strict: single use; the token is marked used on success
- reusable: may be replayed until it expires

Records sit in a CsrfTokenStore. The in-memory store is per process; a
shared store (Redis, database) can be plugged in behind the same four
methods.
"""

import asyncio
import secrets
import time
from dataclasses import dataclass
from typing import Annotated, Callable, Optional, Protocol, Union

from fastapi import Depends, HTTPException, Request
from starlette import status

from core.config import settings
from schemas.auth_schemas import Principal
from utils.deps import get_optional_principal
from utils.logger import get_logger

logger = get_logger(__name__)

ANONYMOUS = "anonymous"
CSRF_HEADER = "X-CSRF-Token"
CSRF_FIELD = "_csrf"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass
class CsrfTokenRecord:
    user_id: Union[int, str]
    expires_at: float
    used: bool = False

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class CsrfTokenStore(Protocol):
    def get(self, token: str) -> Optional[CsrfTokenRecord]: ...

    def set(self, token: str, record: CsrfTokenRecord) -> None: ...

    def delete(self, token: str) -> None: ...

    def sweep(self, now: float) -> int: ...


class InMemoryCsrfTokenStore:
    def __init__(self):
        self._records: dict[str, CsrfTokenRecord] = {}

    def get(self, token: str) -> Optional[CsrfTokenRecord]:
        return self._records.get(token)

    def set(self, token: str, record: CsrfTokenRecord) -> None:
        self._records[token] = record

    def delete(self, token: str) -> None:
        self._records.pop(token, None)

    def sweep(self, now: float) -> int:
        expired = [token for token, record in self._records.items() if record.is_expired(now)]
        for token in expired:
            del self._records[token]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, token: str) -> bool:
        return token in self._records


def _forbidden(error: str, message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                         detail={"error": error, "message": message})


class CsrfGuard:
    def __init__(self, store: Optional[CsrfTokenStore] = None,
                 ttl_seconds: int = 15 * 60,
                 clock: Callable[[], float] = time.time):
        self.store = store if store is not None else InMemoryCsrfTokenStore()
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def issue(self, user_id: Optional[int] = None) -> tuple[str, int]:
        """
        Create a token bound to `user_id` (anonymous when None).

        Returns:
            (token, lifetime in seconds)
        """
        token = secrets.token_hex(32)
        self.store.set(token, CsrfTokenRecord(
            user_id=user_id if user_id is not None else ANONYMOUS,
            expires_at=self.clock() + self.ttl_seconds
        ))
        return token, self.ttl_seconds

    def verify(self, token: Optional[str], principal: Optional[Principal] = None, strict: bool = True) -> None:
        """
        Raises HTTPException(403) unless `token` may authorize this request.
        Strict verification consumes the token.
        """
        if not token:
            raise _forbidden("CSRF token missing",
                             f"Please include CSRF token in {CSRF_HEADER} header or {CSRF_FIELD} field")

        record = self.store.get(token)
        if record is None:
            raise _forbidden("Invalid CSRF token", "CSRF token is invalid or expired")

        if record.is_expired(self.clock()):
            self.store.delete(token)
            raise _forbidden("CSRF token expired", "Please request a new CSRF token")

        if strict and record.used:
            raise _forbidden("CSRF token already used", "Please request a new CSRF token")

        # tokens fetched before login stay valid for whoever logs in
        if principal is not None and record.user_id != ANONYMOUS and record.user_id != principal.id:
            logger.warning(
                "CSRF token bound to another user",
                extra={"principal_id": principal.id, "token_user_id": record.user_id}
            )
            raise _forbidden("CSRF token mismatch", "Token does not belong to current user")

        if strict:
            record.used = True
            self.store.set(token, record)

    def sweep(self) -> int:
        removed = self.store.sweep(self.clock())
        if removed:
            logger.debug("Expired CSRF tokens purged", extra={"removed": removed})
        return removed

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Purge expired tokens every `interval_seconds` until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()


async def extract_csrf_token(request: Request) -> Optional[str]:
    """Header first, then a `_csrf` field in a JSON or form body."""
    token = request.headers.get(CSRF_HEADER)
    if token:
        return token

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return None
        if isinstance(body, dict) and isinstance(body.get(CSRF_FIELD), str):
            return body[CSRF_FIELD]
    elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        value = form.get(CSRF_FIELD)
        if isinstance(value, str):
            return value

    return None


csrf_guard = CsrfGuard(ttl_seconds=settings.CSRF_TOKEN_TTL_SECONDS)


class CsrfProtect:
    """
    Dependency enforcing a CSRF token on unsafe methods. Declare it after
    the principal dependency so authentication errors win over CSRF ones:

        async def handler(user: user_dependency, _: csrf_reusable_dependency, ...)
    """

    def __init__(self, strict: bool = True, guard: Optional[CsrfGuard] = None):
        self.strict = strict
        self.guard = guard

    async def __call__(self, request: Request,
                       principal: Annotated[Optional[Principal], Depends(get_optional_principal)]) -> None:
        if request.method in SAFE_METHODS:
            return

        guard = self.guard or csrf_guard
        token = await extract_csrf_token(request)
        try:
            guard.verify(token, principal, strict=self.strict)
        except HTTPException as exc:
            logger.warning(
                "CSRF verification failed",
                extra={
                    "path": request.url.path,
                    "principal_id": principal.id if principal else None,
                    "reason": exc.detail["error"],
                    "strict": self.strict
                }
            )
            raise


csrf_protect = CsrfProtect(strict=True)
csrf_protect_reusable = CsrfProtect(strict=False)

csrf_dependency = Annotated[None, Depends(csrf_protect)]
csrf_reusable_dependency = Annotated[None, Depends(csrf_protect_reusable)]
