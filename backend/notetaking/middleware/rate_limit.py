"""
Note Taking API — Auth Rate Limiting Middleware
=================================================

What:  Per-IP sliding window on /auth/* (register, login, refresh).
Why:   Those are the only unauthenticated endpoints and the only place a
       password can be guessed; argon2 makes each guess expensive for us too.
How:   In-memory deque of timestamps per client IP. Requests outside /auth/
       pass straight through.

Limits come from AUTH_RATE_LIMIT_REQUESTS within AUTH_RATE_LIMIT_WINDOW
seconds. State is per process; multiple workers each keep their own window.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notetaking.config import settings
from notetaking.exceptions import RateLimitExceededError
from notetaking.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

AUTH_PATH_PREFIX = "/auth/"


class AuthRateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._attempts: Dict[str, Deque[float]] = defaultdict(deque)

    def _retry_after(self, client_ip: str, now: float) -> int:
        """
        Record an attempt, returning 0 if allowed or the seconds until the
        oldest attempt in the window expires.
        """
        window = settings.auth_rate_limit_window
        attempts = self._attempts[client_ip]
        while attempts and attempts[0] <= now - window:
            attempts.popleft()

        if len(attempts) >= settings.auth_rate_limit_requests:
            return int(attempts[0] + window - now) + 1

        attempts.append(now)
        return 0

    def _forget_idle_clients(self, now: float) -> None:
        cutoff = now - settings.auth_rate_limit_window
        idle = [ip for ip, attempts in self._attempts.items() if not attempts or attempts[-1] <= cutoff]
        for ip in idle:
            del self._attempts[ip]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(AUTH_PATH_PREFIX):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        retry_after = self._retry_after(client_ip, now)

        if retry_after:
            logger.warning(
                "Auth rate limit exceeded for IP %s: %d attempts in %ds window",
                client_ip,
                len(self._attempts[client_ip]),
                settings.auth_rate_limit_window,
            )
            # Middleware sits outside the app's exception handlers, so the
            # error envelope is built here.
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        if len(self._attempts) > 10_000:
            self._forget_idle_clients(now)

        return await call_next(request)
