import logging
import os
import threading
import time
from collections import defaultdict, deque

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ledger.services.sessions import SessionService


logger = logging.getLogger(__name__)

SESSION_HEADER = "X-session-ID"
API_PREFIX = "/api/v1/"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Cache-Control"] = "no-store"
        return response


class SessionMiddleware(BaseHTTPMiddleware):
    """Reject API requests whose session header is missing or unknown.

    The resolved token is stored on ``request.state.session_id`` for the
    route dependencies. Runs before routing, so a request without a valid
    session gets 401 even when its body or path would also be invalid.
    """

    def __init__(self, app):
        super().__init__(app)
        self.exempt_paths = {
            "/api/v1/sessions",
            "/api/v1/performance",
            "/docs",
            "/redoc",
            "/openapi.json",
        }

    async def dispatch(self, request: Request, call_next):
        path = request.url.path.rstrip("/") or "/"
        if path in self.exempt_paths or not path.startswith(API_PREFIX):
            return await call_next(request)

        session_id = request.headers.get(SESSION_HEADER, "").strip()
        sessions = SessionService(request.app.state.ledger_repo)
        if not await run_in_threadpool(sessions.is_valid, session_id):
            logger.debug("rejected %s %s: no valid session", request.method, path)
            return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

        request.state.session_id = session_id
        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self.limit = int(os.getenv("RATE_LIMIT_PER_MIN", "600"))
        self.window_seconds = 60
        self.hits = defaultdict(deque)
        self.last_sweep = 0.0
        self.lock = threading.Lock()

    async def dispatch(self, request: Request, call_next):
        if self.limit <= 0:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.time()

        with self.lock:
            if (now - self.last_sweep) > self.window_seconds:
                self._sweep(now)
            bucket = self.hits[client]
            while bucket and (now - bucket[0]) > self.window_seconds:
                bucket.popleft()
            if len(bucket) >= self.limit:
                logger.warning("rate limit exceeded for %s", client)
                return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})
            bucket.append(now)

        return await call_next(request)

    def _sweep(self, now: float) -> None:
        # drop clients with no hit inside the window; caller holds the lock
        stale = [
            client
            for client, bucket in self.hits.items()
            if not bucket or (now - bucket[-1]) > self.window_seconds
        ]
        for client in stale:
            del self.hits[client]
        self.last_sweep = now
