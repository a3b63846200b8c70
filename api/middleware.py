"""
Request access log.

One line per request with the caller's user id when the Bearer check
attached one (``request.state.user``).  Server errors log at WARNING,
everything else at DEBUG.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def _caller_id(request: Request) -> str:
    user = getattr(request.state, "user", None)
    return user.id if user is not None else "-"


def register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"

        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        logger.log(
            level,
            "%s %s user=%s -> %d (%.3fs)",
            request.method, request.url.path, _caller_id(request),
            response.status_code, elapsed,
        )
        return response
