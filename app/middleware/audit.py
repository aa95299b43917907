"""Audit logging middleware — records every state-changing request to audit_trail."""


import asyncio
import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Methods that mutate state
_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
_UUID_LENGTH = 36

# Keep references so fire-and-forget tasks are not garbage collected mid-flight
_pending: set[asyncio.Task] = set()


def infer_entity(path: str) -> tuple[str, str | None]:
    """``/api/v1/documents/<uuid>/payments`` → ``("payments", None)``;
    ``/api/v1/quotes/<uuid>`` → ``("quote", "<uuid>")``."""
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        return "unknown", None
    last = parts[-1]
    if len(last) == _UUID_LENGTH and len(parts) >= 2:
        return parts[-2].rstrip("s"), last  # simple singularize
    return last, None


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs all write operations.

    Each audit row is written asynchronously after the response is produced
    so it never adds latency to the request. Failures in audit logging are
    logged and never raise to the caller.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        if request.method in _WRITE_METHODS:
            logger.info(
                "%s %s → %d (%dms)",
                request.method, request.url.path, response.status_code, duration_ms,
            )
            task = asyncio.create_task(
                self._record(request, response.status_code, duration_ms)
            )
            _pending.add(task)
            task.add_done_callback(_pending.discard)

        return response

    async def _record(self, request: Request, status_code: int, duration_ms: int) -> None:
        """Persist an audit row; database errors are logged, not raised."""
        from app.db.base import async_session_factory
        from app.domain.audit import AuditTrail

        entity_type, entity_id = infer_entity(request.url.path)
        try:
            async with async_session_factory() as session:
                session.add(
                    AuditTrail(
                        ip_address=request.client.host if request.client else None,
                        user_agent=request.headers.get("user-agent"),
                        method=request.method,
                        path=request.url.path[:500],
                        entity_type=entity_type,
                        entity_id=entity_id,
                        status_code=status_code,
                        duration_ms=duration_ms,
                        description=f"{request.method} {request.url.path} → {status_code} ({duration_ms}ms)",
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:  # pragma: no cover
            logger.error("Could not write audit row: %s", exc)
