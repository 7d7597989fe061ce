from __future__ import annotations
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("apigateway")


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "request.start id=%s method=%s path=%s",
            request_id,
            request.method,
            request.url.path,
            extra={"request_id": request_id, "path": request.url.path, "method": request.method},
        )
        try:
            response: Response = await call_next(request)
        except Exception:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.exception(
                "request.exception id=%s duration_ms=%d",
                request_id,
                duration_ms,
                extra={"request_id": request_id, "duration_ms": duration_ms},
            )
            raise
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["x-request-id"] = request_id
        logger.info(
            "request.end id=%s status=%d duration_ms=%d",
            request_id,
            response.status_code,
            duration_ms,
            extra={"request_id": request_id, "status": response.status_code, "duration_ms": duration_ms},
        )
        return response
