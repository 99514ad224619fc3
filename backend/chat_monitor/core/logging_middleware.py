from __future__ import annotations

import json
import time
import uuid
from typing import Callable
from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class JsonRequestLogger(BaseHTTPMiddleware):
    """One structured log line per request, tagged with a correlation id"""

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.time()
        cid = request.headers.get("X-Correlation-Id") or str(uuid.uuid4())
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration_ms = int((time.time() - start) * 1000)
            principal = getattr(request.state, "principal", None)
            log = {
                "message": "request",
                "method": request.method,
                "path": request.url.path,
                "status": status_code,
                "duration_ms": duration_ms,
                "user_id": getattr(principal, "user_id", None),
                "role": getattr(principal, "role", None),
                "cid": cid,
            }
            logger.info(json.dumps(log))
        response.headers["X-Correlation-Id"] = cid
        return response
