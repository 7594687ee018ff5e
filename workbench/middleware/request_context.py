"""Per-request context: request id, timing and one access log line.

The access line carries the version key the route addressed (``stix_id``,
``modified``) so log searches can follow one object across requests.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

# Path parameters copied into the access log line.
ROUTE_KEY_PARAMS = ("stix_id", "modified")


def route_key(request: Request) -> dict:
    """Version key of the matched route; empty for list and root endpoints."""
    params = request.scope.get("path_params") or {}
    return {name: params[name] for name in ROUTE_KEY_PARAMS if name in params}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign ``X-Request-ID``, time the request and log it."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        # Routing fills path_params on the shared scope during call_next.
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                **route_key(request),
            },
        )
        return response
