"""
Middleware that logs every HTTP request with structured fields.

Tenant-scoped paths (``/tenants/{tenant_id}/...``) also carry
``org.tenant_id`` so Datadog can filter per tenant.
"""
import re
import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("org_hierarchy.http")

_TENANT_PATH = re.compile(r"^/tenants/([^/]+)")


class DatadogLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.time()
        fields = {
            "http.method": request.method,
            "http.url": path,
            "http.url_details.query_string": str(request.query_params) if request.query_params else "",
            "http.client_ip": request.client.host if request.client else "unknown",
            "http.request_id": request.headers.get("X-Request-ID", ""),
        }
        tenant_match = _TENANT_PATH.match(path)
        if tenant_match:
            fields["org.tenant_id"] = tenant_match.group(1)

        logger.info(f"{request.method} {path}", extra={**fields, "event_type": "http_request_start"})

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} 500 - {str(e)}",
                extra={
                    **fields,
                    "http.status_code": 500,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                    "error.message": str(e),
                    "error.type": type(e).__name__,
                    "event_type": "http_request_error",
                },
                exc_info=True
            )
            raise

        logger.info(
            f"{request.method} {path} {response.status_code}",
            extra={
                **fields,
                "http.status_code": response.status_code,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "event_type": "http_request_complete",
            }
        )
        return response
