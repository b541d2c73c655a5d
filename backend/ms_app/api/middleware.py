"""
Middleware components for ms_app
Request logging and instance identification
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import JSONResponse
import logging
import socket
import time
import uuid
from typing import Callable


logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Honour an id assigned by the reverse proxy
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        start_time = time.time()

        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        request.state.request_id = request_id

        try:
            response = await call_next(request)

            process_time = time.time() - start_time

            logger.info(
                f"[{request_id}] {response.status_code} "
                f"completed in {process_time:.3f}s"
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.3f}"

            return response

        except Exception as e:
            process_time = time.time() - start_time

            logger.exception(
                f"[{request_id}] Request failed in {process_time:.3f}s: {str(e)}"
            )

            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "code": "INTERNAL_ERROR",
                        "message": "Internal server error",
                        "request_id": request_id
                    }
                },
                headers={
                    "X-Request-ID": request_id,
                    "X-Process-Time": f"{process_time:.3f}"
                }
            )


class InstanceHeaderMiddleware(BaseHTTPMiddleware):
    """Tags every response with the instance that produced it"""

    def __init__(self, app, service_name: str, version: str):
        super().__init__(app)
        self.hostname = socket.gethostname()
        self.service_name = service_name
        self.version = version

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Served-By"] = self.hostname
        response.headers["X-Service"] = self.service_name
        response.headers["X-Version"] = self.version
        return response
