import logging
import secrets
import time

from fastapi import FastAPI, Request

from cineflix.api.errors import error_response

logger = logging.getLogger("cineflix.access")

SLOW_REQUEST_SEC = 1.0


def register_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or f"req_{secrets.token_hex(6)}"
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Uncaught errors still get the request id headers and an access-log line.
            logger.exception("Unhandled error on %s %s rid=%s", request.method, request.url.path, request_id)
            response = error_response(request, 500, "Internal Server Error")
        duration = time.perf_counter() - start

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration * 1000:.1f}ms"

        logger.info(
            "%s %s %d %.1fms rid=%s",
            request.method, request.url.path, response.status_code, duration * 1000, request_id,
        )
        if duration > SLOW_REQUEST_SEC:
            logger.warning("Slow response: %s %s took %.2fs rid=%s", request.method, request.url.path, duration, request_id)
        return response
