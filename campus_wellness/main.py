import logging
import time
from uuid import uuid4

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError

from campus_wellness.api.v1.auth import router as auth_router
from campus_wellness.api.v1.bookings import router as bookings_router
from campus_wellness.api.v1.chat import router as chat_router
from campus_wellness.api.v1.consultants import router as consultants_router
from campus_wellness.api.v1.notifications import router as notifications_router
from campus_wellness.api.v1.users import router as users_router
from campus_wellness.api.v1.wellness import router as wellness_router
from campus_wellness.core.exceptions import (
    BookingError,
    booking_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from campus_wellness.core.logging import setup_logging
from campus_wellness.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, render_metrics
from campus_wellness.core.request_context import request_id_ctx_var

app = FastAPI(title="Campus Wellness API", version="0.1.0")
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(BookingError, booking_exception_handler)
setup_logging()
logger = logging.getLogger("campus_wellness.request")

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(consultants_router)
app.include_router(bookings_router)
app.include_router(notifications_router)
app.include_router(chat_router)
app.include_router(wellness_router)


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _observe(request: Request, status_code: int, elapsed: float) -> None:
    path = _route_label(request)
    REQUEST_COUNT.labels(method=request.method, path=path, status_code=status_code).inc()
    REQUEST_LATENCY.labels(method=request.method, path=path).observe(elapsed)


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid4())
    token = request_id_ctx_var.set(request_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        elapsed = time.perf_counter() - start
        _observe(request, 500, elapsed)
        logger.exception(
            "request_failed method=%s path=%s status=500 duration_ms=%.2f",
            request.method,
            request.url.path,
            elapsed * 1000,
        )
        raise
    else:
        elapsed = time.perf_counter() - start
        _observe(request, response.status_code, elapsed)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            response.status_code,
            elapsed * 1000,
        )
        return response
    finally:
        request_id_ctx_var.reset(token)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["observability"])
def metrics() -> Response:
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
