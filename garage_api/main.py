import logging
import time
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError

from garage_api.api.v1.auth import router as auth_router
from garage_api.api.v1.garages import router as garages_router
from garage_api.api.v1.repair_bays import router as repair_bays_router
from garage_api.api.v1.reservations import router as reservations_router
from garage_api.api.v1.services import router as services_router
from garage_api.api.v1.users import router as users_router
from garage_api.core.exceptions import http_exception_handler, validation_exception_handler
from garage_api.core.logging import setup_logging
from garage_api.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, render_metrics
from garage_api.core.request_context import request_id_ctx_var

app = FastAPI(title="Garage Booking API", version="0.1.0")
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
setup_logging()
logger = logging.getLogger("garage_api.request")

for router in (
    auth_router,
    users_router,
    garages_router,
    services_router,
    repair_bays_router,
    reservations_router,
):
    app.include_router(router)


def _observe(method: str, path: str, status_code: int, elapsed: float) -> None:
    REQUEST_COUNT.labels(method=method, path=path, status_code=status_code).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid4())
    token = request_id_ctx_var.set(request_id)
    start = time.perf_counter()
    method, path = request.method, request.url.path
    try:
        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start
            _observe(method, path, 500, elapsed)
            logger.exception(
                "request_failed method=%s path=%s status=500 duration_ms=%.2f",
                method,
                path,
                elapsed * 1000,
            )
            raise

        elapsed = time.perf_counter() - start
        _observe(method, path, response.status_code, elapsed)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f",
            method,
            path,
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
