from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qrorder.api.error_handling import register_exception_handlers
from qrorder.api.middleware.access_log import AccessLogMiddleware
from qrorder.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from qrorder.api.routes.health import router as health_router
from qrorder.api.routes.kitchen import router as kitchen_router
from qrorder.api.routes.metrics import router as metrics_router
from qrorder.api.routes.orders import router as orders_router
from qrorder.api.routes.reports import router as reports_router
from qrorder.api.routes.table_orders import router as table_orders_router
from qrorder.infrastructure.observability.logging_config import configure_logging
from qrorder.infrastructure.observability.otel import configure_otel

CORS_METHODS = ["GET", "POST", "PATCH", "OPTIONS"]
CORS_REQUEST_HEADERS = ["Content-Type", "Idempotency-Key", REQUEST_ID_HEADER]


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # QR links are opened from arbitrary hosts outside production.
    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="QR Order Backend", version="0.1.0")
    register_exception_handlers(app)
    for router in (
        orders_router,
        kitchen_router,
        table_orders_router,
        reports_router,
        health_router,
        metrics_router,
    ):
        app.include_router(router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_REQUEST_HEADERS,
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
