from __future__ import annotations

import logging
import sys
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from qrorder.api.main import app
from qrorder.api.middleware.access_log import AccessLogMiddleware


def _requests_total(method: str, path: str, status_code: str) -> float:
    value = REGISTRY.get_sample_value(
        "http_requests_total",
        {"method": method, "path": path, "status_code": status_code},
    )
    return value or 0.0


def _order_lookup_app() -> FastAPI:
    local_app = FastAPI()

    @local_app.get("/v1/restaurants/{restaurant_id}/orders/{order_id}")
    def read_order(restaurant_id: str, order_id: str) -> dict[str, str]:
        return {"restaurantId": restaurant_id, "orderId": order_id}

    local_app.add_middleware(AccessLogMiddleware)
    return local_app


def test_request_metrics_use_route_templates() -> None:
    client = TestClient(_order_lookup_app())
    before = _requests_total("GET", "/v1/restaurants/{restaurant_id}/orders/{order_id}", "200")
    unmatched_before = _requests_total("GET", "<unmatched>", "404")

    client.get("/v1/restaurants/rst_001/orders/ord_a")
    client.get("/v1/restaurants/rst_001/orders/ord_b")
    client.get("/v1/nowhere/ord_c")

    assert _requests_total(
        "GET", "/v1/restaurants/{restaurant_id}/orders/{order_id}", "200"
    ) == before + 2
    assert _requests_total("GET", "<unmatched>", "404") == unmatched_before + 1
    assert REGISTRY.get_sample_value(
        "http_requests_total",
        {"method": "GET", "path": "/v1/restaurants/rst_001/orders/ord_a", "status_code": "200"},
    ) is None


def test_access_log_carries_order_path_params(caplog) -> None:
    client = TestClient(_order_lookup_app())

    with caplog.at_level(logging.INFO, logger="qrorder.api.access"):
        client.get("/v1/restaurants/rst_001/orders/ord_a")

    records = [record for record in caplog.records if record.name == "qrorder.api.access"]
    assert len(records) == 1
    assert records[0].getMessage() == "request_complete"
    assert records[0].restaurant_id == "rst_001"
    assert records[0].order_id == "ord_a"
    assert records[0].path == "/v1/restaurants/{restaurant_id}/orders/{order_id}"
    assert records[0].status_code == 200


def test_health_checks_are_logged_at_debug(caplog) -> None:
    client = TestClient(app)

    with caplog.at_level(logging.DEBUG, logger="qrorder.api.access"):
        client.get("/health/live")

    records = [record for record in caplog.records if record.name == "qrorder.api.access"]
    assert [record.levelno for record in records] == [logging.DEBUG]


def test_cors_preflight_allows_order_headers() -> None:
    client = TestClient(app)

    allowed = client.options(
        "/v1/orders",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, Idempotency-Key",
        },
    )
    wrong_method = client.options(
        "/v1/orders/ord_001/status",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "DELETE",
        },
    )

    assert allowed.status_code == 200
    assert "POST" in allowed.headers["access-control-allow-methods"]
    assert "idempotency-key" in allowed.headers["access-control-allow-headers"].lower()
    assert wrong_method.status_code == 400


def test_request_id_header_is_exposed_to_browsers() -> None:
    client = TestClient(app)

    response = client.get("/health/live", headers={"Origin": "http://localhost:5173"})

    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-expose-headers"] == "X-Request-Id"
