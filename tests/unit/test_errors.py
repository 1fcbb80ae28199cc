"""Unit tests for error mapping and request audit logging."""
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from guesthouse.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    apply_error_handlers,
)
from guesthouse.logging_middleware import add_audit_middleware


@pytest.fixture()
def error_app() -> FastAPI:
    app = FastAPI()
    apply_error_handlers(app)

    @app.get("/raise/{kind}")
    def raise_kind(kind: str) -> None:
        errors = {
            "validation": ValidationError("bad input"),
            "missing": NotFoundError("booking"),
            "conflict": ConflictError("room unavailable"),
            "forbidden": ForbiddenError("not yours"),
        }
        if kind in errors:
            raise errors[kind]
        raise RuntimeError("store unavailable")

    return app


@pytest.mark.parametrize(
    "kind, status_code, detail",
    [
        ("validation", 400, "bad input"),
        ("missing", 404, "Booking not found"),
        ("conflict", 409, "room unavailable"),
        ("forbidden", 403, "not yours"),
    ],
)
def test_domain_errors_map_to_status_codes(error_app, kind, status_code, detail):
    response = TestClient(error_app).get(f"/raise/{kind}")
    assert response.status_code == status_code
    assert response.json() == {"detail": detail}


def test_unexpected_errors_are_logged_as_internal(error_app, caplog):
    client = TestClient(error_app, raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR, logger="guesthouse.errors"):
        response = client.get("/raise/boom")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "Unhandled error on GET /raise/boom" in caplog.text


def test_audit_middleware_writes_request_lines(tmp_path):
    app = FastAPI()
    add_audit_middleware(app, "audit-test")

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"pong": "ok"}

    logger = logging.getLogger("audit.audit-test")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.FileHandler(tmp_path / "audit.log")
    logger.addHandler(handler)
    try:
        TestClient(app).get("/ping")
    finally:
        handler.close()
        logger.removeHandler(handler)

    line = (tmp_path / "audit.log").read_text()
    assert "GET /ping | status=200" in line
