"""
Unit tests for request ID middleware.

Tests the RequestIDMiddleware to ensure it generates, extracts, and
propagates request IDs used by logs and error responses.
"""

import uuid

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from errors.handlers import register_exception_handlers
from middleware.request_id import (
    RequestIDMiddleware,
    request_id_var,
    get_request_id,
    REQUEST_ID_HEADER,
)


@pytest.fixture
def app():
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    @app.get("/echo")
    async def echo(request: Request):
        return {
            "from_state": request.state.request_id,
            "from_context": request_id_var.get(),
        }

    @app.get("/boom")
    async def boom():
        raise ValueError("boom")

    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


class TestRequestIDMiddleware:

    def test_generates_uuid_when_header_missing(self, client):
        response = client.get("/echo")

        request_id = response.headers[REQUEST_ID_HEADER]
        assert str(uuid.UUID(request_id)) == request_id
        assert response.json()["from_state"] == request_id

    def test_reuses_incoming_header(self, client):
        response = client.get("/echo", headers={REQUEST_ID_HEADER: "req-123"})

        assert response.headers[REQUEST_ID_HEADER] == "req-123"
        assert response.json() == {"from_state": "req-123", "from_context": "req-123"}

    def test_empty_header_generates_new_id(self, client):
        response = client.get("/echo", headers={REQUEST_ID_HEADER: ""})

        assert len(response.headers[REQUEST_ID_HEADER]) == 36

    def test_each_request_gets_its_own_id(self, client):
        first = client.get("/echo").headers[REQUEST_ID_HEADER]
        second = client.get("/echo").headers[REQUEST_ID_HEADER]

        assert first != second

    def test_context_reset_after_request(self, client):
        client.get("/echo", headers={REQUEST_ID_HEADER: "req-1"})

        assert request_id_var.get() == ""

    def test_error_response_carries_request_id(self, client):
        response = client.get("/boom", headers={REQUEST_ID_HEADER: "req-err"})

        assert response.status_code == 500
        assert response.json()["request_id"] == "req-err"
        assert request_id_var.get() == ""


class TestGetRequestId:

    def test_returns_context_value(self):
        token = request_id_var.set("ctx-id")
        try:
            assert get_request_id() == "ctx-id"
        finally:
            request_id_var.reset(token)

    def test_empty_outside_request(self):
        assert get_request_id() == ""
