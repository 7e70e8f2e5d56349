"""
Unit tests for the authentication and error handling middleware on a bare FastAPI app.
"""
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from shelfkeeper.api.middleware import (
    AuthenticationMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
)
from shelfkeeper.shared.core.exceptions import ConflictError
from tests.conftest import auth_headers


@pytest.fixture
def client():
    app = FastAPI()

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/whoami")
    async def whoami(request: Request):
        return {"user_id": request.state.user_id, "roles": request.state.user_roles}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Already there")

    app.add_middleware(AuthenticationMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    return TestClient(app, raise_server_exceptions=False)


def test_public_path_needs_no_token(client):
    assert client.get("/health").status_code == 200


def test_token_claims_reach_request_state(client):
    user_id = uuid4()
    response = client.get("/whoami", headers=auth_headers(user_id, roles=["admin"]))

    assert response.json() == {"user_id": str(user_id), "roles": ["admin"]}


def test_x_access_token_header_is_accepted(client):
    token = auth_headers(uuid4())["Authorization"].split(" ", 1)[1]
    assert client.get("/whoami", headers={"X-Access-Token": token}).status_code == 200


def test_missing_token_gets_401_envelope(client):
    response = client.get("/whoami")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"


def test_unhandled_error_becomes_500_envelope(client):
    response = client.get("/boom", headers=auth_headers(uuid4()))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "INTERNAL_SERVER_ERROR"
    assert error["details"]["exception"] == "RuntimeError"
    assert error["request_id"] == response.headers["X-Request-ID"]


def test_application_error_keeps_its_status(client):
    response = client.get("/conflict", headers=auth_headers(uuid4()))

    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Already there"
