"""Tests for actor context middleware.

This module contains tests for the FastAPI middleware that injects the
acting user and HTTP method into the request context.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from packages.audit_capture import ActorContext
from packages.audit_capture.middleware import (
    ActorContextMiddleware,
    get_actor_context,
    reset_actor_context,
    set_actor_context,
)


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI app with middleware."""
    app = FastAPI()
    app.add_middleware(ActorContextMiddleware)

    def describe() -> dict:
        ctx = get_actor_context()
        return {"actor_id": ctx.actor_id, "method": ctx.method}

    @app.get("/test")
    async def read_endpoint() -> dict:
        """Endpoint that returns the actor context."""
        return describe()

    @app.delete("/test")
    async def delete_endpoint() -> dict:
        """Endpoint for DELETE that returns the actor context."""
        return describe()

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestActorContextMiddleware:
    """Tests for ActorContextMiddleware."""

    def test_actor_from_header(self, client: TestClient) -> None:
        """Test middleware reads the actor from X-User-Id."""
        response = client.get("/test", headers={"X-User-Id": "alice"})

        assert response.status_code == 200
        assert response.json() == {"actor_id": "alice", "method": "GET"}
        assert response.headers["x-audit-actor"] == "alice"

    def test_anonymous_request(self, client: TestClient) -> None:
        """Test a request without the header still carries the method."""
        response = client.get("/test")

        assert response.json() == {"actor_id": None, "method": "GET"}
        assert "x-audit-actor" not in response.headers

    def test_method_reaches_endpoint(self, client: TestClient) -> None:
        """Test the request method is carried into the context."""
        response = client.delete("/test", headers={"X-User-Id": "bob"})

        assert response.json() == {"actor_id": "bob", "method": "DELETE"}

    def test_context_reset_after_request(self, client: TestClient) -> None:
        """Test the actor context does not leak out of the request."""
        client.get("/test", headers={"X-User-Id": "alice"})

        assert get_actor_context() is None

    def test_custom_header(self) -> None:
        """Test the actor header name is configurable."""
        app = FastAPI()
        app.add_middleware(ActorContextMiddleware, header_name="X-Operator")

        @app.get("/who")
        async def who() -> dict:
            return {"actor_id": get_actor_context().actor_id}

        response = TestClient(app).get("/who", headers={"X-Operator": "ops-7"})
        assert response.json() == {"actor_id": "ops-7"}


class TestActorContextHelpers:
    """Tests for the context variable helpers."""

    def test_set_and_reset(self) -> None:
        """Test set/reset restores the previous context."""
        assert get_actor_context() is None

        token = set_actor_context(ActorContext(actor_id="alice", method="post"))
        assert get_actor_context() == ActorContext(actor_id="alice", method="POST")

        reset_actor_context(token)
        assert get_actor_context() is None
