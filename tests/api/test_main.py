"""Unit tests for FastAPI application main endpoints."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.dispatcher import INVALID_PARAMS, PARSE_ERROR, ToolDispatcher
from src.api.main import app, build_dispatcher, create_app
from src.core.schemas import SearchResult


@pytest.fixture
def mock_service() -> MagicMock:
    """Create mock search service."""
    service = MagicMock()
    service.search = AsyncMock(
        return_value=[SearchResult(transcript_id=7, chunk_text="small wins", similarity=0.88)]
    )
    return service


@pytest.fixture
def client(mock_service: MagicMock):
    """TestClient over an app with an injected dispatcher."""
    with TestClient(create_app(ToolDispatcher(mock_service))) as test_client:
        yield test_client


@pytest.mark.unit
class TestHealthEndpoint:
    """Test /health endpoint."""

    def test_health_check_returns_healthy_status(self, client: TestClient) -> None:
        """Test that health endpoint returns healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"dispatcher": True}

    def test_health_check_includes_timestamp(self, client: TestClient) -> None:
        """Test that health endpoint includes valid timestamp."""
        data = client.get("/health").json()

        timestamp = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        assert isinstance(timestamp, datetime)

    def test_health_without_dispatcher(self) -> None:
        """Test health reports a missing dispatcher when startup has not run."""
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["services"] == {"dispatcher": False}


@pytest.mark.unit
class TestMCPEndpoint:
    """Test POST /mcp endpoint."""

    def test_tools_list(self, client: TestClient) -> None:
        """Test listing tools over HTTP."""
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

        assert response.status_code == 200
        assert response.json()["result"]["tools"][0]["name"] == "search_transcripts"

    def test_tools_call(self, client: TestClient) -> None:
        """Test calling the search tool over HTTP."""
        response = client.post(
            "/mcp",
            json={
                "jsonrpc": "2.0",
                "id": "req-1",
                "method": "tools/call",
                "params": {"name": "search_transcripts", "arguments": {"query": "wins"}},
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert body["id"] == "req-1"
        assert body["result"]["structuredContent"]["results"] == [
            {"transcript_id": 7, "chunk_text": "small wins", "similarity": 0.88}
        ]

    def test_invalid_arguments(self, client: TestClient) -> None:
        """Test that bad tool arguments are a JSON-RPC error, not an HTTP error."""
        response = client.post(
            "/mcp",
            json={
                "jsonrpc": "2.0",
                "id": 2,
                "method": "tools/call",
                "params": {"name": "search_transcripts", "arguments": {}},
            },
        )

        assert response.status_code == 200
        assert response.json()["error"]["code"] == INVALID_PARAMS

    def test_notification_accepted(self, client: TestClient) -> None:
        """Test that notifications get 202 with no body."""
        response = client.post(
            "/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"}
        )

        assert response.status_code == 202
        assert response.content == b""

    def test_parse_error(self, client: TestClient) -> None:
        """Test that a non-JSON body gets 400 with a parse error."""
        response = client.post(
            "/mcp", content=b"{oops", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == PARSE_ERROR

    def test_dispatcher_crash_returns_500(self) -> None:
        """Test that an exception escaping the dispatcher is a generic 500."""
        dispatcher = MagicMock()
        dispatcher.handle = AsyncMock(side_effect=RuntimeError("boom"))

        with TestClient(create_app(dispatcher)) as test_client:
            response = test_client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

        assert response.status_code == 500
        assert response.json() == {
            "jsonrpc": "2.0",
            "error": {"code": -32603, "message": "Internal server error"},
            "id": None,
        }


@pytest.mark.unit
class TestBuildDispatcher:
    """Test dispatcher wiring from configuration."""

    def test_missing_credentials(self, config) -> None:
        """Test that missing Supabase settings fail at startup."""
        incomplete = config.model_copy(update={"supabase_url": ""})

        with pytest.raises(ValueError, match="SUPABASE_URL"):
            build_dispatcher(incomplete)

    def test_builds_with_clients(self, config) -> None:
        """Test wiring with patched client constructors."""
        with (
            patch("src.core.embedding_service.AsyncOpenAI"),
            patch("src.core.storage_service.create_client"),
        ):
            dispatcher = build_dispatcher(config)

        assert isinstance(dispatcher, ToolDispatcher)
        assert dispatcher.search_service.config == config
