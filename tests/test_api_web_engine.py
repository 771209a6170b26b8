from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from editor_backend.app.dependencies import get_web_engine
from editor_backend.models import ConsoleMessage, WebExecutionResult


@pytest.fixture
def web_engine() -> MagicMock:
    engine = MagicMock()
    engine.browser_running = True
    engine.execute = AsyncMock(
        return_value=WebExecutionResult(
            success=True,
            screenshot="data:image/png;base64,AAAA",
            html="<html></html>",
            execution_time=120,
            console=[ConsoleMessage(kind="log", text="Health check executed")],
        )
    )
    return engine


@pytest.fixture
def client(app_client: TestClient, web_engine: MagicMock) -> TestClient:
    app_client.app.dependency_overrides[get_web_engine] = lambda: web_engine
    return app_client


def test_execute_requires_some_content(client: TestClient, web_engine: MagicMock) -> None:
    response = client.post("/api/web-engine/execute", json={})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "At least one of html, css, javascript, or url is required"}
    web_engine.execute.assert_not_awaited()


def test_execute_returns_result(client: TestClient, web_engine: MagicMock) -> None:
    response = client.post("/api/web-engine/execute", json={"html": "<p>x</p>", "viewport": {"width": 320, "height": 240}})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] is True
    assert data["executionTime"] == 120
    assert data["screenshot"].startswith("data:image/png;base64,")
    assert data["console"][0]["text"] == "Health check executed"

    request = web_engine.execute.await_args.args[0]
    assert request.html == "<p>x</p>"
    assert request.viewport.width == 320


def test_invalid_viewport_is_a_400(client: TestClient) -> None:
    response = client.post("/api/web-engine/execute", json={"html": "<p>x</p>", "viewport": {"width": 0, "height": 10}})
    assert response.status_code == 400


def test_technologies(client: TestClient) -> None:
    data = client.get("/api/web-engine/technologies").json()["data"]
    assert data == {"technologies": ["html", "css", "javascript", "url"], "count": 4}


def test_health(client: TestClient, web_engine: MagicMock) -> None:
    data = client.get("/api/web-engine/health").json()["data"]
    assert data["status"] == "healthy"
    assert data["testExecution"]["hasScreenshot"] is True

    web_engine.execute.return_value = WebExecutionResult(success=False, error="Web execution failed: no browser")
    data = client.get("/api/web-engine/health").json()["data"]
    assert data["status"] == "unhealthy"
    assert data["testExecution"]["error"] == "Web execution failed: no browser"


def test_stats(client: TestClient) -> None:
    data = client.get("/api/web-engine/stats").json()["data"]
    assert data["browserRunning"] is True
    assert data["supportedTechnologies"] == 4
