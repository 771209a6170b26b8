from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from editor_backend.app.dependencies import get_dispatcher
from editor_backend.models import ExecutionResult, ExecutionStatus
from editor_backend.services.dispatcher import ExecutionDispatcher
from editor_backend.services.providers.star_pattern import StarPatternProvider
from editor_backend.services.registry import ProviderRegistry

from .conftest import FakeProvider

STAR_SOURCE = "// star pattern\n#include <iostream>\nint main() { for (int i = 0; i < 3; i++) std::cout << \"*\"; }"


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(
        "judge0",
        ["python", "cpp", "javascript"],
        results=[ExecutionResult(stdout="Health check passed\n", memory_used_kb=900, status=ExecutionStatus.SUCCESS)],
    )


@pytest.fixture
def client(app_client: TestClient, provider: FakeProvider) -> TestClient:
    dispatcher = ExecutionDispatcher(ProviderRegistry([StarPatternProvider(), provider]))
    app_client.app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    return app_client


def test_root_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_execute_returns_execution_data(client: TestClient, provider: FakeProvider) -> None:
    response = client.post("/api/compiler/execute", json={"language": "py", "code": "print(1)", "input": "3"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["output"] == "Health check passed\n"
    assert data["status"] == "success"
    assert data["memoryUsage"] == 900
    assert isinstance(data["executionTime"], int)
    assert data["error"] is None
    assert provider.calls[0].language == "python"
    assert provider.calls[0].stdin == "3"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"code": "print(1)"}, "Language is required and must be a string"),
        ({"language": "python"}, "Code is required and must be a string"),
        ({"language": "cobol", "code": "x"}, "Unsupported language: cobol"),
        ({"language": "python", "code": "x", "timeLimit": -5}, "timeLimit must be a positive integer"),
    ],
)
def test_execute_rejects_invalid_requests(client: TestClient, provider: FakeProvider, payload, message) -> None:
    response = client.post("/api/compiler/execute", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert message in body["error"]
    assert provider.calls == []


def test_wrongly_typed_field_is_a_400(client: TestClient, provider: FakeProvider) -> None:
    response = client.post("/api/compiler/execute", json={"language": 42, "code": "print(1)"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert provider.calls == []


def test_security_violation_is_a_successful_response(client: TestClient, provider: FakeProvider) -> None:
    response = client.post("/api/compiler/execute", json={"language": "python", "code": "eval('2+2')"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "error"
    assert data["error"].startswith("Security violation:")
    assert provider.calls == []


def test_star_pattern_end_to_end(client: TestClient, provider: FakeProvider) -> None:
    response = client.post("/api/compiler/execute", json={"language": "c++", "code": STAR_SOURCE, "input": "3"})

    assert response.status_code == 200
    assert response.json()["data"]["output"] == "* \n* * \n* * * \n"
    assert provider.calls == []


def test_execute_is_rate_limited(client: TestClient) -> None:
    statuses = [
        client.post("/api/compiler/execute", json={"language": "python", "code": "print(1)"}).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [200] * 10
    assert statuses[10] == 429

    response = client.post("/api/compiler/execute", json={"language": "python", "code": "print(1)"})
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Too many code execution requests, please try again later."
    assert body["retryAfter"].endswith("seconds")
    assert int(response.headers["Retry-After"]) > 0


def test_languages(client: TestClient) -> None:
    response = client.get("/api/compiler/languages")
    assert response.json() == {"success": True, "data": {"languages": ["cpp", "javascript", "python"], "count": 3}}


def test_validate(client: TestClient) -> None:
    response = client.post("/api/compiler/validate", json={"language": "python", "code": "print(1)"})
    assert response.json() == {"success": True, "data": {"isValid": True, "errors": []}}

    response = client.post("/api/compiler/validate", json={"language": "python"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Code is required and must be a string"}


def test_health_runs_a_real_execution(client: TestClient, provider: FakeProvider) -> None:
    response = client.get("/api/compiler/health")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["testExecution"]["status"] == "success"
    assert data["testExecution"]["hasOutput"] is True
    assert "Health check passed" in data["testExecution"]["output"]
    assert provider.calls[0].source == 'print("Health check passed")'
    assert provider.calls[0].time_limit_ms == 5000


def test_health_reports_degraded_provider(client: TestClient, provider: FakeProvider) -> None:
    provider.results = [ExecutionResult.failure("upstream down")]
    data = client.get("/api/compiler/health").json()["data"]
    assert data["status"] == "degraded"
    assert data["testExecution"]["status"] == "error"


def test_stats(client: TestClient) -> None:
    data = client.get("/api/compiler/stats").json()["data"]
    assert data["supportedLanguages"] == 3
    assert [p["name"] for p in data["providers"]] == ["star_pattern", "judge0"]
    assert "uptime" in data
    assert "maxRssKb" in data["memoryUsage"]


def test_unexpected_error_is_a_generic_500() -> None:
    from main import app

    dispatcher = MagicMock()
    dispatcher.validate.side_effect = RuntimeError("database on fire")
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post("/api/compiler/execute", json={"language": "python", "code": "print(1)"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Internal server error"
    assert "database on fire" not in body["message"]
