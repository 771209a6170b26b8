import asyncio
from typing import Any, Callable, Generator, Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

from editor_backend.app.limiter import limiter
from editor_backend.models import ExecutionRequest, ExecutionResult, ExecutionStatus
from editor_backend.services.dispatcher import ExecutionDispatcher
from editor_backend.services.providers.base import FALLBACK, HOSTED, ExecutionProvider
from editor_backend.services.providers.star_pattern import StarPatternProvider
from editor_backend.services.registry import ProviderRegistry


class FakeProvider(ExecutionProvider):
    """Records calls and replays canned results (the last one repeats)."""

    def __init__(
        self,
        name: str,
        languages: Iterable[str],
        capabilities: Iterable[str] = (HOSTED,),
        results: Optional[List[ExecutionResult]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.name = name
        self.languages = frozenset(languages)
        self.capabilities = frozenset(capabilities)
        self.results = list(results or [ExecutionResult(stdout="ok\n", status=ExecutionStatus.SUCCESS)])
        self.error = error
        self.delay = delay
        self.calls: List[ExecutionRequest] = []

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0].model_copy()


@pytest.fixture
def hosted() -> FakeProvider:
    return FakeProvider("hosted", ["python", "cpp", "javascript", "java"])


@pytest.fixture
def fallback() -> FakeProvider:
    return FakeProvider(
        "fallback",
        ["python", "cpp"],
        capabilities=(FALLBACK,),
        results=[ExecutionResult(stdout="simulated\n", status=ExecutionStatus.SUCCESS)],
    )


@pytest.fixture
def make_dispatcher() -> Callable[..., ExecutionDispatcher]:
    def _make(*providers: ExecutionProvider, **kwargs: Any) -> ExecutionDispatcher:
        registry = ProviderRegistry([StarPatternProvider(), *providers])
        return ExecutionDispatcher(registry, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def app_client() -> Generator[TestClient, None, None]:
    from main import app

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
