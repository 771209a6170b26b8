from unittest.mock import patch

import httpx
import pytest

from editor_backend import settings
from editor_backend.services.factory import build_dispatcher, build_hosted_provider, build_registry
from editor_backend.services.providers import CompilerProxyProvider, Judge0Provider


@pytest.fixture
def client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


def test_registry_order_without_rapidapi_key(client) -> None:
    with patch.object(settings, "EXECUTION_PROVIDERS", ["judge0", "compiler_proxy"]), patch.object(
        settings, "RAPIDAPI_KEY", None
    ):
        registry = build_registry(client)
    assert [p.name for p in registry.providers] == ["star_pattern", "judge0", "alternative"]


def test_registry_order_follows_configuration(client) -> None:
    with patch.object(settings, "EXECUTION_PROVIDERS", ["compiler_proxy", "judge0"]), patch.object(
        settings, "RAPIDAPI_KEY", "key"
    ):
        registry = build_registry(client)
    assert [p.name for p in registry.providers] == ["star_pattern", "compiler_proxy", "judge0", "alternative"]
    assert isinstance(registry.primary_for("python"), CompilerProxyProvider)


def test_judge0_is_configured_from_settings(client) -> None:
    with patch.object(settings, "JUDGE0_BASE_URL", "https://judge.internal/"), patch.object(
        settings, "DEFAULT_TIME_LIMIT_MS", 7000
    ):
        provider = build_hosted_provider("judge0", client)
    assert isinstance(provider, Judge0Provider)
    assert provider.base_url == "https://judge.internal"
    assert provider.default_time_limit_ms == 7000


def test_unknown_provider_name(client) -> None:
    with pytest.raises(ValueError):
        build_hosted_provider("piston", client)


def test_dispatcher_limits_come_from_settings(client) -> None:
    with patch.object(settings, "MAX_OUTPUT_SIZE", 123), patch.object(settings, "PROVIDER_TIMEOUT_SECONDS", 4.0):
        dispatcher = build_dispatcher(client)
    assert dispatcher.max_output_size == 123
    assert dispatcher.provider_timeout == 4.0
