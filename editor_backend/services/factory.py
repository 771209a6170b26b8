from typing import Optional

import httpx

from editor_backend import settings
from editor_backend.services.dispatcher import ExecutionDispatcher
from editor_backend.services.providers import (
    AlternativeProvider,
    CompilerProxyProvider,
    ExecutionProvider,
    Judge0Provider,
    StarPatternProvider,
)
from editor_backend.services.registry import ProviderRegistry
from editor_backend.services.security import SecurityFilter
from editor_backend.settings import logger


def build_hosted_provider(name: str, client: httpx.AsyncClient) -> Optional[ExecutionProvider]:
    if name == "judge0":
        return Judge0Provider(
            client,
            base_url=settings.JUDGE0_BASE_URL,
            api_key=settings.JUDGE0_API_KEY,
            api_host=settings.JUDGE0_API_HOST,
            default_time_limit_ms=settings.DEFAULT_TIME_LIMIT_MS,
            poll_interval=settings.JUDGE0_POLL_INTERVAL_SECONDS,
            backoff=settings.RETRY_BACKOFF_SECONDS,
        )
    if name == "compiler_proxy":
        if not settings.RAPIDAPI_KEY:
            logger.info("RAPIDAPI_KEY not set, compiler proxy provider disabled")
            return None
        return CompilerProxyProvider(client, api_key=settings.RAPIDAPI_KEY, host=settings.RAPIDAPI_HOST)
    raise ValueError(f"Unknown execution provider: {name}")


def build_registry(client: httpx.AsyncClient) -> ProviderRegistry:
    """
    Specialized providers first, then the hosted ones in configured order,
    then the fallback.
    """
    registry = ProviderRegistry([StarPatternProvider()])
    for name in settings.EXECUTION_PROVIDERS:
        provider = build_hosted_provider(name, client)
        if provider is not None:
            registry.register(provider)
    registry.register(AlternativeProvider())
    return registry


def build_dispatcher(client: httpx.AsyncClient) -> ExecutionDispatcher:
    registry = build_registry(client)
    logger.info(f"Execution providers: {', '.join(p.name for p in registry.providers)}")
    return ExecutionDispatcher(
        registry,
        security_filter=SecurityFilter(),
        max_code_size=settings.MAX_CODE_SIZE,
        max_output_size=settings.MAX_OUTPUT_SIZE,
        provider_timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    )
