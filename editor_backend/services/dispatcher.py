"""Routes execution requests to providers and normalizes what comes back.

Per request: validate, security check, select a provider, call it, fall back
on an oversized artifact, normalize. Every path ends in an ExecutionResult;
failures are encoded in ``status`` and ``error``.
"""

import asyncio
import time
from typing import Any, List, Optional

import httpx

from editor_backend.models import ExecutionRequest, ExecutionResult, ExecutionStatus
from editor_backend.services.errors import ExecutionValidationError, ProviderError, SecurityRejection
from editor_backend.services.providers.base import ExecutionProvider
from editor_backend.services.registry import ProviderRegistry
from editor_backend.services.security import SecurityFilter
from editor_backend.settings import logger

FALLBACK_MARKER = "[FALLBACK]"
TRUNCATION_MARKER = "\n\n[Output truncated due to size limits]"

LANGUAGE_ALIASES = {
    "c++": "cpp",
    "js": "javascript",
    "node": "javascript",
    "py": "python",
    "python3": "python",
    "ts": "typescript",
}


def normalize_language(language: str) -> str:
    language = language.strip().lower()
    return LANGUAGE_ALIASES.get(language, language)


class ExecutionDispatcher:
    def __init__(
        self,
        registry: ProviderRegistry,
        security_filter: Optional[SecurityFilter] = None,
        max_code_size: int = 100000,
        max_output_size: int = 50000,
        provider_timeout: float = 30.0,
    ):
        self.registry = registry
        self.security_filter = security_filter or SecurityFilter()
        self.max_code_size = max_code_size
        self.max_output_size = max_output_size
        self.provider_timeout = provider_timeout

    def validate(
        self,
        language: Any,
        code: Any,
        stdin: Any = None,
        time_limit_ms: Any = None,
        memory_limit_kb: Any = None,
    ) -> ExecutionRequest:
        """Check the raw request fields and build an ExecutionRequest.

        Raises:
            ExecutionValidationError: If a field is missing, has the wrong type,
                the source is too large, or no provider knows the language.
        """
        if not language or not isinstance(language, str) or not language.strip():
            raise ExecutionValidationError("Language is required and must be a string")
        if not code or not isinstance(code, str):
            raise ExecutionValidationError("Code is required and must be a string")
        if len(code) > self.max_code_size:
            raise ExecutionValidationError(f"Code size exceeds limit of {self.max_code_size} characters")
        if stdin is not None and not isinstance(stdin, str):
            raise ExecutionValidationError("Input must be a string")
        for name, value in (("timeLimit", time_limit_ms), ("memoryLimit", memory_limit_kb)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
                raise ExecutionValidationError(f"{name} must be a positive integer")

        normalized = normalize_language(language)
        if not self.registry.is_supported(normalized):
            supported = ", ".join(self.registry.routable_languages())
            raise ExecutionValidationError(
                f"Unsupported language: {language}. Supported languages: {supported}"
            )

        return ExecutionRequest(
            language=normalized,
            source=code,
            stdin=stdin,
            time_limit_ms=time_limit_ms,
            memory_limit_kb=memory_limit_kb,
        )

    async def execute(self, request: ExecutionRequest, started_at: Optional[float] = None) -> ExecutionResult:
        """Run ``request`` through the provider chain. Never raises.

        ``started_at`` is a ``time.monotonic()`` reading taken when the request
        was received; the reported duration runs from there.
        """
        started = time.monotonic() if started_at is None else started_at
        chain: List[str] = []

        try:
            self.security_filter.enforce(request.source, request.language)
        except SecurityRejection as e:
            logger.warning(f"[COMPILER] Security rejection for {request.language}: {e.reason}")
            result = ExecutionResult.failure(f"Security violation: {e.reason}")
        else:
            result = await self._dispatch(request, chain)

        result = self._normalize(result, started)
        logger.info(
            f"[COMPILER] Execution completed | language={request.language} "
            f"code_length={len(request.source)} has_input={bool(request.stdin)} "
            f"status={result.status.value} duration_ms={result.duration_ms} "
            f"providers={'>'.join(chain) or '-'}"
        )
        return result

    async def _dispatch(self, request: ExecutionRequest, chain: List[str]) -> ExecutionResult:
        provider = self.registry.select(request)
        if provider is None:
            return ExecutionResult.failure(f"No execution provider available for {request.language}")

        chain.append(provider.name)
        result = await self._call(provider, request)
        if result.status != ExecutionStatus.OVERSIZED_ARTIFACT:
            return result

        fallback = self.registry.fallback_for(request.language)
        if fallback is None:
            return result

        logger.warning(f"[COMPILER] {provider.name} reported an oversized artifact, trying {fallback.name}")
        chain.append(fallback.name)
        result = await self._call(fallback, request)
        if result.error:
            result.error = f"{FALLBACK_MARKER} {result.error}"
        else:
            result.error = f"{FALLBACK_MARKER} Executed using alternative service"
        return result

    async def _call(self, provider: ExecutionProvider, request: ExecutionRequest) -> ExecutionResult:
        try:
            return await asyncio.wait_for(provider.execute(request), timeout=self.provider_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[COMPILER] {provider.name} exceeded {self.provider_timeout:g}s")
            return ExecutionResult.failure(
                f"Execution timeout after {self.provider_timeout:g} seconds", ExecutionStatus.TIMEOUT
            )
        except ProviderError as e:
            logger.error(f"[COMPILER] {provider.name} failed: {e}")
            return ExecutionResult.failure(str(e), ExecutionStatus(e.status))
        except httpx.HTTPError as e:
            logger.error(f"[COMPILER] {provider.name} request failed: {e}")
            return ExecutionResult.failure(f"Request failed: {e}")
        except Exception as e:
            logger.exception(f"[COMPILER] Unexpected error from {provider.name}")
            return ExecutionResult.failure(f"Execution failed: {e}")

    def _normalize(self, result: ExecutionResult, started: float) -> ExecutionResult:
        stdout = result.stdout or ""
        if len(stdout) > self.max_output_size:
            stdout = stdout[: self.max_output_size] + TRUNCATION_MARKER
        return result.model_copy(
            update={
                "stdout": stdout,
                "duration_ms": int((time.monotonic() - started) * 1000),
            }
        )
