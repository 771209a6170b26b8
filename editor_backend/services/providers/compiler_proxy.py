from typing import Dict

import httpx

from editor_backend.models import ExecutionRequest, ExecutionResult, ExecutionStatus
from editor_backend.services.errors import ProviderError
from editor_backend.services.providers.base import HOSTED, ExecutionProvider
from editor_backend.settings import logger

# Language names as the compiler proxy expects them
LANGUAGE_MAP: Dict[str, str] = {
    "javascript": "nodejs",
    "python": "python3",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "go": "go",
    "rust": "rust",
    "php": "php",
    "ruby": "ruby",
    "swift": "swift",
    "kotlin": "kotlin",
}


class CompilerProxyProvider(ExecutionProvider):
    """RapidAPI online compiler: one request, one answer."""

    name = "compiler_proxy"
    capabilities = frozenset({HOSTED})
    languages = frozenset(LANGUAGE_MAP)

    def __init__(self, client: httpx.AsyncClient, api_key: str, host: str = "online-code-compiler.p.rapidapi.com"):
        self.client = client
        self.url = f"https://{host}/v1/"
        self.headers = {
            "x-rapidapi-key": api_key,
            "x-rapidapi-host": host,
            "Content-Type": "application/json",
        }

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        body = {
            "language": LANGUAGE_MAP.get(request.language, request.language),
            "version": "latest",
            "code": request.source,
            "input": request.stdin,
        }
        logger.info(f"[COMPILER_PROXY] Submitting {request.language} code ({len(request.source)} chars)")
        try:
            response = await self.client.post(self.url, json=body, headers=self.headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"API response parsing failed: {e}") from e

        error = data.get("error") or None
        return ExecutionResult(
            stdout=data.get("output") or "",
            error=error,
            memory_used_kb=int(data.get("memory") or 0),
            status=ExecutionStatus.ERROR if error else ExecutionStatus.SUCCESS,
        )
