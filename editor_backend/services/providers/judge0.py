import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from editor_backend.models import ExecutionRequest, ExecutionResult, ExecutionStatus
from editor_backend.services.errors import ProviderError, ProviderTimeout
from editor_backend.services.providers.base import HOSTED, ExecutionProvider
from editor_backend.services.retry import RetryTransform, strip_comment_lines
from editor_backend.settings import logger

LANGUAGE_IDS: Dict[str, int] = {
    "javascript": 63,  # JavaScript (Node.js)
    "python": 71,  # Python 3
    "java": 62,  # Java (OpenJDK)
    "cpp": 54,  # C++ (GCC 9.2.0)
    "c": 50,  # C (GCC 9.2.0)
    "go": 60,  # Go (1.13.5)
    "rust": 73,  # Rust (1.40.0)
    "php": 68,  # PHP (7.4.1)
    "ruby": 72,  # Ruby (2.7.0)
    "swift": 83,  # Swift (5.2.2)
    "kotlin": 78,  # Kotlin (1.3.70)
    "typescript": 74,  # TypeScript (3.7.2)
}

# Judge0 status ids: 1 In Queue, 2 Processing, 3 Accepted, 4 Wrong Answer,
# 5 Time Limit Exceeded, 6 Compilation Error, 7 SIGSEGV, 8 SIGXFSZ,
# 9 SIGFPE, 10 SIGABRT, 11 NZEC, 12 Other, 13 Internal Error, 14 Exec Format Error
STATUS_MAP: Dict[int, ExecutionStatus] = {
    3: ExecutionStatus.SUCCESS,
    5: ExecutionStatus.TIMEOUT,
    7: ExecutionStatus.MEMORY_LIMIT_EXCEEDED,
    8: ExecutionStatus.OVERSIZED_ARTIFACT,
}
COMPILATION_ERROR = 6
FIRST_TERMINAL_STATUS = 3

OVERSIZED_MARKERS = ("file size limit", "core dumped")
OVERSIZED_MESSAGE = (
    "File size limit exceeded. Your code may be too complex for the current execution "
    "environment. Try simplifying your logic or using a simpler approach."
)


def map_status(status_id: Optional[int]) -> ExecutionStatus:
    if not status_id:
        return ExecutionStatus.ERROR
    return STATUS_MAP.get(status_id, ExecutionStatus.ERROR)


class SubmissionFailed(Exception):
    """The submission step failed in a way worth retrying."""


class Judge0Provider(ExecutionProvider):
    """Hosted judge: submit, then poll the submission token until it settles."""

    name = "judge0"
    capabilities = frozenset({HOSTED, "judge"})
    languages = frozenset(LANGUAGE_IDS)

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://ce.judge0.com",
        api_key: Optional[str] = None,
        api_host: Optional[str] = None,
        default_time_limit_ms: int = 10000,
        poll_interval: float = 1.0,
        max_attempts: int = 2,
        backoff: float = 1.0,
        retry_transform: RetryTransform = strip_comment_lines,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.default_time_limit_ms = default_time_limit_ms
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.retry_transform = retry_transform
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["X-RapidAPI-Key"] = api_key
            self.headers["X-RapidAPI-Host"] = api_host or ""

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        language_id = LANGUAGE_IDS.get(request.language)
        if language_id is None:
            return ExecutionResult.failure(f"Unsupported language: {request.language}")

        time_limit_ms = request.time_limit_ms or self.default_time_limit_ms
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            source = request.source if attempt == 1 else self.retry_transform(request.source)
            logger.info(
                f"[JUDGE0] Attempt {attempt} for {request.language} "
                f"(code_length={len(source)}, has_input={bool(request.stdin)})"
            )
            try:
                token = await self._submit(language_id, source, request)
            except SubmissionFailed as e:
                last_error = e
                logger.warning(f"[JUDGE0] Submission attempt {attempt} failed: {e}")
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff * attempt)
                continue

            payload = await self._wait_for_result(token, time_limit_ms)
            result = self._to_result(payload)

            if result.status == ExecutionStatus.OVERSIZED_ARTIFACT and attempt < self.max_attempts:
                logger.warning(f"[JUDGE0] Oversized artifact, retrying with simplified code (attempt {attempt})")
                await asyncio.sleep(self.backoff * attempt)
                continue
            return result

        raise ProviderError(
            f"Execution failed: {last_error or 'all execution attempts failed'}. "
            "Please try simplifying your code or check your syntax."
        )

    async def _submit(self, language_id: int, source: str, request: ExecutionRequest) -> str:
        body: Dict[str, Any] = {
            "language_id": language_id,
            "source_code": source,
            "stdin": request.stdin or "",
        }
        if request.memory_limit_kb:
            body["memory_limit"] = request.memory_limit_kb

        try:
            response = await self.client.post(
                f"{self.base_url}/submissions/",
                params={"base64_encoded": "false", "wait": "false"},
                json=body,
                headers=self.headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise SubmissionFailed(f"Submission request failed: {e}") from e
        except ValueError as e:
            raise SubmissionFailed("Failed to parse submission response") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise SubmissionFailed("Failed to get submission token")
        return token

    async def _wait_for_result(self, token: str, time_limit_ms: int) -> Dict[str, Any]:
        deadline = time.monotonic() + time_limit_ms / 1000
        while True:
            if time.monotonic() >= deadline:
                raise ProviderTimeout(f"Execution timeout after {time_limit_ms}ms")
            try:
                response = await self.client.get(
                    f"{self.base_url}/submissions/{token}",
                    params={"base64_encoded": "false"},
                    headers=self.headers,
                )
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPError as e:
                raise ProviderError(f"Result request failed: {e}") from e
            except ValueError as e:
                raise ProviderError("Failed to parse result response") from e

            status_id = (payload.get("status") or {}).get("id") or 0
            if status_id >= FIRST_TERMINAL_STATUS:
                return payload
            await asyncio.sleep(self.poll_interval)

    def _to_result(self, payload: Dict[str, Any]) -> ExecutionResult:
        status_id = (payload.get("status") or {}).get("id")
        status = map_status(status_id)
        compile_output = payload.get("compile_output") or ""
        if status_id == COMPILATION_ERROR and any(m in compile_output.lower() for m in OVERSIZED_MARKERS):
            status = ExecutionStatus.OVERSIZED_ARTIFACT

        memory = int(payload.get("memory") or 0)
        if status == ExecutionStatus.OVERSIZED_ARTIFACT:
            return ExecutionResult(error=OVERSIZED_MESSAGE, memory_used_kb=memory, status=status)

        return ExecutionResult(
            stdout=payload.get("stdout") or "",
            error=payload.get("stderr") or compile_output or None,
            memory_used_kb=memory,
            status=status,
        )
