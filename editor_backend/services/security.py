"""Deny-list pre-filter applied before any provider is contacted.

This is pattern matching on the source text, not analysis. The isolation
boundary is the provider's own sandbox; the filter only gives fast feedback
on obviously hostile snippets.
"""

import re
from typing import Dict, List, Optional, Tuple

from editor_backend.services.errors import SecurityRejection

Pattern = Tuple["re.Pattern[str]", str]


def _compile(*entries: Tuple[str, str], flags: int = re.IGNORECASE) -> List[Pattern]:
    return [(re.compile(expr, flags), reason) for expr, reason in entries]


COMMON_PATTERNS = _compile(
    (r"while\s*\(\s*(true|1)\s*\)", "infinite loop"),
    (r"for\s*\(\s*;\s*;\s*\)", "infinite loop"),
)

LANGUAGE_PATTERNS: Dict[str, List[Pattern]] = {
    "python": _compile(
        (r"^\s*while\s+(True|1)\s*:", "infinite loop"),
        (r"\beval\s*\(", "dynamic evaluation"),
        (r"\bexec\s*\(", "dynamic evaluation"),
        (r"__import__", "dynamic import"),
        (r"^\s*(import|from)\s+(os|subprocess|shutil)\b", "process or filesystem access"),
        (r"\bos\.(system|popen|remove|unlink|rmdir|kill)\b", "process or filesystem access"),
        (r"\bsubprocess\.", "process control"),
        flags=re.MULTILINE,
    ),
    "javascript": _compile(
        (r"\beval\s*\(", "dynamic evaluation"),
        (r"require\s*\(\s*['\"`](fs|child_process|os)['\"`]\s*\)", "process or filesystem access"),
        (r"import\s+.*\s+from\s+['\"`](fs|child_process|os)['\"`]", "process or filesystem access"),
        (r"\bchild_process\.", "process control"),
        (r"\bprocess\.(exit|kill)\b", "process control"),
    )
    + _compile((r"\bnew\s+Function\s*\(", "dynamic evaluation"), flags=0),
    "cpp": _compile(
        (r"\bsystem\s*\(", "process control"),
        (r"\b(fork|popen|execv|execl)\s*\(", "process control"),
    ),
    "c": _compile(
        (r"\bsystem\s*\(", "process control"),
        (r"\b(fork|popen|execv|execl)\s*\(", "process control"),
    ),
    "java": _compile(
        (r"Runtime\s*\.\s*getRuntime\s*\(\s*\)\s*\.\s*exec", "process control"),
        (r"\bProcessBuilder\b", "process control"),
        (r"System\s*\.\s*exit\s*\(", "process control"),
    ),
}
LANGUAGE_PATTERNS["typescript"] = LANGUAGE_PATTERNS["javascript"]


class SecurityFilter:
    def __init__(self, common=None, per_language=None):
        self.common = COMMON_PATTERNS if common is None else common
        self.per_language = LANGUAGE_PATTERNS if per_language is None else per_language

    def check(self, source: str, language: str) -> Optional[str]:
        """Return the rejection reason, or None when the source passes."""
        for pattern, reason in self.common + self.per_language.get(language, []):
            if pattern.search(source):
                return f"Code contains potentially dangerous pattern ({reason}): {pattern.pattern}"
        return None

    def enforce(self, source: str, language: str) -> None:
        reason = self.check(source, language)
        if reason:
            raise SecurityRejection(reason)
