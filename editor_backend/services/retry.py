"""Source transforms applied before a provider resubmits a request."""

from typing import Callable

RetryTransform = Callable[[str], str]


def strip_comment_lines(source: str) -> str:
    """Drop lines that are C-style comments, shrinking the submission."""
    kept = []
    for line in source.split("\n"):
        stripped = line.strip()
        if stripped.startswith("//") or stripped.startswith("/*") or stripped.endswith("*/"):
            continue
        kept.append(line)
    return "\n".join(kept)


def identity(source: str) -> str:
    return source
