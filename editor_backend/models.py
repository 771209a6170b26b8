"""Domain models shared by the execution gateway, preview and web engine."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Set

from pydantic import BaseModel, Field


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"
    MEMORY_LIMIT_EXCEEDED = "memory_limit_exceeded"
    OVERSIZED_ARTIFACT = "oversized_artifact"


class ExecutionRequest(BaseModel):
    language: str
    source: str
    stdin: Optional[str] = None
    time_limit_ms: Optional[int] = None
    memory_limit_kb: Optional[int] = None


class ExecutionResult(BaseModel):
    stdout: str = ""
    error: Optional[str] = None
    duration_ms: int = 0
    memory_used_kb: int = 0
    status: ExecutionStatus

    @classmethod
    def failure(cls, error: str, status: ExecutionStatus = ExecutionStatus.ERROR) -> "ExecutionResult":
        return cls(stdout="", error=error, status=status)


class ProviderDescriptor(BaseModel):
    name: str
    supported_languages: Set[str]
    capabilities: Set[str]


ConsoleKind = Literal["log", "warn", "error"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConsoleMessage(BaseModel):
    kind: ConsoleKind
    text: str
    timestamp: datetime = Field(default_factory=_utcnow)


class PreviewSource(BaseModel):
    html: str = ""
    css: str = ""
    javascript: str = ""


class PreviewDocument(BaseModel):
    document: str
    sandbox: str
    is_error: bool = False


class Viewport(BaseModel):
    width: int = Field(default=1200, ge=1, le=4096)
    height: int = Field(default=800, ge=1, le=4096)


class WebExecutionRequest(BaseModel):
    html: Optional[str] = None
    css: Optional[str] = None
    javascript: Optional[str] = None
    url: Optional[str] = None
    viewport: Optional[Viewport] = None
    timeout: Optional[int] = Field(default=None, ge=1)


class WebExecutionResult(BaseModel):
    success: bool
    screenshot: Optional[str] = None
    html: Optional[str] = None
    error: Optional[str] = None
    execution_time: int = 0
    url: Optional[str] = None
    console: List[ConsoleMessage] = Field(default_factory=list)
