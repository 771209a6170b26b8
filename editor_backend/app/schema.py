from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from editor_backend.models import ConsoleKind


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CodeRequest(CamelModel):
    language: Optional[str] = None
    code: Optional[str] = None
    input: Optional[str] = None
    time_limit: Optional[int] = Field(default=None, alias="timeLimit")
    memory_limit: Optional[int] = Field(default=None, alias="memoryLimit")


class ExecutionData(CamelModel):
    output: str
    error: Optional[str] = None
    execution_time: int = Field(alias="executionTime")
    memory_usage: int = Field(alias="memoryUsage")
    status: str


class CodeResponse(BaseModel):
    success: bool
    data: ExecutionData


class ValidateRequest(BaseModel):
    code: Optional[str] = None
    language: Optional[str] = None


class PreviewRequest(BaseModel):
    html: str = ""
    css: str = ""
    javascript: str = ""


class ConsoleRelay(BaseModel):
    kind: ConsoleKind
    text: str = Field(max_length=10000)
    timestamp: Optional[datetime] = None


class ConsoleMessageOut(BaseModel):
    kind: ConsoleKind
    text: str
    timestamp: datetime


class ConsoleListing(BaseModel):
    messages: List[ConsoleMessageOut]
    count: int
    capacity: int
