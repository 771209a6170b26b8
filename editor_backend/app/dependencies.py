import platform
import resource
import time

from fastapi import Request

from editor_backend.services.dispatcher import ExecutionDispatcher
from editor_backend.services.preview import PreviewSessionManager
from editor_backend.services.web_engine import WebEngineService

STARTED_AT = time.monotonic()


def get_dispatcher(request: Request) -> ExecutionDispatcher:
    return request.app.state.dispatcher


def get_preview_sessions(request: Request) -> PreviewSessionManager:
    return request.app.state.preview_sessions


def get_web_engine(request: Request) -> WebEngineService:
    return request.app.state.web_engine


def process_stats() -> dict:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return {
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "memoryUsage": {"maxRssKb": usage.ru_maxrss},
        "pythonVersion": platform.python_version(),
    }
