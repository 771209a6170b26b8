import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from editor_backend import settings
from editor_backend.app.dependencies import get_web_engine, process_stats
from editor_backend.app.limiter import limiter
from editor_backend.core.exceptions import BadRequestException
from editor_backend.models import WebExecutionRequest
from editor_backend.services.web_engine import WebEngineService
from editor_backend.settings import logger

router = APIRouter()

HEALTH_CHECK_REQUEST = WebExecutionRequest(
    html='<h1 style="color: blue;">Web Engine Health Check</h1><p>Success!</p>',
    css="body { font-family: Arial, sans-serif; margin: 40px; }",
    javascript='console.log("Health check executed");',
    timeout=10000,
)


def _result_payload(result) -> dict:
    data = result.model_dump(mode="json", exclude={"execution_time"})
    data["executionTime"] = result.execution_time
    return data


@router.post("/execute")
@limiter.limit(settings.WEB_ENGINE_RATE_LIMIT)
async def execute_web_code(
    request: Request,
    payload: WebExecutionRequest,
    web_engine: WebEngineService = Depends(get_web_engine),
):
    if not (payload.html or payload.css or payload.javascript or payload.url):
        raise BadRequestException("At least one of html, css, javascript, or url is required")

    client = request.client.host if request.client else "unknown"
    logger.info(
        f"[WEB_ENGINE] Web execution requested | html={len(payload.html or '')} css={len(payload.css or '')} "
        f"javascript={len(payload.javascript or '')} url={bool(payload.url)} ip={client}"
    )

    result = await web_engine.execute(payload)

    logger.info(
        f"[WEB_ENGINE] Web execution completed | success={result.success} "
        f"execution_time={result.execution_time} screenshot={bool(result.screenshot)} error={bool(result.error)}"
    )
    return {"success": True, "data": _result_payload(result)}


@router.get("/technologies")
async def get_technologies():
    technologies = WebEngineService.get_supported_technologies()
    return {"success": True, "data": {"technologies": technologies, "count": len(technologies)}}


@router.get("/health")
async def web_engine_health(web_engine: WebEngineService = Depends(get_web_engine)):
    started = time.monotonic()
    result = await web_engine.execute(HEALTH_CHECK_REQUEST)
    return {
        "success": True,
        "data": {
            "status": "healthy" if result.success else "unhealthy",
            "responseTime": int((time.monotonic() - started) * 1000),
            "testExecution": {
                "success": result.success,
                "hasScreenshot": bool(result.screenshot),
                "executionTime": result.execution_time,
                "error": result.error,
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


@router.get("/stats")
async def web_engine_stats(web_engine: WebEngineService = Depends(get_web_engine)):
    return {
        "success": True,
        "data": {
            "supportedTechnologies": len(WebEngineService.get_supported_technologies()),
            "browserRunning": web_engine.browser_running,
            **process_stats(),
        },
    }
