import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from editor_backend import settings
from editor_backend.app.dependencies import get_dispatcher, process_stats
from editor_backend.app.limiter import limiter
from editor_backend.app.schema import CodeRequest, CodeResponse, ExecutionData, ValidateRequest
from editor_backend.core.exceptions import BadRequestException, ServiceUnavailableException
from editor_backend.models import ExecutionStatus
from editor_backend.services.dispatcher import ExecutionDispatcher
from editor_backend.services.errors import ExecutionValidationError
from editor_backend.settings import logger

router = APIRouter()

HEALTH_CHECK_CODE = 'print("Health check passed")'


@router.post("/execute", response_model=CodeResponse)
@limiter.limit(settings.EXECUTE_RATE_LIMIT)
async def execute_code(
    request: Request,
    payload: CodeRequest,
    dispatcher: ExecutionDispatcher = Depends(get_dispatcher),
):
    started_at = time.monotonic()
    try:
        execution_request = dispatcher.validate(
            payload.language,
            payload.code,
            stdin=payload.input,
            time_limit_ms=payload.time_limit,
            memory_limit_kb=payload.memory_limit,
        )
    except ExecutionValidationError as e:
        logger.info(f"[COMPILER] Rejected execution request: {e}")
        raise BadRequestException(str(e))

    client = request.client.host if request.client else "unknown"
    logger.info(
        f"[COMPILER] Code execution requested | language={execution_request.language} "
        f"code_length={len(execution_request.source)} has_input={bool(execution_request.stdin)} ip={client}"
    )

    result = await dispatcher.execute(execution_request, started_at=started_at)
    return CodeResponse(
        success=True,
        data=ExecutionData(
            output=result.stdout,
            error=result.error,
            execution_time=result.duration_ms,
            memory_usage=result.memory_used_kb,
            status=result.status.value,
        ),
    )


@router.get("/languages")
async def get_languages(dispatcher: ExecutionDispatcher = Depends(get_dispatcher)):
    """Languages accepted by the hosted execution providers"""
    languages = dispatcher.registry.supported_languages()
    return {"success": True, "data": {"languages": languages, "count": len(languages)}}


@router.post("/validate")
async def validate_code(payload: ValidateRequest):
    """Basic validation: only checks that both fields are present"""
    if not payload.code:
        raise BadRequestException("Code is required and must be a string")
    if not payload.language:
        raise BadRequestException("Language is required and must be a string")
    return {"success": True, "data": {"isValid": True, "errors": []}}


@router.get("/health")
async def compiler_health(dispatcher: ExecutionDispatcher = Depends(get_dispatcher)):
    """Runs a one-line Python program through the normal execution path"""
    started = time.monotonic()
    try:
        execution_request = dispatcher.validate("python", HEALTH_CHECK_CODE, time_limit_ms=5000)
    except ExecutionValidationError as e:
        logger.error(f"[COMPILER] Health check failed: {e}")
        raise ServiceUnavailableException("Code execution service is unhealthy")

    result = await dispatcher.execute(execution_request, started_at=started)
    healthy = result.status == ExecutionStatus.SUCCESS
    if not healthy:
        logger.warning(f"[COMPILER] Health check degraded: {result.status.value} {result.error}")

    return {
        "success": True,
        "data": {
            "status": "healthy" if healthy else "degraded",
            "responseTime": int((time.monotonic() - started) * 1000),
            "testExecution": {
                "status": result.status.value,
                "hasOutput": bool(result.stdout),
                "output": result.stdout,
                "executionTime": result.duration_ms,
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


@router.get("/stats")
async def compiler_stats(dispatcher: ExecutionDispatcher = Depends(get_dispatcher)):
    return {
        "success": True,
        "data": {
            "supportedLanguages": len(dispatcher.registry.supported_languages()),
            "providers": [p.model_dump(mode="json") for p in dispatcher.registry.describe()],
            **process_stats(),
        },
    }
