from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from editor_backend import settings
from editor_backend.app import router
from editor_backend.app.limiter import limiter, rate_limit_exceeded_handler
from editor_backend.core.exceptions import register_exception_handlers
from editor_backend.services.factory import build_dispatcher
from editor_backend.services.preview import PreviewSessionManager
from editor_backend.services.web_engine import WebEngineService
from editor_backend.settings import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = httpx.AsyncClient(timeout=httpx.Timeout(settings.PROVIDER_TIMEOUT_SECONDS))
    app.state.dispatcher = build_dispatcher(client)
    app.state.preview_sessions = PreviewSessionManager(
        max_sessions=settings.PREVIEW_MAX_SESSIONS,
        debounce_seconds=settings.PREVIEW_DEBOUNCE_SECONDS,
        console_size=settings.CONSOLE_BUFFER_SIZE,
    )
    app.state.web_engine = WebEngineService(
        timeout_ms=settings.WEB_ENGINE_TIMEOUT_MS,
        settle_ms=settings.WEB_ENGINE_SETTLE_MS,
        viewport_width=settings.WEB_ENGINE_VIEWPORT_WIDTH,
        viewport_height=settings.WEB_ENGINE_VIEWPORT_HEIGHT,
    )
    logger.info("Application started")
    try:
        yield
    finally:
        app.state.preview_sessions.close_all()
        await app.state.web_engine.shutdown()
        await client.aclose()
        logger.info("Application stopped")


app = FastAPI(title="Code Editor Backend", lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.is_development(), workers=1)
