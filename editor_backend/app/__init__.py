from fastapi import APIRouter

from editor_backend.app.compiler import router as compiler_router
from editor_backend.app.preview import router as preview_router
from editor_backend.app.web_engine import router as web_engine_router

router = APIRouter()
router.include_router(compiler_router, prefix="/compiler", tags=["compiler"])
router.include_router(web_engine_router, prefix="/web-engine", tags=["web-engine"])
router.include_router(preview_router, prefix="/preview", tags=["preview"])
