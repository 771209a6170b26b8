import os
from dotenv import load_dotenv

from editor_backend.core.logger import logger

load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
CORS_ORIGINS = _get_list("CORS_ORIGINS", "*")

# Execution gateway
EXECUTION_PROVIDERS = _get_list("EXECUTION_PROVIDERS", "judge0,compiler_proxy")
JUDGE0_BASE_URL = os.getenv("JUDGE0_BASE_URL", "https://ce.judge0.com")
JUDGE0_API_KEY = os.getenv("JUDGE0_API_KEY")
JUDGE0_API_HOST = os.getenv("JUDGE0_API_HOST", "judge0-ce.p.rapidapi.com")
RAPIDAPI_KEY = os.getenv("RAPIDAPI_KEY")
RAPIDAPI_HOST = os.getenv("RAPIDAPI_HOST", "online-code-compiler.p.rapidapi.com")

MAX_CODE_SIZE = int(os.getenv("MAX_CODE_SIZE", "100000"))
MAX_OUTPUT_SIZE = int(os.getenv("MAX_OUTPUT_SIZE", "50000"))
DEFAULT_TIME_LIMIT_MS = int(os.getenv("DEFAULT_TIME_LIMIT_MS", "10000"))
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30"))
JUDGE0_POLL_INTERVAL_SECONDS = float(os.getenv("JUDGE0_POLL_INTERVAL_SECONDS", "1.0"))
RETRY_BACKOFF_SECONDS = float(os.getenv("RETRY_BACKOFF_SECONDS", "1.0"))

# Rate limiting
RATE_LIMIT_ENABLED = _get_bool("RATE_LIMIT_ENABLED", True)
EXECUTE_RATE_LIMIT = os.getenv("EXECUTE_RATE_LIMIT", "10/minute")
WEB_ENGINE_RATE_LIMIT = os.getenv("WEB_ENGINE_RATE_LIMIT", "20/minute")

# Live preview
PREVIEW_DEBOUNCE_SECONDS = float(os.getenv("PREVIEW_DEBOUNCE_SECONDS", "0.5"))
CONSOLE_BUFFER_SIZE = int(os.getenv("CONSOLE_BUFFER_SIZE", "100"))
PREVIEW_MAX_SESSIONS = int(os.getenv("PREVIEW_MAX_SESSIONS", "200"))

# Headless browser
WEB_ENGINE_TIMEOUT_MS = int(os.getenv("WEB_ENGINE_TIMEOUT_MS", "30000"))
WEB_ENGINE_SETTLE_MS = int(os.getenv("WEB_ENGINE_SETTLE_MS", "2000"))
WEB_ENGINE_VIEWPORT_WIDTH = int(os.getenv("WEB_ENGINE_VIEWPORT_WIDTH", "1200"))
WEB_ENGINE_VIEWPORT_HEIGHT = int(os.getenv("WEB_ENGINE_VIEWPORT_HEIGHT", "800"))


def is_development() -> bool:
    return ENVIRONMENT.lower() == "development"
