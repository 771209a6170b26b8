import asyncio
import base64
import time
from typing import List, Optional
from urllib.parse import urlparse

from playwright.async_api import Browser, Page, Playwright, async_playwright

from editor_backend.models import ConsoleMessage, WebExecutionRequest, WebExecutionResult
from editor_backend.services.preview import compose_document
from editor_backend.settings import logger

SUPPORTED_TECHNOLOGIES = ["html", "css", "javascript", "url"]
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]
CONSOLE_KINDS = {"log": "log", "info": "log", "debug": "log", "warning": "warn", "error": "error"}


class WebEngineService:
    """Renders HTML/CSS/JS or a URL in headless Chromium.

    The browser is launched on first use and reused; each request gets its
    own page, which is always closed afterwards.
    """

    def __init__(
        self,
        timeout_ms: int = 30000,
        settle_ms: int = 2000,
        viewport_width: int = 1200,
        viewport_height: int = 800,
    ):
        self.timeout_ms = timeout_ms
        self.settle_ms = settle_ms
        self.default_viewport = {"width": viewport_width, "height": viewport_height}
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()

    @staticmethod
    def get_supported_technologies() -> List[str]:
        return list(SUPPORTED_TECHNOLOGIES)

    @staticmethod
    def is_technology_supported(technology: str) -> bool:
        return technology.lower() in SUPPORTED_TECHNOLOGIES

    @property
    def browser_running(self) -> bool:
        return self._browser is not None

    async def _ensure_browser(self) -> Browser:
        if self._browser is not None:
            return self._browser
        async with self._launch_lock:
            if self._browser is None:
                logger.info("[WEB_ENGINE] Launching headless Chromium")
                self._playwright = await async_playwright().start()
                try:
                    self._browser = await self._playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
                except Exception:
                    await self._playwright.stop()
                    self._playwright = None
                    raise
                logger.info("[WEB_ENGINE] Browser launched")
        return self._browser

    async def execute(self, request: WebExecutionRequest) -> WebExecutionResult:
        started = time.monotonic()
        page: Optional[Page] = None
        console: List[ConsoleMessage] = []

        logger.info(
            f"[WEB_ENGINE] Starting web execution | html={bool(request.html)} css={bool(request.css)} "
            f"javascript={bool(request.javascript)} url={bool(request.url)}"
        )
        try:
            if request.url:
                self._check_url(request.url)
            browser = await self._ensure_browser()
            viewport = request.viewport.model_dump() if request.viewport else dict(self.default_viewport)
            page = await browser.new_page(viewport=viewport, user_agent=USER_AGENT)
            page.on(
                "console",
                lambda msg: console.append(ConsoleMessage(kind=CONSOLE_KINDS.get(msg.type, "log"), text=msg.text)),
            )

            timeout = request.timeout or self.timeout_ms
            if request.url:
                await page.goto(request.url, wait_until="networkidle", timeout=timeout)
            else:
                document = compose_document(
                    request.html or "", request.css or "", request.javascript or "", console_bridge=False
                )
                await page.set_content(document, wait_until="networkidle", timeout=timeout)

            await page.wait_for_timeout(self.settle_ms)
            screenshot = await page.screenshot(type="png", full_page=True)
            content = await page.content()

            return WebExecutionResult(
                success=True,
                screenshot=f"data:image/png;base64,{base64.b64encode(screenshot).decode('ascii')}",
                html=content,
                url=request.url or page.url,
                console=console,
                execution_time=int((time.monotonic() - started) * 1000),
            )
        except Exception as e:
            logger.error(f"[WEB_ENGINE] Execution error: {e}")
            return WebExecutionResult(
                success=False,
                error=f"Web execution failed: {e}",
                console=console,
                execution_time=int((time.monotonic() - started) * 1000),
            )
        finally:
            if page is not None:
                await page.close()

    @staticmethod
    def _check_url(url: str) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Only http and https URLs can be rendered: {url}")

    async def shutdown(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            logger.info("[WEB_ENGINE] Browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
