import asyncio
import base64
from types import SimpleNamespace
from typing import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from editor_backend.models import Viewport, WebExecutionRequest
from editor_backend.services.web_engine import WebEngineService


@pytest.fixture
def chromium() -> Generator[SimpleNamespace, None, None]:
    page = MagicMock()
    page.url = "about:blank"
    page.goto = AsyncMock()
    page.set_content = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"png-bytes")
    page.content = AsyncMock(return_value="<html><body>rendered</body></html>")
    page.close = AsyncMock()

    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)

    with patch("editor_backend.services.web_engine.async_playwright", return_value=starter) as factory:
        yield SimpleNamespace(page=page, browser=browser, playwright=playwright, factory=factory)


@pytest.fixture
def engine() -> WebEngineService:
    return WebEngineService(timeout_ms=5000, settle_ms=10)


def test_supported_technologies() -> None:
    assert WebEngineService.get_supported_technologies() == ["html", "css", "javascript", "url"]
    assert WebEngineService.is_technology_supported("CSS")
    assert not WebEngineService.is_technology_supported("php")


@pytest.mark.asyncio
async def test_renders_composed_document(chromium, engine) -> None:
    result = await engine.execute(WebExecutionRequest(html="<h1>Hi</h1>", css="h1 { color: red; }", javascript="1;"))

    assert result.success
    assert result.error is None
    assert result.screenshot == "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
    assert result.html == "<html><body>rendered</body></html>"

    document = chromium.page.set_content.await_args.args[0]
    assert "<h1>Hi</h1>" in document
    assert "h1 { color: red; }" in document
    assert "preview-console" not in document
    assert chromium.page.set_content.await_args.kwargs["timeout"] == 5000
    chromium.page.goto.assert_not_awaited()
    chromium.page.wait_for_timeout.assert_awaited_once_with(10)
    chromium.page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_navigates_to_url_with_requested_viewport(chromium, engine) -> None:
    request = WebExecutionRequest(url="https://example.com", viewport=Viewport(width=640, height=480), timeout=900)
    result = await engine.execute(request)

    assert result.success
    assert result.url == "https://example.com"
    chromium.page.goto.assert_awaited_once_with("https://example.com", wait_until="networkidle", timeout=900)
    assert chromium.browser.new_page.await_args.kwargs["viewport"] == {"width": 640, "height": 480}


@pytest.mark.asyncio
async def test_non_http_url_is_refused(chromium, engine) -> None:
    result = await engine.execute(WebExecutionRequest(url="file:///etc/passwd"))

    assert not result.success
    assert result.error.startswith("Web execution failed:")
    chromium.factory.assert_not_called()


@pytest.mark.asyncio
async def test_page_failure_is_reported_and_page_closed(chromium, engine) -> None:
    chromium.page.goto.side_effect = TimeoutError("navigation timed out")
    result = await engine.execute(WebExecutionRequest(url="https://slow.example"))

    assert not result.success
    assert result.error == "Web execution failed: navigation timed out"
    assert result.screenshot is None
    chromium.page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_console_messages_are_captured(chromium, engine) -> None:
    async def emit(*args, **kwargs):
        handler = chromium.page.on.call_args.args[1]
        handler(SimpleNamespace(type="log", text="hello"))
        handler(SimpleNamespace(type="warning", text="careful"))
        handler(SimpleNamespace(type="error", text="broken"))

    chromium.page.set_content.side_effect = emit
    result = await engine.execute(WebExecutionRequest(html="<p>x</p>"))

    assert [(m.kind, m.text) for m in result.console] == [("log", "hello"), ("warn", "careful"), ("error", "broken")]


@pytest.mark.asyncio
async def test_browser_is_launched_once_and_shut_down(chromium, engine) -> None:
    await engine.execute(WebExecutionRequest(html="<p>1</p>"))
    await engine.execute(WebExecutionRequest(html="<p>2</p>"))

    assert engine.browser_running
    chromium.playwright.chromium.launch.assert_awaited_once()
    assert chromium.browser.new_page.await_count == 2

    await engine.shutdown()
    assert not engine.browser_running
    chromium.browser.close.assert_awaited_once()
    chromium.playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_first_requests_share_one_browser(chromium, engine) -> None:
    async def slow_launch(*args, **kwargs):
        await asyncio.sleep(0.05)
        return chromium.browser

    chromium.playwright.chromium.launch.side_effect = slow_launch
    results = await asyncio.gather(*(engine.execute(WebExecutionRequest(html="<p>x</p>")) for _ in range(3)))

    assert all(result.success for result in results)
    chromium.factory.return_value.start.assert_awaited_once()
    chromium.playwright.chromium.launch.assert_awaited_once()
    assert chromium.browser.new_page.await_count == 3

    await engine.shutdown()
    chromium.browser.close.assert_awaited_once()
    chromium.playwright.stop.assert_awaited_once()
