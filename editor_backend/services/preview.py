"""Live HTML preview: document composition, debounced re-render, console bridge.

The composed document is meant for an iframe ``srcdoc`` carrying
``SANDBOX_POLICY``. Inside it, the console bridge forwards ``console.log``,
``console.warn`` and ``console.error`` to the embedding page through
``postMessage``; the editor relays them to the owning ``PreviewSession``.
"""

import asyncio
import html as html_lib
import inspect
import re
import uuid
from collections import OrderedDict, deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, List, Optional

from editor_backend.models import ConsoleMessage, PreviewDocument, PreviewSource
from editor_backend.settings import logger

SANDBOX_POLICY = "allow-scripts allow-same-origin"
BRIDGE_MESSAGE_SOURCE = "preview-console"

RESET_CSS = """* {
  margin: 0;
  padding: 0;
  box-sizing: border-box;
}
html, body {
  width: 100%;
  min-height: 100%;
  overflow-x: hidden;
  -webkit-text-size-adjust: 100%;
}
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  line-height: 1.5;
  color: #333;
  background: #ffffff;
}"""

CONSOLE_BRIDGE_JS = """(function () {
  var format = function (args) {
    return Array.prototype.map.call(args, function (arg) {
      if (typeof arg === "string") { return arg; }
      try { return JSON.stringify(arg); } catch (e) { return String(arg); }
    }).join(" ");
  };
  var send = function (kind, args) {
    try {
      window.parent.postMessage({
        source: "%s",
        kind: kind,
        text: format(args),
        timestamp: new Date().toISOString()
      }, "*");
    } catch (e) {}
  };
  ["log", "warn", "error"].forEach(function (kind) {
    var original = console[kind];
    console[kind] = function () {
      send(kind, arguments);
      if (original) { original.apply(console, arguments); }
    };
  });
  window.addEventListener("error", function (event) { send("error", [event.message]); });
})();""" % BRIDGE_MESSAGE_SOURCE

_STYLE_BLOCK = re.compile(r"<style\b[^>]*>(.*?)</style\s*>", re.IGNORECASE | re.DOTALL)
_BODY = re.compile(r"<body(?=[\s>/])[^>]*>(.*?)(?:</body\s*>|$)", re.IGNORECASE | re.DOTALL)
_CLOSING_SCRIPT = re.compile(r"</(script)", re.IGNORECASE)
_CLOSING_STYLE = re.compile(r"</(style)", re.IGNORECASE)


def _escape_closing(pattern: "re.Pattern[str]", code: str) -> str:
    return pattern.sub(r"<\\/\1", code)


def compose_document(html: str = "", css: str = "", javascript: str = "", console_bridge: bool = True) -> str:
    """Build a complete HTML document around caller HTML, CSS and JavaScript.

    All ``<style>`` blocks found in ``html`` are lifted into the single head
    stylesheet, after the reset rules and before ``css``. When ``html`` is a
    whole document only the content of its ``<body>`` is kept.
    """
    for name, value in (("html", html), ("css", css), ("javascript", javascript)):
        if not isinstance(value, str):
            raise TypeError(f"{name} must be a string, got {type(value).__name__}")

    inline_styles = [block.strip() for block in _STYLE_BLOCK.findall(html)]
    body = _STYLE_BLOCK.sub("", html)
    body_match = _BODY.search(body)
    if body_match:
        body = body_match.group(1)

    stylesheet = "\n".join(part for part in [RESET_CSS, *inline_styles, css.strip()] if part)
    head_script = f"<script>\n{CONSOLE_BRIDGE_JS}\n</script>\n" if console_bridge else ""
    body_script = f"<script>\n{_escape_closing(_CLOSING_SCRIPT, javascript)}\n</script>\n" if javascript.strip() else ""

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "<title>HTML Preview</title>\n"
        f"<style>\n{_escape_closing(_CLOSING_STYLE, stylesheet)}\n</style>\n"
        f"{head_script}"
        "</head>\n"
        "<body>\n"
        f"{body.strip()}\n"
        f"{body_script}"
        "</body>\n"
        "</html>\n"
    )


def error_document(message: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="UTF-8">\n'
        "<title>Error</title>\n"
        "<style>\n"
        "body { font-family: Arial, sans-serif; padding: 20px; color: red; }\n"
        ".error { background: #ffe6e6; padding: 10px; border-radius: 5px; }\n"
        "</style>\n"
        "</head>\n"
        "<body>\n"
        '<div class="error">\n'
        "<h3>Error Loading HTML:</h3>\n"
        f"<p>{html_lib.escape(message)}</p>\n"
        "</div>\n"
        "</body>\n"
        "</html>\n"
    )


class Debouncer:
    """Runs ``callback`` once ``delay`` seconds have passed without a new trigger."""

    def __init__(self, delay: float, callback: Callable[..., Any]):
        self.delay = delay
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, *args: Any) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(args))

    async def _run(self, args: tuple) -> None:
        await asyncio.sleep(self.delay)
        result = self.callback(*args)
        if inspect.isawaitable(result):
            await result

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Wait until the pending call, if any, has run."""
        if self._task is not None:
            await asyncio.wait({self._task})


class ConsoleBuffer:
    """The ``maxlen`` most recently emitted console messages, ordered by timestamp."""

    def __init__(self, maxlen: int = 100):
        self._messages: Deque[ConsoleMessage] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._messages.maxlen or 0

    def append(self, message: ConsoleMessage) -> None:
        """Insert by timestamp; messages with equal timestamps keep arrival order."""
        index = len(self._messages)
        while index > 0 and self._messages[index - 1].timestamp > message.timestamp:
            index -= 1
        if index == len(self._messages):
            self._messages.append(message)
            return
        if len(self._messages) == self.maxlen:
            if index == 0:
                return
            self._messages.popleft()
            index -= 1
        self._messages.insert(index, message)

    def clear(self) -> None:
        self._messages.clear()

    def messages(self) -> List[ConsoleMessage]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)


class PreviewState(str, Enum):
    IDLE = "idle"
    DEBOUNCE_PENDING = "debounce-pending"
    RENDERING = "rendering"
    RENDERED = "rendered"


class PreviewSession:
    def __init__(self, session_id: str, debounce_seconds: float = 0.5, console_size: int = 100):
        self.id = session_id
        self.state = PreviewState.IDLE
        self.source: Optional[PreviewSource] = None
        self.preview: Optional[PreviewDocument] = None
        self.revision = 0
        self.rendered_at: Optional[datetime] = None
        self.console = ConsoleBuffer(console_size)
        self._debouncer = Debouncer(debounce_seconds, self._render)

    def edit(self, source: PreviewSource) -> None:
        """Record an edit; the render happens once edits stop for the debounce delay."""
        self.source = source
        self.state = PreviewState.DEBOUNCE_PENDING
        self._debouncer.trigger(source)

    def render_now(self, source: Optional[PreviewSource] = None) -> PreviewDocument:
        self._debouncer.cancel()
        if source is not None:
            self.source = source
        return self._render(self.source or PreviewSource())

    async def flush(self) -> None:
        await self._debouncer.flush()

    def _render(self, source: PreviewSource) -> PreviewDocument:
        self.state = PreviewState.RENDERING
        try:
            preview = PreviewDocument(
                document=compose_document(source.html, source.css, source.javascript),
                sandbox=SANDBOX_POLICY,
            )
        except Exception as e:
            logger.opt(exception=e).error(f"[PREVIEW] Session {self.id} failed to compose document")
            preview = PreviewDocument(document=error_document(str(e)), sandbox=SANDBOX_POLICY, is_error=True)

        self.preview = preview
        self.revision += 1
        self.rendered_at = datetime.now(timezone.utc)
        self.state = PreviewState.RENDERED
        return preview

    def receive_console(self, kind: str, text: str, timestamp: Optional[datetime] = None) -> ConsoleMessage:
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        elif timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        message = ConsoleMessage(kind=kind, text=text, timestamp=timestamp)
        self.console.append(message)
        return message

    def close(self) -> None:
        self._debouncer.cancel()


class PreviewSessionManager:
    """Preview sessions by id; the oldest session is dropped past ``max_sessions``."""

    def __init__(self, max_sessions: int = 200, debounce_seconds: float = 0.5, console_size: int = 100):
        self.max_sessions = max_sessions
        self.debounce_seconds = debounce_seconds
        self.console_size = console_size
        self.sessions: "OrderedDict[str, PreviewSession]" = OrderedDict()

    def create(self) -> PreviewSession:
        session = PreviewSession(uuid.uuid4().hex, self.debounce_seconds, self.console_size)
        self.sessions[session.id] = session
        while len(self.sessions) > self.max_sessions:
            _, evicted = self.sessions.popitem(last=False)
            logger.info(f"[PREVIEW] Evicting session {evicted.id}")
            evicted.close()
        logger.info(f"[PREVIEW] Created session {session.id}")
        return session

    def get(self, session_id: str) -> Optional[PreviewSession]:
        return self.sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info(f"[PREVIEW] Closed session {session_id}")
        return True

    def close_all(self) -> None:
        for session in self.sessions.values():
            session.close()
        self.sessions.clear()
