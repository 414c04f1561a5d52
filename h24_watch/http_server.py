"""HTTP server for screenshots and remote control of the watch face."""

import base64
import json
import logging
import os
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from io import BytesIO
from typing import TYPE_CHECKING, Optional
from urllib.parse import parse_qs, urlsplit

from .data.countdown import CountdownParseError

if TYPE_CHECKING:
    from .config import HttpServerConfig

logger = logging.getLogger(__name__)

APP_ENDPOINTS = (
    "/screenshot",
    "/status",
    "/dark",
    "/rotate",
    "/details",
    "/ambient",
    "/countdown",
    "/steps",
)


class RateLimiter:
    """Simple rate limiter using token bucket algorithm."""

    def __init__(self, rate_per_second: int = 10):
        self.rate = rate_per_second
        self.tokens = rate_per_second
        self.last_update = time.time()
        self.lock = threading.Lock()

    def allow(self) -> bool:
        """Check if request is allowed. Returns True if allowed."""
        with self.lock:
            now = time.time()
            elapsed = now - self.last_update
            self.tokens = min(self.rate, self.tokens + elapsed * self.rate)
            self.last_update = now

            if self.tokens >= 1:
                self.tokens -= 1
                return True
            return False


class WatchFaceHandler(BaseHTTPRequestHandler):
    """
    HTTP request handler for screenshots and face toggles.

    Toggles are queued on the application loop; the response reports the
    request, not the repainted frame.
    """

    # Class-level references (set by create_server)
    app = None
    rate_limiter: Optional[RateLimiter] = None
    auth_credentials: Optional[tuple[str, str]] = None  # (user, pass)

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"{self.client_address[0]} - {format % args}")

    def _check_auth(self) -> bool:
        """Check basic auth if configured. Returns True if allowed."""
        if self.auth_credentials is None:
            return True

        auth_header = self.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Basic "):
            return False

        try:
            decoded = base64.b64decode(auth_header[6:]).decode("utf-8")
            user, password = decoded.split(":", 1)
            return (user, password) == self.auth_credentials
        except (ValueError, UnicodeDecodeError):
            return False

    def _send_unauthorized(self) -> None:
        self.send_response(401)
        self.send_header("WWW-Authenticate", 'Basic realm="H24 Watch"')
        self.send_header("Content-Type", "text/plain")
        self.end_headers()
        self.wfile.write(b"Unauthorized")

    def _send_rate_limited(self) -> None:
        self.send_response(429)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Retry-After", "1")
        self.end_headers()
        self.wfile.write(b"Too Many Requests")

    def _send_text(self, status: int, text: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.end_headers()
        self.wfile.write(text.encode("utf-8"))

    def _send_json(self, payload: dict) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_png(self, image_data: bytes) -> None:
        self.send_response(200)
        self.send_header("Content-Type", "image/png")
        self.send_header("Content-Length", str(len(image_data)))
        self.send_header("Cache-Control", "no-cache")
        self.end_headers()
        self.wfile.write(image_data)

    def do_GET(self) -> None:
        """Handle GET requests."""
        if self.rate_limiter and not self.rate_limiter.allow():
            self._send_rate_limited()
            return

        if not self._check_auth():
            self._send_unauthorized()
            return

        url = urlsplit(self.path)
        path = url.path.lower()
        query = parse_qs(url.query)

        if path == "/health":
            self._send_text(200, "OK")
            return

        if path not in APP_ENDPOINTS:
            self._send_text(404, "Not Found")
            return

        if self.app is None:
            self._send_text(503, "Watch face not initialized")
            return

        if path == "/screenshot":
            try:
                frame = self.app.render_screenshot()
                if frame is None:
                    self._send_text(503, "No frame available")
                    return
                buffer = BytesIO()
                frame.save(buffer, format="PNG")
                self._send_png(buffer.getvalue())
            except Exception as e:
                logger.error(f"Screenshot error: {e}")
                self._send_text(500, f"Error: {e}")

        elif path == "/status":
            self._send_json(self.app.status())

        elif path == "/dark":
            self._send_text(200, f"dark mode: {self.app.toggle_dark_mode()}")

        elif path == "/rotate":
            self._send_text(200, f"rotation: {self.app.rotate()}")

        elif path == "/details":
            self._send_text(200, f"details: {self.app.toggle_details()}")

        elif path == "/ambient":
            values = query.get("on")
            if not values:
                ambient = self.app.toggle_ambient()
            elif values[0].lower() in ("1", "true", "on"):
                ambient = self.app.set_ambient(True)
            elif values[0].lower() in ("0", "false", "off"):
                ambient = self.app.set_ambient(False)
            else:
                self._send_text(400, "Expected ?on=1 or ?on=0")
                return
            self._send_text(200, f"ambient: {ambient}")

        elif path == "/countdown":
            values = query.get("t")
            if not values or not values[0].strip():
                self.app.cancel_countdown()
                self._send_text(200, "countdown cancelled")
                return
            try:
                remaining = self.app.start_countdown(values[0])
            except CountdownParseError as e:
                self._send_text(400, str(e))
                return
            self._send_text(200, f"countdown: {remaining}")

        elif path == "/steps":
            values = query.get("n")
            try:
                total = int(values[0]) if values else -1
            except ValueError:
                total = -1
            if total < 0:
                self._send_text(400, "Expected ?n=<total steps>")
                return
            self.app.update_steps(total)
            self._send_text(200, f"steps: {total}")


def create_server(config: "HttpServerConfig", app) -> Optional[HTTPServer]:
    """
    Create and configure the HTTP server.

    Args:
        config: HTTP server configuration
        app: Running WatchFaceApp

    Returns:
        Configured HTTPServer, or None if disabled
    """
    if not config.enabled:
        logger.info("HTTP server disabled in config")
        return None

    WatchFaceHandler.app = app
    WatchFaceHandler.rate_limiter = RateLimiter(config.rate_limit_per_second)

    auth_user = os.environ.get("HTTP_AUTH_USER")
    auth_pass = os.environ.get("HTTP_AUTH_PASS")
    if auth_user and auth_pass:
        WatchFaceHandler.auth_credentials = (auth_user, auth_pass)
        logger.info("HTTP Basic Auth enabled")
    else:
        WatchFaceHandler.auth_credentials = None

    server = HTTPServer((config.bind_address, config.port), WatchFaceHandler)
    logger.info(f"HTTP server configured on {config.bind_address}:{config.port}")

    if config.bind_address == "0.0.0.0":
        logger.warning(
            "HTTP server bound to all interfaces (0.0.0.0). "
            "Consider using 127.0.0.1 for local-only access."
        )

    return server


def start_server_thread(server: HTTPServer) -> threading.Thread:
    """Run the HTTP server in a daemon thread."""
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info("HTTP server thread started")
    return thread
