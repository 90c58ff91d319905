"""Per-request handling of the OAuth redirect.

Each inbound request is turned into a candidate outcome, offered to the
server's result slot, and answered according to whether it won the race.
"""

import hmac
import socket
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

from loguru import logger as log

from loopback_oauth.outcome import CallbackErrorKind, Failure, Outcome, Success
from loopback_oauth.slot import ResultSlot

_PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{title}</title>
  </head>
  <body>
    <div style="max-width: 640px; margin: 80px auto; font-family: system-ui, sans-serif;">
      <h1>{title}</h1>
      <p>{message}</p>
    </div>
  </body>
</html>
"""

SUCCESS_PAGE = _PAGE.format(
    title="Login successful",
    message="You can close this window and return to the terminal.",
)
FAILURE_PAGE = _PAGE.format(
    title="Login failed",
    message="The authorization response was received but could not be used. "
    "Return to the terminal for details.",
)
REJECTED_BODY = b"This authorization callback has already been handled."


def _first(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None


def _provider_error(params: dict[str, list[str]]) -> str | None:
    error = _first(params, "error")
    if error is None:
        return None
    description = _first(params, "error_description")
    return f"{error}: {description}" if description else error


def evaluate_callback(query: str, expected_state: str) -> Outcome:
    """Convert a redirect query string into a candidate outcome.

    The state check comes first: a request that cannot prove it belongs to
    this flow is rejected whatever else it carries.
    """
    params = parse_qs(query, keep_blank_values=True)

    state = _first(params, "state")
    if state is None or not hmac.compare_digest(state.encode(), expected_state.encode()):
        return Failure(CallbackErrorKind.STATE_MISMATCH, detail=_provider_error(params))

    code = _first(params, "code")
    if not code:
        return Failure(CallbackErrorKind.MISSING_AUTHORIZATION_CODE, detail=_provider_error(params))

    return Success(code)


class CallbackServer(ThreadingHTTPServer):
    """HTTP server carrying the state shared with its request handlers."""

    daemon_threads = True
    request_queue_size = 32

    def __init__(
        self,
        server_address: tuple[str, int],
        callback_path: str,
        expected_state: str,
        slot: ResultSlot,
    ):
        self.callback_path = callback_path
        self.expected_state = expected_state
        self.slot = slot
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(server_address, CallbackRequestHandler)


class CallbackRequestHandler(BaseHTTPRequestHandler):
    server: CallbackServer

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if (parsed.path or "/") != self.server.callback_path:
            self._respond(404, b"Not found", "text/plain")
            return

        candidate = evaluate_callback(parsed.query, self.server.expected_state)

        if not self.server.slot.try_complete(candidate):
            log.warning("Rejected authorization callback: a result was already recorded")
            self._respond(500, REJECTED_BODY, "text/plain")
            return

        if isinstance(candidate, Success):
            log.debug("Authorization code received")
            self._respond(200, SUCCESS_PAGE.encode("utf-8"), "text/html")
        else:
            log.warning(
                f"Authorization callback failed: {candidate.kind.value}"
                + (f" ({candidate.detail})" if candidate.detail else "")
            )
            self._respond(200, FAILURE_PAGE.encode("utf-8"), "text/html")

    def _respond(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", f"{content_type}; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        # Request lines carry the authorization code, keep only method and path
        path = urlparse(getattr(self, "path", "")).path
        log.debug(f"{self.address_string()} {self.command} {path}")
