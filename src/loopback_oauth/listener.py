"""Loopback listener for the redirect leg of an OAuth2 authorization code flow.

Typical use::

    with CallbackListener("http://127.0.0.1:8400/callback", state) as listener:
        webbrowser.open(authorize_url)
        outcome = listener.await_authorization_code()
"""

import threading
from urllib.parse import urlparse, urlunparse

from loguru import logger as log

from loopback_oauth.config import SETTINGS
from loopback_oauth.errors import ListenerStartupError
from loopback_oauth.handler import CallbackServer
from loopback_oauth.outcome import Outcome
from loopback_oauth.slot import ResultSlot


class CallbackListener:
    """Single-use HTTP listener bound to a redirect URI.

    The socket is bound and served on a background thread as soon as the
    instance is constructed. Only one outcome is ever delivered; callbacks
    arriving after it was recorded are answered with HTTP 500.
    """

    def __init__(self, redirect_uri: str, expected_state: str, timeout: float | None = None):
        """
        Args:
            redirect_uri: Absolute http URI the provider redirects to. Port 0
                binds an OS-assigned port, see ``redirect_uri``.
            expected_state: State token the callback must echo back verbatim.
            timeout: Seconds ``await_authorization_code`` waits by default.
                Falls back to ``SETTINGS.default_timeout``.

        Raises:
            ListenerStartupError: If the URI is unusable or the bind fails.
        """
        self._requested_uri = redirect_uri
        self._timeout = timeout
        self._slot = ResultSlot()
        self._closed = False
        self._close_lock = threading.Lock()

        parsed, host, port = _parse_redirect_uri(redirect_uri)

        try:
            self._server = CallbackServer(
                (host, port),
                callback_path=parsed.path or "/",
                expected_state=expected_state,
                slot=self._slot,
            )
        except OSError as e:
            raise ListenerStartupError(redirect_uri, e.strerror or str(e)) from e

        bound_port = self._server.server_address[1]
        self._redirect_uri = urlunparse(parsed._replace(netloc=f"{_host_as_written(parsed)}:{bound_port}"))

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": SETTINGS.poll_interval},
            name=f"oauth-callback-{bound_port}",
            daemon=True,
        )
        self._thread.start()
        log.info(f"Listening for OAuth callback on {self._redirect_uri}")

    @property
    def redirect_uri(self) -> str:
        """The redirect URI with the port actually bound."""
        return self._redirect_uri

    @property
    def closed(self) -> bool:
        return self._closed

    def await_authorization_code(self, timeout: float | None = None) -> Outcome:
        """Block until a callback is recorded or the timeout elapses.

        The countdown starts with this call. Once an outcome has been
        recorded, further calls return it immediately.

        Args:
            timeout: Seconds to wait, overriding the constructor's timeout.

        Returns:
            ``Success`` with the code, or ``Failure`` naming what went wrong.
        """
        if timeout is None:
            timeout = self._timeout if self._timeout is not None else SETTINGS.default_timeout
        return self._slot.wait(timeout)

    def close(self) -> None:
        """Stop serving and release the socket. Safe to call repeatedly."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        try:
            self._server.shutdown()
            self._server.server_close()
        except Exception as e:
            log.debug(f"Error while stopping OAuth callback listener: {e}")
        self._thread.join(timeout=5)
        log.info(f"Stopped OAuth callback listener on {self._redirect_uri}")

    def __enter__(self) -> "CallbackListener":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _parse_redirect_uri(redirect_uri: str):
    """Split a redirect URI into its parsed form, bind host and bind port."""
    parsed = urlparse(redirect_uri)

    if parsed.scheme != "http":
        raise ListenerStartupError(redirect_uri, f"unsupported scheme {parsed.scheme!r}, expected 'http'")
    if not parsed.hostname:
        raise ListenerStartupError(redirect_uri, "missing host")

    try:
        port = parsed.port
    except ValueError as e:
        raise ListenerStartupError(redirect_uri, str(e)) from e

    return parsed, parsed.hostname, 80 if port is None else port


def _host_as_written(parsed) -> str:
    """Host part of the netloc in the caller's spelling, brackets kept for IPv6."""
    host_port = parsed.netloc.rpartition("@")[2]
    if host_port.startswith("["):
        return host_port[: host_port.index("]") + 1]
    return host_port.partition(":")[0]
