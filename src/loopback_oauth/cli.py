import secrets
import sys

import click
from loguru import logger as log

from loopback_oauth.errors import ListenerStartupError
from loopback_oauth.listener import CallbackListener
from loopback_oauth.outcome import Success


def _configure_logging(debug: bool) -> None:
    log.remove()
    log.add(sys.stderr, level="DEBUG" if debug else "WARNING")


def _with_redirect_params(authorize_url: str, redirect_uri: str, state: str) -> str:
    from urllib.parse import urlencode

    params = urlencode({"redirect_uri": redirect_uri, "state": state})
    separator = "&" if "?" in authorize_url else "?"
    return f"{authorize_url}{separator}{params}"


@click.group()
def cli():
    """Receive OAuth2 authorization codes on a loopback redirect URI"""
    pass


@cli.command()
@click.option("--redirect-uri", "-r", required=True, help="Loopback URI the provider redirects to")
@click.option("--state", "-s", default=None, help="Expected state token (random if omitted)")
@click.option("--timeout", "-t", type=click.FloatRange(min=0), default=None, help="Seconds to wait for the callback")
@click.option("--authorize-url", "-a", default=None, help="Provider URL to open in a browser")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def listen(redirect_uri: str, state: str | None, timeout: float | None, authorize_url: str | None, debug: bool):
    """Wait for a single OAuth redirect and print the authorization code"""
    _configure_logging(debug)
    state = state or secrets.token_urlsafe(32)

    try:
        listener = CallbackListener(redirect_uri, state, timeout)
    except ListenerStartupError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    with listener:
        print(f"Redirect URI: {listener.redirect_uri}")
        print(f"State: {state}")

        if authorize_url is not None:
            import webbrowser

            login_url = _with_redirect_params(authorize_url, listener.redirect_uri, state)
            if not webbrowser.open(login_url):
                print("Please open the following URL in a browser to log in:")
                print()
                print(f"    {login_url}")
                print()

        outcome = listener.await_authorization_code()

    if isinstance(outcome, Success):
        print(outcome.code)
        return

    message = f"Login failed: {outcome.kind.value}"
    if outcome.detail:
        message += f" ({outcome.detail})"
    print(message, file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    cli()
