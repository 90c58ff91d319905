import secrets
from concurrent.futures import Future, ThreadPoolExecutor

import pytest
import requests

from loopback_oauth.listener import CallbackListener

LOOPBACK_URI = "http://127.0.0.1:0/callback"


@pytest.fixture
def state() -> str:
    return secrets.token_urlsafe(16)


@pytest.fixture
def authorization_code() -> str:
    return secrets.token_hex(10)


@pytest.fixture
def listener(state):
    with CallbackListener(LOOPBACK_URI, state, timeout=5) as listener:
        yield listener


@pytest.fixture
def executor():
    with ThreadPoolExecutor(max_workers=16) as pool:
        yield pool


def call_back(uri: str, code: str | None, state: str | None) -> requests.Response:
    """Simulate the provider redirecting the browser to uri."""
    params = {}
    if code is not None:
        params["code"] = code
    if state is not None:
        params["state"] = state
    params["scope"] = "openid offline"
    return requests.get(uri, params=params, timeout=5)


def invoke_callback(pool: ThreadPoolExecutor, uri: str, code: str | None, state: str | None) -> Future:
    return pool.submit(call_back, uri, code, state)
