from typing import Any, Callable, List

import httpx
import pytest

from bluum_mcp.adapter_bluum_rest import BluumRestClient
from bluum_mcp.config import BluumSettings

ACCOUNT_ID = "11111111-1111-1111-1111-111111111111"
POSITION_ID = "22222222-2222-2222-2222-222222222222"
ORDER_ID = "33333333-3333-3333-3333-333333333333"


class Upstream:
    """Fake Bluum API: records requests and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda req: httpx.Response(200, json={"ok": True})

    def reply(self, status: int = 200, **kwargs: Any) -> None:
        self.responder = lambda req: httpx.Response(status, **kwargs)

    def raise_(self, exc: Exception) -> None:
        def responder(req: httpx.Request) -> httpx.Response:
            raise exc
        self.responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def settings() -> BluumSettings:
    return BluumSettings(apiKey="key", apiSecret="secret")


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def client(settings: BluumSettings, upstream: Upstream) -> BluumRestClient:
    return BluumRestClient(settings, transport=httpx.MockTransport(upstream))
