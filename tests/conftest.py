import httpx
import pytest
from fastapi.testclient import TestClient

from unisaver.main import app
from unisaver.core.config import settings
from unisaver.services import fetch, ytdl


class _StreamedBody(httpx.AsyncByteStream):
    """Un-read body so the app can stream it (``content=`` would be pre-read by httpx)."""

    def __init__(self, data: bytes):
        self.data = data

    async def __aiter__(self):
        yield self.data


class MockWeb:
    """Canned upstream responses keyed by URL prefix, served through httpx.MockTransport."""

    def __init__(self):
        self.routes = []
        self.requests = []

    def add(self, prefix, status=200, method=None, **kwargs):
        self.routes.append((prefix, method, status, kwargs))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, method, status, kwargs in self.routes:
            if str(request.url).startswith(prefix) and (method is None or method == request.method):
                if callable(kwargs.get("respond")):
                    return kwargs["respond"](request)
                if "content" in kwargs:
                    kwargs = dict(kwargs)
                    data = kwargs.pop("content")
                    data = data.encode() if isinstance(data, str) else data
                    headers = {"Content-Length": str(len(data)), **kwargs.pop("headers", {})}
                    return httpx.Response(status, headers=headers, stream=_StreamedBody(data), **kwargs)
                return httpx.Response(status, **kwargs)
        return httpx.Response(404, text="not found")

    def client(self, **kwargs):
        kwargs.setdefault("follow_redirects", True)
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), **kwargs)


@pytest.fixture
def web(monkeypatch):
    mock = MockWeb()
    monkeypatch.setattr(fetch, "client", mock.client)
    return mock


@pytest.fixture
def fake_ytdl(monkeypatch):
    """Replace yt-dlp with a stub; assign ``.info`` or ``.error`` before use."""

    class FakeYtdl:
        info = None
        error = None
        calls = []

        async def __call__(self, url, **kwargs):
            self.calls.append((url, kwargs))
            if self.error is not None:
                raise self.error
            return self.info

    stub = FakeYtdl()
    stub.calls = []
    monkeypatch.setattr(ytdl, "extract_info", stub)
    return stub


@pytest.fixture
def strict(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_VALIDATE", True)


@pytest.fixture
def client():
    return TestClient(app)
