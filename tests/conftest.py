"""Pytest fixtures: API payload builders, fake renderers and an app client."""

import json
from typing import Any, AsyncGenerator, Callable, Optional

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

from vxsharkey.services.misskey_client import MisskeyClient
from vxsharkey.services.preview_cards.card_service import PreviewCardService
from vxsharkey.services.preview_service import PreviewService
from vxsharkey.services.response_cache import ResponseCache

load_dotenv()

FAKE_PNG = b"\x89PNG\r\n\x1a\nfake-card"

ApiRoutes = dict[str, Any]


def user_payload(
    user_id: str = "u1",
    username: str = "alice",
    name: Optional[str] = "Alice",
    **extra: Any,
) -> dict[str, Any]:
    """Build a Misskey user object."""
    return {
        "id": user_id,
        "username": username,
        "host": None,
        "name": name,
        "avatarUrl": f"https://cdn.example.social/avatars/{user_id}.webp",
        **extra,
    }


def file_payload(index: int = 1, mime: str = "image/png", thumbnail: bool = True) -> dict[str, Any]:
    """Build a Misskey drive file object."""
    return {
        "id": f"f{index}",
        "name": f"file{index}.png",
        "type": mime,
        "url": f"https://cdn.example.social/files/{index}.png",
        "thumbnailUrl": f"https://cdn.example.social/thumbs/{index}.webp" if thumbnail else None,
        "isSensitive": False,
    }


def note_payload(
    note_id: str = "abc123",
    text: Optional[str] = "Hello <b>world</b>",
    files: Optional[list[dict[str, Any]]] = None,
    renote: Optional[dict[str, Any]] = None,
    user: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build a Misskey note object."""
    return {
        "id": note_id,
        "createdAt": "2024-05-01T12:00:00.000Z",
        "text": text,
        "cw": None,
        "user": user or user_payload(),
        "files": files or [],
        "renote": renote,
        "renoteCount": 2,
        "repliesCount": 1,
        "reactions": {"👍": 3},
        "visibility": "public",
    }


class FakeRasterizer:
    """Stands in for the browser: records calls and returns canned bytes."""

    def __init__(self, result: Optional[bytes] = FAKE_PNG, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls = 0
        self.last_html: Optional[str] = None
        self.closed = False

    async def rasterize(self, html: str) -> Optional[bytes]:
        self.calls += 1
        self.last_html = html
        if self.error is not None:
            raise self.error
        return self.result

    async def close(self) -> None:
        self.closed = True


class FakeMisskeyApi:
    """httpx MockTransport handler keyed by API path.

    Route values are either a JSON-serialisable body (answered with 200) or
    an ``httpx.Response``/exception instance used as-is.
    """

    def __init__(self, routes: ApiRoutes) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": {"code": "NO_SUCH_ENDPOINT"}})
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, content=json.dumps(route).encode(), headers={"Content-Type": "application/json"})

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


@pytest.fixture
def cache() -> ResponseCache:
    """A fresh cache per test."""
    return ResponseCache(max_size=50, ttl_seconds=60)


@pytest.fixture
def make_api() -> Callable[[ApiRoutes], FakeMisskeyApi]:
    return FakeMisskeyApi


@pytest.fixture
def build_client(cache: ResponseCache) -> Callable[[FakeMisskeyApi], MisskeyClient]:
    """Return a factory wiring a MisskeyClient to a fake API."""

    def _build(api: FakeMisskeyApi) -> MisskeyClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(api))
        return MisskeyClient(cache, http_client=http)

    return _build


@pytest.fixture
def rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture
def build_service(
    cache: ResponseCache,
    build_client: Callable[[FakeMisskeyApi], MisskeyClient],
    rasterizer: FakeRasterizer,
) -> Callable[..., PreviewService]:
    """Return a factory for a PreviewService backed by fakes."""

    def _build(
        api: FakeMisskeyApi,
        card_rasterizer: Optional[FakeRasterizer] = None,
        enabled: bool = True,
    ) -> PreviewService:
        cards = PreviewCardService(cache, card_rasterizer or rasterizer, enabled=enabled)
        return PreviewService(build_client(api), cards, site_name="vxsharkey")

    return _build


@pytest_asyncio.fixture()
async def make_app_client() -> AsyncGenerator[Callable[[PreviewService], AsyncClient], None]:
    """Provide HTTP clients for a fresh app wired to a given PreviewService."""
    from vxsharkey.main import create_app

    clients: list[AsyncClient] = []

    def _make(service: PreviewService) -> AsyncClient:
        app = create_app()
        app.state.preview_service = service
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    try:
        yield _make
    finally:
        for client in clients:
            await client.aclose()
