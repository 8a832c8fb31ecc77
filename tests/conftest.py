"""
Test configuration and fixtures for the Asana MCP tests.

Provides:
- Settings with a fake token and default project/workspace ids
- FakeAsana: an httpx.MockTransport that records requests and serves canned responses
- AsanaClient, ToolContext and Gateway fixtures wired to FakeAsana
"""

import json
import logging
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio

from asana_mcp.asana_client import AsanaClient
from asana_mcp.config import Settings
from asana_mcp.server import Gateway
from asana_mcp.tools import ToolContext, build_registry

logger = logging.getLogger(__name__)

API_PREFIX = "/api/1.0"


class FakeAsana:
    """
    Route table keyed by (method, raw path below /api/1.0); unknown routes answer 404.

    Paths are matched still percent-encoded, so an escaped id such as
    "..%2Fprojects%2F555" never matches "/projects/555".
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}

    def add(self, method: str, path: str, status: int = 200, json_body: Any = None) -> None:
        self.routes[(method, path)] = (status, json_body)

    def error(self, method: str, path: str, status: int, message: str) -> None:
        self.add(method, path, status, {"errors": [{"message": message}]})

    @staticmethod
    def raw_path(request: httpx.Request) -> str:
        return request.url.raw_path.decode("ascii").split("?", 1)[0]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = self.raw_path(request)
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"errors": [{"message": "Not Found"}]})
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def body(self, request: Optional[httpx.Request] = None) -> Any:
        request = request or self.last_request
        return json.loads(request.content) if request.content else None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        access_token="test-token",
        token_source="env",
        default_project_id="999",
        default_workspace_id="111",
    )


@pytest.fixture
def bare_settings() -> Settings:
    """Authenticated, but with no default project or workspace configured."""
    return Settings(access_token="test-token", token_source="env")


@pytest.fixture
def fake_asana() -> FakeAsana:
    return FakeAsana()


@pytest_asyncio.fixture
async def asana_client(settings: Settings, fake_asana: FakeAsana):
    client = AsanaClient(settings, transport=fake_asana.transport)
    yield client
    await client.aclose()


@pytest.fixture
def context(settings: Settings, asana_client: AsanaClient) -> ToolContext:
    return ToolContext(settings=settings, client=asana_client)


@pytest.fixture
def stub_context(settings: Settings) -> ToolContext:
    return ToolContext(settings=settings, client=None)


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def gateway(registry, context: ToolContext) -> Gateway:
    return Gateway(registry, context)
