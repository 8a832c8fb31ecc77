#!/usr/bin/env python3
"""
Asana MCP Server - STDIO Mode

Dispatch gateway for MCP clients (Claude Desktop, the asana-mcp CLI). Reads
newline-delimited JSON-RPC messages from stdin, answers each one on stdout,
and writes every diagnostic to stderr.

Requests are handled one at a time in arrival order: the read loop awaits the
response to one message before it reads the next, so responses always come
back in the order their requests were sent.
"""

import asyncio
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp.server.stdio import stdio_server
from mcp.shared.message import SessionMessage
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import (
    INTERNAL_ERROR,
    LATEST_PROTOCOL_VERSION,
    CallToolResult,
    ErrorData,
    Implementation,
    InitializeResult,
    JSONRPCError,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    ListToolsResult,
    ServerCapabilities,
    TextContent,
    ToolsCapability,
)

from asana_mcp import SERVER_NAME, __version__
from asana_mcp.asana_client import AsanaClient
from asana_mcp.config import Settings, configure_logging, load_settings
from asana_mcp.errors import GatewayError, InvalidArgumentsError, UnknownMethodError
from asana_mcp.tools import ToolContext, ToolRegistry, build_registry

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Manage Asana tasks, projects, sections and task dependencies. "
    "Dependency tools require a premium Asana account."
)


class GatewayState(str, Enum):
    IDLE = "idle"
    AWAITING_INVOCATION = "awaiting_invocation"
    DISPATCHING = "dispatching"
    RESPONDING = "responding"
    CLOSED = "closed"


class Gateway:
    """Routes JSON-RPC requests to registered tools and produces exactly one response per request."""

    def __init__(self, registry: ToolRegistry, context: ToolContext):
        self.registry = registry
        self.context = context
        self.state = GatewayState.IDLE

    async def serve(
        self,
        read_stream: MemoryObjectReceiveStream,
        write_stream: MemoryObjectSendStream,
    ) -> None:
        """Process messages until the inbound stream closes."""
        async with read_stream, write_stream:
            async for item in read_stream:
                if isinstance(item, Exception):
                    # Unparseable input never reaches the response channel
                    logger.warning(f"Discarding malformed message: {item}")
                    continue
                response = await self.handle_message(item.message)
                if response is not None:
                    self.state = GatewayState.RESPONDING
                    await write_stream.send(SessionMessage(response))
                if self.state is not GatewayState.IDLE:
                    self.state = GatewayState.AWAITING_INVOCATION
        self.state = GatewayState.CLOSED
        logger.info("Inbound stream closed, gateway stopped")

    async def handle_message(self, message: JSONRPCMessage) -> Optional[JSONRPCMessage]:
        root = message.root
        if isinstance(root, JSONRPCNotification):
            logger.debug(f"Received notification: {root.method}")
            return None
        if not isinstance(root, JSONRPCRequest):
            logger.debug(f"Ignoring unsolicited {type(root).__name__} (id={root.id})")
            return None

        if root.method == "tools/call":
            logger.debug(f"Received request {root.id}: tools/call {(root.params or {}).get('name')}")
        else:
            logger.debug(f"Received request {root.id}: {root.method}")
        try:
            result = await self._dispatch(root.method, root.params or {})
        except GatewayError as e:
            logger.info(f"Request {root.id} rejected: {e.message}")
            return self._error(root.id, e.to_error_data())
        except Exception as e:
            logger.exception(f"Unexpected error handling request {root.id} ({root.method})")
            return self._error(root.id, ErrorData(code=INTERNAL_ERROR, message=f"Internal error: {e}"))
        return JSONRPCMessage(JSONRPCResponse(jsonrpc="2.0", id=root.id, result=result))

    @staticmethod
    def _error(request_id: Any, error: ErrorData) -> JSONRPCMessage:
        return JSONRPCMessage(JSONRPCError(jsonrpc="2.0", id=request_id, error=error))

    async def _dispatch(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == "initialize":
            result = self._initialize(params)
        elif method == "ping":
            return {}
        elif method == "tools/list":
            result = ListToolsResult(tools=self.registry.list_tools())
        elif method == "tools/call":
            result = await self._call_tool(params)
        else:
            raise UnknownMethodError(method)
        return result.model_dump(by_alias=True, mode="json", exclude_none=True)

    def _initialize(self, params: dict[str, Any]) -> InitializeResult:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        client_info = params.get("clientInfo") or {}
        logger.info(f"Initializing session for {client_info.get('name', 'unknown client')} (protocol {version})")
        self.state = GatewayState.AWAITING_INVOCATION
        return InitializeResult(
            protocolVersion=version,
            capabilities=ServerCapabilities(tools=ToolsCapability(listChanged=False)),
            serverInfo=Implementation(name=SERVER_NAME, version=__version__),
            instructions=INSTRUCTIONS,
        )

    async def _call_tool(self, params: dict[str, Any]) -> CallToolResult:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidArgumentsError(str(name), ["name: a tool name is required"])
        content = await self.call_tool(name, params.get("arguments"))
        return CallToolResult(content=content, isError=False)

    async def call_tool(self, name: str, arguments: Any = None) -> list[TextContent]:
        """Validate and run one tool; raises UnknownToolError or InvalidArgumentsError before any remote call."""
        spec = self.registry.lookup(name)
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidArgumentsError(name, ["arguments: must be an object"])
        validated = spec.validate(arguments)
        self.state = GatewayState.DISPATCHING
        return await spec.invoke(self.context, validated)


def create_gateway(settings: Settings, client: Optional[AsanaClient] = None) -> Gateway:
    return Gateway(build_registry(), ToolContext(settings=settings, client=client))


async def run(settings: Settings) -> None:
    client = AsanaClient(settings) if settings.has_credentials else None
    if client is None:
        logger.warning(
            "No Asana access token found (ASANA_ACCESS_TOKEN, asana.token or ~/.asana.token); "
            "tools will return stub results"
        )
    else:
        logger.info(f"Asana client ready (token from {settings.token_source})")

    gateway = create_gateway(settings, client)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Asana MCP server running with stdio transport")
            logger.debug(f"Tools: {', '.join(gateway.registry)}")
            await gateway.serve(read_stream, write_stream)
    finally:
        if client is not None:
            await client.aclose()


def main() -> None:
    configure_logging(os.getenv("ASANA_MCP_LOG_LEVEL", "INFO"))
    try:
        settings = load_settings()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
