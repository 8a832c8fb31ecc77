"""
Invocation client: spawn the gateway over stdio and call one tool at a time.

Correlation ids come from the MCP ClientSession request counter, which is
monotonic for the lifetime of the session; each call waits for the response
carrying its own id or gives up after the configured timeout.
"""

import logging
import os
import subprocess
import sys
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError
from mcp.types import ErrorData, TextContent, Tool

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
SERVER_MODULE = "asana_mcp.server"


def get_real_python_path() -> str:
    """
    Interpreter used to launch the gateway child process.

    PYTHON_PATH wins when it names an existing file. Otherwise the running
    interpreter is used, except that a pyenv shim is swapped for the binary
    `pyenv which python3` reports, since desktop MCP clients spawn the
    gateway without the shell setup a shim depends on.
    """
    env_python = os.getenv("PYTHON_PATH")
    if env_python:
        python_path = Path(env_python).expanduser()
        if python_path.exists():
            return str(python_path.resolve())

    current_python = sys.executable

    if "pyenv" in current_python and "shims" in current_python:
        try:
            result = subprocess.run(
                ["pyenv", "which", "python3"],
                capture_output=True,
                text=True,
                check=True,
            )
            real_python = result.stdout.strip()
            if real_python and Path(real_python).exists():
                return real_python
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("pyenv lookup failed, using current interpreter")

    return current_python


def server_parameters(env: Optional[Mapping[str, str]] = None) -> StdioServerParameters:
    """Command line for launching the gateway as a child process."""
    # stdio_client only forwards a minimal environment unless told otherwise
    return StdioServerParameters(
        command=get_real_python_path(),
        args=["-m", SERVER_MODULE],
        env=dict(os.environ if env is None else env),
    )


@dataclass
class InvocationResult:
    """Outcome of one tool invocation: rendered text blocks or a protocol error."""

    tool: str
    texts: list[str] = field(default_factory=list)
    is_error: bool = False
    error: Optional[ErrorData] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        if self.error is not None:
            return self.error.message
        return "\n".join(self.texts)


class InvocationClient:
    """
    Async context manager around a gateway subprocess.

    Example:
        async with InvocationClient() as client:
            result = await client.invoke("list-tasks", {"projectId": "42"})
    """

    def __init__(
        self,
        params: Optional[StdioServerParameters] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.params = params or server_parameters()
        self.timeout = timeout
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "InvocationClient":
        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(stdio_client(self.params))
            session = await stack.enter_async_context(
                ClientSession(read_stream, write_stream, read_timeout_seconds=timedelta(seconds=self.timeout))
            )
            await session.initialize()
        except BaseException:
            await stack.aclose()
            raise
        self._stack = stack
        self._session = session
        logger.debug(f"Connected to gateway: {self.params.command} {' '.join(self.params.args)}")
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._stack is not None:
            await self._stack.aclose()
        self._stack = None
        self._session = None

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("InvocationClient is not connected")
        return self._session

    async def list_tools(self) -> list[Tool]:
        result = await self.session.list_tools()
        return list(result.tools)

    async def invoke(self, tool: str, arguments: Optional[Mapping[str, Any]] = None) -> InvocationResult:
        """Call a tool and wait for its result; unset (None) arguments are not sent."""
        payload = {key: value for key, value in (arguments or {}).items() if value is not None}
        logger.debug(f"Invoking {tool} with {payload}")
        try:
            result = await self.session.call_tool(tool, payload)
        except McpError as e:
            return InvocationResult(tool=tool, is_error=True, error=e.error)
        texts = [block.text for block in result.content if isinstance(block, TextContent)]
        return InvocationResult(tool=tool, texts=texts, is_error=bool(result.isError))


async def invoke(
    tool: str,
    arguments: Optional[Mapping[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    params: Optional[StdioServerParameters] = None,
) -> InvocationResult:
    """One-shot helper: start a gateway, run a single tool, shut the gateway down."""
    async with InvocationClient(params=params, timeout=timeout) as client:
        return await client.invoke(tool, arguments)
