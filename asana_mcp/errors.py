"""Error types shared by the Asana client, tool handlers and the gateway."""

from typing import Any, Optional

import httpx
from mcp.types import INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData


class AsanaMCPError(Exception):
    """Base class for all errors raised by this package."""


class GatewayError(AsanaMCPError):
    """
    A protocol-level failure.

    These are the only errors that reach the client as JSON-RPC error
    objects; everything else is rendered as text inside a tool result.
    """

    code: int = INVALID_PARAMS
    kind: str = "GatewayError"

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code, message=self.message, data={"error": self.kind, **self.data})


class UnknownToolError(GatewayError):
    code = METHOD_NOT_FOUND
    kind = "UnknownTool"

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}", {"tool": tool_name})
        self.tool_name = tool_name


class UnknownMethodError(GatewayError):
    code = METHOD_NOT_FOUND
    kind = "UnknownMethod"

    def __init__(self, method: str):
        super().__init__(f"Method not found: {method}", {"method": method})


class InvalidArgumentsError(GatewayError):
    code = INVALID_PARAMS
    kind = "InvalidArguments"

    def __init__(self, tool_name: str, problems: list[str]):
        super().__init__(
            f"Invalid arguments for tool {tool_name}: {'; '.join(problems)}",
            {"tool": tool_name, "problems": problems},
        )
        self.tool_name = tool_name
        self.problems = problems


class MissingConfigurationError(AsanaMCPError):
    """No id was passed for a resource and no default is configured."""

    def __init__(self, field: str, env_var: str):
        super().__init__(f"no {field} was given and {env_var} is not configured")
        self.field = field
        self.env_var = env_var


class RemoteServiceError(AsanaMCPError):
    """
    Asana answered with a non-2xx status, or could not be reached.

    Attributes:
        status: HTTP status code, or None when no response was received
        messages: Error messages reported by Asana (first one is the summary)
    """

    def __init__(self, status: Optional[int], messages: list[str]):
        self.status = status
        self.messages = messages or ["Unknown error"]
        super().__init__(str(self))

    @property
    def summary(self) -> str:
        return self.messages[0]

    def __str__(self) -> str:
        if self.status is None:
            return self.summary
        return f"Asana API Error ({self.status}): {self.summary}"

    @classmethod
    def from_response(cls, response: httpx.Response) -> "RemoteServiceError":
        messages: list[str] = []
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for error in body.get("errors") or []:
                if isinstance(error, dict) and error.get("message"):
                    messages.append(str(error["message"]))
        if not messages:
            messages = [response.text.strip() or response.reason_phrase or "Unknown error"]
        return cls(response.status_code, messages)


class PremiumRequiredError(RemoteServiceError):
    """402 from a dependency endpoint: the workspace is not on a premium plan."""

    def __str__(self) -> str:
        return (
            f"Asana API Error ({self.status}): {self.summary}. "
            "Task dependencies require a premium Asana account."
        )
