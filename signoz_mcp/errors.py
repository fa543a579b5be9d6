"""Exception types raised by the SigNoz MCP server.

Every error here is recoverable from the caller's point of view: FastMCP turns a
raised exception into an ``isError`` tool result, so the agent can read the
message and retry with corrected arguments.
"""

from typing import Any


class SignozMCPError(Exception):
    """Base class for all errors raised by signoz_mcp."""


class QueryValidationError(SignozMCPError):
    """A structured query is missing fields its signal and request type require."""


class ToolArgumentError(SignozMCPError):
    """A tool argument is missing or malformed.

    Messages always include a corrective example.
    """


class BackendError(SignozMCPError):
    """The SigNoz API answered with a non-2xx status or could not be reached."""

    def __init__(self, status_code: int | None, body: Any):
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"failed to reach SigNoz: {body}"
        else:
            message = f"unexpected status {status_code}: {body}"
        super().__init__(message)
