"""
Error definitions for the DuckDuckGo search MCP server.

This module defines the tagged error taxonomy used across the server. Each
error kind carries a fixed JSON-RPC code; components raise the typed error
where the failure is first observed and the dispatcher is the only place that
turns it into a wire-level error object.
"""

from enum import Enum
from typing import Any, Dict, Optional

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)


# Application error code for search failures (timeout and upstream errors)
SEARCH_ERROR = -32000


class ErrorKind(Enum):
    """Error taxonomy with the JSON-RPC code for each kind."""
    PARSE_ERROR = PARSE_ERROR
    INVALID_REQUEST = INVALID_REQUEST
    METHOD_NOT_FOUND = METHOD_NOT_FOUND
    INVALID_PARAMS = INVALID_PARAMS
    INTERNAL_ERROR = INTERNAL_ERROR
    TIMEOUT = "timeout"
    UPSTREAM_FAILURE = "upstream_failure"

    @property
    def code(self) -> int:
        """JSON-RPC error code for this kind."""
        if self in (ErrorKind.TIMEOUT, ErrorKind.UPSTREAM_FAILURE):
            return SEARCH_ERROR
        return self.value


class SearchMcpError(Exception):
    """Base exception for all errors that map to a JSON-RPC error object."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, data: Any = None):
        """
        Initialize the error.

        Args:
            message: Error message sent to the caller verbatim
            data: Optional additional error data
        """
        self.message = message
        self.data = data
        super().__init__(message)

    @property
    def code(self) -> int:
        return self.kind.code

    def to_error_object(self) -> Dict[str, Any]:
        """Render the JSON-RPC error object for this error."""
        error: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            error["data"] = self.data
        return error


class ParseError(SearchMcpError):
    """Request body is not valid JSON."""

    kind = ErrorKind.PARSE_ERROR

    def __init__(self, message: str = "Parse error", data: Any = None):
        super().__init__(message, data)


class InvalidRequestError(SearchMcpError):
    """Envelope is not a valid JSON-RPC 2.0 request."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str = "Invalid Request: jsonrpc must be 2.0", data: Any = None):
        super().__init__(message, data)


class MethodNotFoundError(SearchMcpError):
    """Unknown method or unknown tool."""

    kind = ErrorKind.METHOD_NOT_FOUND

    @classmethod
    def for_method(cls, method: Any) -> "MethodNotFoundError":
        return cls(f"Method not found: {method}")

    @classmethod
    def for_tool(cls, tool_name: Any) -> "MethodNotFoundError":
        return cls(f"Unknown tool: {tool_name}")


class InvalidParamsError(SearchMcpError):
    """Missing or invalid method parameters."""

    kind = ErrorKind.INVALID_PARAMS


class SearchTimeoutError(SearchMcpError):
    """The search engine did not answer within the deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str = "Search timeout: DuckDuckGo took too long to respond",
        data: Any = None,
    ):
        super().__init__(message, data)


class UpstreamFailureError(SearchMcpError):
    """The search engine answered with an error or the transport failed."""

    kind = ErrorKind.UPSTREAM_FAILURE

    def __init__(self, reason: str, data: Any = None):
        """
        Initialize the upstream failure.

        Args:
            reason: Underlying failure, embedded in the message
            data: Optional additional error data
        """
        self.reason = reason
        super().__init__(f"Search failed: {reason}", data)


class InternalError(SearchMcpError):
    """Uncaught fault inside a handler."""

    kind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str = "Internal error", data: Any = None):
        super().__init__(message, data)


class ConfigError(Exception):
    """Error in configuration."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error (optional)
        """
        self.message = message
        self.config_key = config_key
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with config key if available."""
        if self.config_key:
            return f"{self.message} (config: {self.config_key})"
        return self.message


__all__ = [
    "SEARCH_ERROR",
    "ErrorKind",
    "SearchMcpError",
    "ParseError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "SearchTimeoutError",
    "UpstreamFailureError",
    "InternalError",
    "ConfigError",
]
