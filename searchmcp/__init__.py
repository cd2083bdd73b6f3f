"""
DuckDuckGo Search MCP Server Package

Exposes DuckDuckGo web search as the ``search_web`` tool over a JSON-RPC
(Model Context Protocol) endpoint.
"""

from .config import Config
from .errors import (
    ConfigError,
    ErrorKind,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    SearchMcpError,
    SearchTimeoutError,
    UpstreamFailureError,
)
from .duckduckgo_streamable import (
    SEARCH_TOOL_NAME,
    SERVER_NAME,
    DuckDuckGoSearchTransport,
    create_app,
)

__version__ = "1.0.0"
__all__ = [
    "Config",
    "ConfigError",
    "DuckDuckGoSearchTransport",
    "ErrorKind",
    "InternalError",
    "InvalidParamsError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "ParseError",
    "SEARCH_TOOL_NAME",
    "SERVER_NAME",
    "SearchMcpError",
    "SearchTimeoutError",
    "UpstreamFailureError",
    "create_app",
]
