"""
Streamable HTTP Transport Package

This package provides the JSON-RPC dispatcher, the session registry and a
client for MCP servers served over HTTP.

Usage:
    from searchmcp.streamable_http import (
        StreamableHttpConfig,
        StreamableHttpTransportBase,
        StreamableHttpClient,
    )

    # Server side
    transport = StreamableHttpTransportBase("my_tool", StreamableHttpConfig())
    response = await transport.handle_request(request_data)

    # Client side
    async with StreamableHttpClient() as client:
        tools = await client.list_tools()
"""

from .sessions import Session, SessionRegistry
from .streamable_http_base import (
    JSONRPC_VERSION,
    NOTIFICATION_CANCELLED,
    NOTIFICATION_INITIALIZED,
    PROTOCOL_VERSION,
    StreamableHttpConfig,
    StreamableHttpFraming,
    StreamableHttpTransportBase,
)
from .streamable_http_client import (
    ClientConfig,
    ClientError,
    ConnectionState,
    StreamableHttpClient,
)


__all__ = [
    # Base module exports
    "JSONRPC_VERSION",
    "NOTIFICATION_CANCELLED",
    "NOTIFICATION_INITIALIZED",
    "PROTOCOL_VERSION",
    "Session",
    "SessionRegistry",
    "StreamableHttpConfig",
    "StreamableHttpFraming",
    "StreamableHttpTransportBase",
    # Client module exports
    "ClientConfig",
    "ClientError",
    "ConnectionState",
    "StreamableHttpClient",
]
