"""
Streamable HTTP Client Utilities

This module provides a small JSON-RPC client for talking to the search MCP
server over HTTP. It is used by the smoke test in ``launchsearch.py`` and by
the integration tests.
"""

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from ..errors import SearchMcpError
from .streamable_http_base import JSONRPC_VERSION, NOTIFICATION_INITIALIZED, PROTOCOL_VERSION


# Configure logging
logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class ClientError(SearchMcpError):
    """Error reported by the server or raised while talking to it."""

    def __init__(self, code: int, message: str, data: Any = None):
        self._code = code
        super().__init__(message, data)

    @property
    def code(self) -> int:
        return self._code

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "ClientError":
        error = response.get("error") or {}
        return cls(
            error.get("code", -32603),
            error.get("message", "Unknown error"),
            error.get("data"),
        )


@dataclass
class ClientConfig:
    """Configuration for the Streamable HTTP client."""

    # Server connection
    base_url: str = "http://localhost:3000"
    endpoint: str = "/mcp"

    # Timeout settings
    request_timeout: float = 30.0
    connection_timeout: float = 10.0

    # Retry settings
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_multiplier: float = 2.0

    # Headers
    headers: Dict[str, str] = field(default_factory=lambda: {
        "Content-Type": "application/json",
        "Accept": "application/json",
    })

    client_name: str = "searchmcp-client"
    client_version: str = "1.0.0"


class StreamableHttpClient:
    """
    Client for communicating with the search MCP server.

    This client provides methods for sending requests and notifications,
    listing tools and calling them.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Optional client configuration
            transport: Optional httpx transport (e.g. an in-process ASGI transport)
        """
        self.config = config or ClientConfig()
        self._transport = transport
        self._state = ConnectionState.DISCONNECTED
        self._http_client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)
        self.server_info: Dict[str, Any] = {}

        logger.info(f"StreamableHttpClient initialized for {self.config.base_url}")

    async def __aenter__(self) -> "StreamableHttpClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def connect(self) -> Dict[str, Any]:
        """
        Open the HTTP client and perform the initialize handshake.

        Returns:
            The server's initialize result

        Raises:
            ClientError: If the handshake fails
        """
        self._state = ConnectionState.CONNECTING

        self._http_client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(
                self.config.request_timeout,
                connect=self.config.connection_timeout,
            ),
            headers=self.config.headers,
            transport=self._transport,
        )

        try:
            self.server_info = await self._call("initialize", {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {
                    "name": self.config.client_name,
                    "version": self.config.client_version,
                },
            })
            await self.send_notification(NOTIFICATION_INITIALIZED)
        except Exception:
            await self.disconnect()
            raise

        self._state = ConnectionState.CONNECTED
        logger.info(f"Connected to {self.config.base_url}")
        return self.server_info

    async def disconnect(self) -> None:
        """Disconnect from the server."""
        self._state = ConnectionState.CLOSING

        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

        self._state = ConnectionState.DISCONNECTED
        logger.info("Disconnected from server")

    async def send_request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        request_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Send a JSON-RPC request and return the raw response.

        Args:
            method: JSON-RPC method name
            params: Optional parameters for the method
            request_id: Optional request ID (auto-generated if not provided)

        Returns:
            JSON-RPC response dictionary
        """
        request = {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id if request_id is not None else next(self._ids),
            "method": method,
            "params": params or {},
        }

        response = await self._post(request)
        return self._decode(response)

    async def send_notification(self, method: str, params: Optional[Dict[str, Any]] = None) -> int:
        """
        Send a JSON-RPC notification.

        Returns:
            The HTTP status code (the server answers notifications without a body)
        """
        notification = {
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
            "params": params or {},
        }
        response = await self._post(notification)
        return response.status_code

    async def ping(self) -> Dict[str, Any]:
        return await self._call("ping")

    async def list_tools(self) -> List[Dict[str, Any]]:
        """
        List available tools from the server.

        Returns:
            List of tool definitions
        """
        result = await self._call("tools/list")
        return result.get("tools", [])

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Call a tool on the server.

        Args:
            name: Tool name
            arguments: Optional tool arguments

        Returns:
            The tool result

        Raises:
            ClientError: If the server answers with an error
        """
        return await self._call("tools/call", {
            "name": name,
            "arguments": arguments or {},
        })

    async def get_json(self, path: str) -> Any:
        """GET one of the server's informational endpoints (``/``, ``/health``, ``/test``)."""
        response = await self._with_retries(lambda: self._require_client().get(path))
        return self._decode(response)

    async def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self.send_request(method, params)
        if "error" in response:
            raise ClientError.from_response(response)
        return response.get("result", {})

    async def _post(self, message: Dict[str, Any]) -> httpx.Response:
        client = self._require_client()
        return await self._with_retries(
            lambda: client.post(self.config.endpoint, json=message)
        )

    async def _with_retries(self, send) -> httpx.Response:
        retry_count = 0
        while True:
            try:
                response = await send()
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                raise ClientError(-32603, f"HTTP error: {e.response.status_code}", str(e))
            except httpx.RequestError as e:
                if retry_count >= self.config.max_retries:
                    raise ClientError(-32603, f"Request error: {e}")
                delay = self.config.retry_delay * (self.config.backoff_multiplier ** retry_count)
                logger.warning(f"Request failed (attempt {retry_count + 1}), retrying in {delay}s: {e}")
                await asyncio.sleep(delay)
                retry_count += 1

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ClientError(-32700, f"Failed to decode response: {e}")

    def _require_client(self) -> httpx.AsyncClient:
        if not self._http_client:
            raise ClientError(-32603, "HTTP client not initialized")
        return self._http_client

    @property
    def state(self) -> ConnectionState:
        """Get the current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if connected to the server."""
        return self._state == ConnectionState.CONNECTED


# Export symbols
__all__ = [
    "ClientConfig",
    "ClientError",
    "ConnectionState",
    "StreamableHttpClient",
]
