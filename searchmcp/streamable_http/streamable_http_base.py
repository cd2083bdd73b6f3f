"""
Streamable HTTP Base Implementation

This module provides the JSON-RPC dispatcher used by the MCP server. It
validates the request envelope, separates notifications from requests, routes
by method name and turns every failure into a JSON-RPC error object. The HTTP
layer hands it a parsed request body and sends back whatever it returns.
"""

import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    SearchMcpError,
)
from .sessions import SessionRegistry


# Configure logging
logger = logging.getLogger(__name__)


JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

NOTIFICATION_INITIALIZED = "notifications/initialized"
NOTIFICATION_CANCELLED = "notifications/cancelled"

RequestId = Union[str, int, float]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number not allowed: {name}")


@dataclass
class StreamableHttpConfig:
    """Configuration for the JSON-RPC endpoint."""

    # Endpoint path
    endpoint: str = "/mcp"
    encoding: str = "utf-8"

    # Advertised in the initialize result
    protocol_version: str = PROTOCOL_VERSION
    server_version: str = "1.0.0"

    # Error handling
    include_stack_traces: bool = False
    max_error_message_length: int = 1000


class StreamableHttpFraming:
    """Encoding and decoding of JSON-RPC messages on the wire."""

    @staticmethod
    def decode_message(data: Union[bytes, str], config: StreamableHttpConfig) -> Any:
        """
        Decode a request body.

        Args:
            data: The raw request body
            config: Configuration for the text encoding

        Returns:
            The decoded JSON value

        Raises:
            ParseError: If the body is not valid JSON or uses NaN/Infinity
        """
        try:
            if isinstance(data, bytes):
                data = data.decode(config.encoding)
            return json.loads(data.strip(), parse_constant=_reject_constant)
        except (UnicodeDecodeError, ValueError) as e:
            logger.error(f"Failed to decode message: {e}")
            raise ParseError(data=str(e))

    @staticmethod
    def create_response(request_id: Optional[RequestId], result: Dict[str, Any]) -> Dict[str, Any]:
        """Create a JSON-RPC success response."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "result": result,
        }

    @staticmethod
    def create_error_response(request_id: Optional[RequestId], error: SearchMcpError) -> Dict[str, Any]:
        """Create a JSON-RPC error response."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "error": error.to_error_object(),
        }


Handler = Callable[[Any], Awaitable[Dict[str, Any]]]


class StreamableHttpTransportBase:
    """
    Base class for a JSON-RPC MCP server.

    This class implements the protocol methods shared by every tool server
    (``initialize``, ``tools/list``, ``tools/call``, ``ping``). Subclasses
    provide the tool list and the tool call implementation.
    """

    def __init__(
        self,
        server_name: str,
        config: Optional[StreamableHttpConfig] = None,
        sessions: Optional[SessionRegistry] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            server_name: Name reported in ``serverInfo``
            config: Optional configuration (uses defaults if not provided)
            sessions: Optional session registry (a new one if not provided)
        """
        self.server_name = server_name
        self.config = config or StreamableHttpConfig()
        self.sessions = sessions if sessions is not None else SessionRegistry()

        self._methods: Dict[str, Handler] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tool_call,
            "ping": self._handle_ping,
        }

        logger.info(f"StreamableHttpTransport initialized for '{server_name}'")

    async def handle_request(self, request_data: Any) -> Optional[Dict[str, Any]]:
        """
        Handle one parsed JSON-RPC message.

        Args:
            request_data: Parsed JSON-RPC request or notification

        Returns:
            The response dictionary, or None for a notification
        """
        request_id = request_data.get("id") if isinstance(request_data, dict) else None
        if not self._is_valid_id(request_id):
            logger.warning(f"Invalid JSON-RPC id: {request_id!r}")
            return StreamableHttpFraming.create_error_response(
                None, InvalidRequestError("Invalid Request: id must be a string or number")
            )

        if not self._validate_request(request_data):
            logger.warning(f"Invalid JSON-RPC envelope: {request_data!r}")
            return StreamableHttpFraming.create_error_response(request_id, InvalidRequestError())

        method = request_data["method"]
        params = request_data.get("params")

        if request_id is None:
            await self._handle_notification(method, params)
            return None

        logger.info(f"Processing JSON-RPC request: method={method}, id={request_id}")
        start_time = time.monotonic()

        try:
            result = await self._dispatch(method, params)
        except SearchMcpError as e:
            logger.warning(f"Request {request_id} ({method}) failed with {e.code}: {e.message}")
            return StreamableHttpFraming.create_error_response(request_id, e)
        except Exception as e:
            logger.exception(f"Error processing request {request_id} ({method}): {e}")
            return StreamableHttpFraming.create_error_response(request_id, self._internal_error(e))

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.info(f"Completed {method} in {elapsed_ms:.0f}ms")
        return StreamableHttpFraming.create_response(request_id, result)

    async def _dispatch(self, method: str, params: Any) -> Dict[str, Any]:
        handler = self._methods.get(method)
        if handler is None:
            raise MethodNotFoundError.for_method(method)
        return await handler(params)

    async def _handle_notification(self, method: str, params: Any) -> None:
        """Acknowledge a notification; notifications never produce a response."""
        if method == NOTIFICATION_INITIALIZED:
            logger.info("Client initialized successfully")
        elif method == NOTIFICATION_CANCELLED:
            # In-flight calls are not interrupted
            logger.info("Request cancelled by client")
        else:
            logger.info(f"Notification received: {method}")

    async def _handle_initialize(self, params: Any) -> Dict[str, Any]:
        """Handle initialize request."""
        session_id = await self.sessions.create()

        client_info = params.get("clientInfo") if isinstance(params, dict) else None
        logger.info(f"Initialized session {session_id} for client {client_info or 'unknown'}")

        return {
            "protocolVersion": self.config.protocol_version,
            "capabilities": {
                "tools": {},
            },
            "serverInfo": {
                "name": self.server_name,
                "version": self.config.server_version,
            },
        }

    async def _handle_tools_list(self, params: Any) -> Dict[str, Any]:
        """Handle tools/list request."""
        return {
            "tools": self.list_tools(),
        }

    async def _handle_tool_call(self, params: Any) -> Dict[str, Any]:
        """Handle tools/call request."""
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidParamsError("Invalid params: params must be an object")

        tool_name = params.get("name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}

        logger.info(f"Tool call: {tool_name} with arguments: {arguments}")
        return await self.call_tool(tool_name, arguments)

    async def _handle_ping(self, params: Any) -> Dict[str, Any]:
        """Handle ping request."""
        return {}

    def list_tools(self) -> List[Dict[str, Any]]:
        """Tool descriptors served by ``tools/list``; subclasses override this."""
        return []

    async def call_tool(self, name: Any, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool; subclasses override this."""
        raise MethodNotFoundError.for_tool(name)

    def _validate_request(self, request_data: Any) -> bool:
        """Validate a JSON-RPC request envelope."""
        if not isinstance(request_data, dict):
            return False

        if request_data.get("jsonrpc") != JSONRPC_VERSION:
            return False

        if not isinstance(request_data.get("method"), str):
            return False

        if not isinstance(request_data.get("params"), (dict, list, type(None))):
            return False

        return True

    @staticmethod
    def _is_valid_id(request_id: Any) -> bool:
        if request_id is None:
            return True
        if isinstance(request_id, bool):
            return False
        if isinstance(request_id, float):
            return math.isfinite(request_id)
        return isinstance(request_id, (str, int))

    def _internal_error(self, error: Exception) -> InternalError:
        data = None
        if self.config.include_stack_traces:
            data = str(error)[: self.config.max_error_message_length]
        return InternalError(data=data)

    def get_session_count(self) -> int:
        """Get the number of sessions created so far."""
        return self.sessions.size()


# Export symbols
__all__ = [
    "JSONRPC_VERSION",
    "PROTOCOL_VERSION",
    "NOTIFICATION_INITIALIZED",
    "NOTIFICATION_CANCELLED",
    "StreamableHttpConfig",
    "StreamableHttpFraming",
    "StreamableHttpTransportBase",
]
