"""
DuckDuckGo Search MCP Server - Streamable HTTP Transport

Provides the ``search_web`` tool over a single JSON-RPC endpoint, backed by
DuckDuckGo's HTML search. No API key is required.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mcp.types import Tool

from .config import Config
from .errors import MethodNotFoundError, SearchMcpError
from .search import MAX_RESULTS_LIMIT, DEFAULT_MAX_RESULTS, DuckDuckGoSearchProvider
from .streamable_http import (
    PROTOCOL_VERSION,
    SessionRegistry,
    StreamableHttpConfig,
    StreamableHttpFraming,
    StreamableHttpTransportBase,
)


logger = logging.getLogger(__name__)


SERVER_NAME = "duckduckgo-search-mcp"
SERVER_VERSION = "1.0.0"
SEARCH_TOOL_NAME = "search_web"

SEARCH_TOOL = Tool(
    name=SEARCH_TOOL_NAME,
    description=(
        "Search the web using DuckDuckGo. Returns titles, URLs, and snippets from "
        "search results. Great for finding information, articles, news, and general "
        "web content."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to look up on DuckDuckGo",
            },
            "max_results": {
                "type": "integer",
                "description": "Maximum number of results to return (default: 5, max: 10)",
                "default": DEFAULT_MAX_RESULTS,
                "minimum": 1,
                "maximum": MAX_RESULTS_LIMIT,
            },
        },
        "required": ["query"],
    },
)


# ============================================================================
# DuckDuckGo Streamable HTTP Transport Implementation
# ============================================================================

class DuckDuckGoSearchTransport(StreamableHttpTransportBase):
    """
    Search MCP server implementation.

    Serves the single ``search_web`` tool and delegates calls to the
    DuckDuckGo search provider.
    """

    def __init__(
        self,
        provider: Optional[DuckDuckGoSearchProvider] = None,
        config: Optional[StreamableHttpConfig] = None,
        sessions: Optional[SessionRegistry] = None,
    ):
        """
        Initialize the search server.

        Args:
            provider: Optional search provider (a default one if not provided)
            config: Optional endpoint configuration
            sessions: Optional session registry
        """
        super().__init__(
            SERVER_NAME,
            config or StreamableHttpConfig(server_version=SERVER_VERSION),
            sessions,
        )
        self.provider = provider or DuckDuckGoSearchProvider()

    def list_tools(self) -> List[Dict[str, Any]]:
        """Return the ``search_web`` tool descriptor."""
        return [SEARCH_TOOL.model_dump(exclude_none=True)]

    async def call_tool(self, name: Any, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Run ``search_web``; any other tool name is unknown."""
        if name != SEARCH_TOOL_NAME:
            logger.error(f"Unknown tool: {name}")
            raise MethodNotFoundError.for_tool(name)

        result = await self.provider.search_web(arguments)
        return result.to_dict()

    async def aclose(self) -> None:
        await self.provider.aclose()


# ============================================================================
# FastAPI Application
# ============================================================================

def create_app(
    config: Optional[Config] = None,
    transport: Optional[DuckDuckGoSearchTransport] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Optional server configuration (loaded from the environment if not provided)
        transport: Optional pre-built transport, mainly for tests

    Returns:
        The configured application
    """
    config = config or Config()
    if transport is None:
        transport = DuckDuckGoSearchTransport(
            DuckDuckGoSearchProvider(config.get_search_provider_config())
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application lifespan events."""
        logger.info("DuckDuckGo search MCP server starting up...")
        yield
        logger.info("DuckDuckGo search MCP server shutting down...")
        await transport.aclose()

    app = FastAPI(
        title="DuckDuckGo Search MCP Server",
        description="Web search using DuckDuckGo - no API key required",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.transport = transport
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "Mcp-Session-Id"],
        allow_credentials=False,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every request and add keep-alive headers."""
        logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        response.headers["Connection"] = "keep-alive"
        response.headers["Keep-Alive"] = "timeout=5, max=100"
        return response

    @app.get("/")
    async def root():
        """Root endpoint with server information."""
        return {
            "name": "DuckDuckGo Search MCP Server",
            "version": SERVER_VERSION,
            "transport": "http",
            "status": "running",
            "description": "Web search using DuckDuckGo - no API key required",
            "protocolVersion": transport.config.protocol_version,
            "endpoints": {
                "mcp": transport.config.endpoint,
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sessions": transport.get_session_count(),
        }

    @app.get("/test")
    async def diagnostics():
        """Run side-effect free protocol checks through the dispatcher."""
        tests = []
        for request_id, method in enumerate(("ping", "tools/list"), 1):
            response = await transport.handle_request({
                "jsonrpc": "2.0",
                "id": request_id,
                "method": method,
                "params": {},
            })
            if response is not None and "result" in response:
                tests.append({"test": method, "status": "passed", "response": response["result"]})
            else:
                error = (response or {}).get("error", {})
                tests.append({"test": method, "status": "failed", "error": error.get("message")})

        return {
            "status": "diagnostics",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "tests": tests,
        }

    @app.post(transport.config.endpoint)
    async def handle_mcp_request(request: Request):
        """
        Handle a JSON-RPC request.

        Every JSON-RPC outcome, including errors, is sent with status 200;
        notifications get an empty 204.
        """
        body = await request.body()

        try:
            request_data = StreamableHttpFraming.decode_message(body, transport.config)
        except SearchMcpError as e:
            return JSONResponse(StreamableHttpFraming.create_error_response(None, e))

        response = await transport.handle_request(request_data)
        if response is None:
            return Response(status_code=204)

        return JSONResponse(response)

    return app


__all__ = [
    "PROTOCOL_VERSION",
    "SEARCH_TOOL",
    "SEARCH_TOOL_NAME",
    "SERVER_NAME",
    "SERVER_VERSION",
    "DuckDuckGoSearchTransport",
    "create_app",
]
