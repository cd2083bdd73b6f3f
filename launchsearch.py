#!/usr/bin/env python3
"""
DuckDuckGo Search MCP Server - Main Entry Point

Run the search server, or smoke-test a running one with ``--check``.
"""

import argparse
import asyncio
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Tuple

import httpx
import uvicorn

from searchmcp import Config, ConfigError, SEARCH_TOOL_NAME, create_app
from searchmcp.streamable_http import (
    PROTOCOL_VERSION,
    ClientConfig,
    NOTIFICATION_INITIALIZED,
    StreamableHttpClient,
)


logger = logging.getLogger("launchsearch")


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(config: Config, verbose: bool = False) -> None:
    """
    Set up logging configuration.

    Args:
        config: Configuration object
        verbose: Whether to enable verbose logging
    """
    log_level = logging.DEBUG if verbose else getattr(logging, config.get_log_level().upper(), logging.INFO)
    log_format = config.get_log_format()
    log_file = config.get_log_file()

    if log_format.lower() == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler with rotation
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="DuckDuckGo search MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python launchsearch.py
  python launchsearch.py --port 8080 --log-level debug
  python launchsearch.py --config config.json
  python launchsearch.py --check http://localhost:3000
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON configuration file"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Override server host address"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Override server port"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error", "critical"],
        default=None,
        help="Override log level"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--check",
        metavar="URL",
        nargs="?",
        const="http://localhost:3000",
        default=None,
        help="Smoke-test a running server instead of starting one"
    )

    return parser.parse_args(argv)


async def run_checks(base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
    """
    Run the smoke-test sequence against a running server.

    Args:
        base_url: Base URL of the server
        transport: Optional httpx transport (e.g. an in-process ASGI transport)

    Returns:
        Exit code (0 if every check passed)
    """
    client = StreamableHttpClient(ClientConfig(base_url=base_url, max_retries=0), transport=transport)
    results: List[Tuple[str, bool]] = []

    async def check(name: str, action: Callable[[], Awaitable[Any]]) -> None:
        logger.info(f"Testing: {name}")
        try:
            outcome = await action()
            logger.info(f"  OK: {str(outcome)[:200]}")
            results.append((name, True))
        except Exception as e:
            logger.error(f"  FAILED: {e}")
            results.append((name, False))

    try:
        await check("MCP Initialize", client.connect)
        await check("Health Check", lambda: client.get_json("/health"))
        await check("Server Info", lambda: client.get_json("/"))
        await check("Diagnostics", lambda: client.get_json("/test"))
        await check("MCP Tools List", client.list_tools)
        await check("MCP Search Tool", lambda: client.call_tool(
            SEARCH_TOOL_NAME, {"query": "test", "max_results": 2}
        ))
        await check("MCP Notification", lambda: client.send_notification(NOTIFICATION_INITIALIZED))
    finally:
        await client.disconnect()

    passed = sum(1 for _, ok in results if ok)
    failed = len(results) - passed
    logger.info(f"Passed: {passed}, Failed: {failed}, Total: {len(results)}")
    return 0 if failed == 0 else 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = parse_arguments(argv)

    try:
        config = Config(args.config)
        # Override config with CLI arguments
        config.apply_overrides(host=args.host, port=args.port, log_level=args.log_level)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, args.verbose)

    if args.check:
        return asyncio.run(run_checks(args.check))

    host = config.get_server_host()
    port = config.get_server_port()

    logger.info("DuckDuckGo Search MCP Server running")
    logger.info(f"Port: {port}")
    logger.info(f"MCP endpoint: http://localhost:{port}/mcp")
    logger.info(f"Health check: http://localhost:{port}/health")
    logger.info(f"Protocol version: {PROTOCOL_VERSION}")

    try:
        uvicorn.run(
            create_app(config),
            host=host,
            port=port,
            log_level=config.get_server_log_level(),
        )
    except KeyboardInterrupt:
        logger.info("Server shutting down gracefully...")
    except Exception as e:
        logger.exception(f"Server error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
