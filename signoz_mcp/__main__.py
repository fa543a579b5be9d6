"""MCP server for SigNoz.

This module wires the SigNoz tools into a FastMCP server, allowing agents to
query logs, traces, metrics, alerts and dashboards from a SigNoz instance over
stdio or streamable HTTP.
"""

import argparse
import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from signoz_mcp import __version__
from signoz_mcp.cache import ClientCache
from signoz_mcp.client import SigNozClient
from signoz_mcp.tools import TOOLS, MCPState

SERVER_NAME = "SigNozMCP"
TRANSPORTS = ("stdio", "http")

# Set up logging with rotation
LOG_FILE = Path(os.getenv("SIGNOZ_MCP_LOG_FILE", "/tmp/signoz_mcp.log")).expanduser()
LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

file_handler = RotatingFileHandler(
    LOG_FILE,
    maxBytes=10 * 1024 * 1024,  # 10 MB
    backupCount=5,
    encoding="utf-8",
)

formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
file_handler.setFormatter(formatter)


def configure_logging(log_level: str, log_to_console: bool) -> logging.Logger:
    """Configure application logging based on CLI flags."""
    level = logging.getLevelName(log_level.upper()) if isinstance(log_level, str) else logging.INFO
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    file_handler.setLevel(level)
    root_logger.addHandler(file_handler)

    if log_to_console:
        # stdout carries the stdio protocol, so console logs go to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    return logging.getLogger("signoz_mcp")


logger = logging.getLogger("signoz_mcp")


def _truthy(value: str | None) -> bool:
    return (value or "").lower() in {"1", "true", "yes"}


def _load_env_file(env_path: Path | None = None) -> None:
    """Load environment variables from a `.env` file if present."""
    if env_path is None:
        env_path = Path(__file__).resolve().parent.parent / ".env"

    if not env_path.exists() or not env_path.is_file():
        return

    try:
        with env_path.open("r", encoding="utf-8") as env_file:
            for line in env_file:
                stripped = line.strip()
                if not stripped or stripped.startswith("#") or "=" not in stripped:
                    continue
                key, value = stripped.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key and key not in os.environ:
                    os.environ[key] = value
    except OSError as exc:
        logger.warning(f"Unable to load environment file {env_path}: {exc}")


def _read_env_defaults() -> dict[str, Any]:
    """Read environment defaults used by the CLI."""
    port = os.getenv("MCP_SERVER_PORT", "8000")
    cache_size = os.getenv("SIGNOZ_MCP_CLIENT_CACHE_SIZE", "0")
    return {
        "url": os.getenv("SIGNOZ_URL"),
        "api_key": os.getenv("SIGNOZ_API_KEY"),
        "transport": (os.getenv("TRANSPORT_MODE") or "stdio").lower(),
        "host": os.getenv("MCP_SERVER_HOST", "127.0.0.1"),
        "port": int(port) if port.isdigit() else 0,
        "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
        "log_to_console": _truthy(os.getenv("SIGNOZ_MCP_LOG_TO_CONSOLE")),
        "client_cache_size": int(cache_size) if cache_size.isdigit() else 0,
        "signoz_prefix": _truthy(os.getenv("SIGNOZ_TOOL_PREFIX")),
    }


def _build_arg_parser(env_defaults: dict[str, Any]) -> argparse.ArgumentParser:
    """Construct the CLI argument parser using provided defaults."""
    parser = argparse.ArgumentParser(description="SigNoz MCP Server")
    parser.add_argument("--url", type=str, default=env_defaults["url"], help="SigNoz base URL (SIGNOZ_URL)")
    parser.add_argument(
        "--api-key",
        type=str,
        default=env_defaults["api_key"],
        help="SigNoz API key (SIGNOZ_API_KEY). Optional in http mode, where callers send their own.",
    )
    parser.add_argument(
        "--transport",
        type=str,
        default=env_defaults["transport"],
        choices=TRANSPORTS,
        help="MCP transport (TRANSPORT_MODE, defaults to stdio).",
    )
    parser.add_argument("--host", type=str, default=env_defaults["host"], help="Bind address in http mode")
    parser.add_argument("--port", type=int, default=env_defaults["port"], help="Listen port in http mode (MCP_SERVER_PORT)")
    parser.add_argument(
        "--client-cache-size",
        type=int,
        default=env_defaults["client_cache_size"],
        help="Maximum number of per-credential clients kept in memory; 0 keeps all of them.",
    )
    parser.add_argument(
        "--signoz-prefix",
        action="store_true",
        default=env_defaults["signoz_prefix"],
        help="Register every tool as signoz_<name>.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=env_defaults["log_level"],
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (LOG_LEVEL, defaults to INFO).",
    )
    parser.add_argument(
        "--log-to-console",
        action="store_true",
        default=env_defaults["log_to_console"],
        help="Also emit logs to stderr in addition to the rotating file handler.",
    )
    parser.add_argument(
        "--no-log-to-console",
        action="store_false",
        dest="log_to_console",
        help=argparse.SUPPRESS,
    )

    return parser


def _validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Exit through the parser when the configuration cannot work."""
    if not args.url:
        parser.error("SigNoz URL is required: pass --url or set SIGNOZ_URL")
    if args.transport not in TRANSPORTS:
        parser.error(f"invalid TRANSPORT_MODE '{args.transport}': use stdio or http")
    if args.transport == "stdio" and not args.api_key:
        parser.error("SigNoz API key is required in stdio mode: pass --api-key or set SIGNOZ_API_KEY")
    if args.transport == "http" and (args.port is None or args.port <= 0):
        parser.error("a positive --port (MCP_SERVER_PORT) is required in http mode")
    if args.client_cache_size < 0:
        parser.error("--client-cache-size must be >= 0")


def build_state(url: str, api_key: str | None, client_cache_size: int = 0, **client_options: Any) -> MCPState:
    """Create the shared state: a default client plus the per-credential cache."""
    factory = partial(SigNozClient, url, **client_options)
    default = factory(api_key) if api_key else None
    return MCPState(clients=ClientCache(factory, default=default, max_size=client_cache_size))


def app_factory(
    url: str,
    api_key: str | None,
    client_cache_size: int = 0,
    signoz_prefix: bool = False,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> FastMCP:
    """Create a FastMCP server with SigNoz tools.

    Args:
        url: SigNoz base URL
        api_key: Default API key, used when a call carries no credential
        client_cache_size: Bound on cached per-credential clients (0 = unbounded)
        signoz_prefix: Register tools as ``signoz_<name>``
        host: Bind address for the http transport
        port: Listen port for the http transport

    Returns:
        FastMCP server instance
    """

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[MCPState]:
        """Initialize MCP server state."""
        state = build_state(url, api_key, client_cache_size)
        try:
            yield state
        finally:
            logger.info(f"Shutting down with {len(state.clients)} cached credential clients")

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan, host=host, port=port)

    for tool in TOOLS:
        name = f"signoz_{tool.__name__}" if signoz_prefix else tool.__name__
        mcp.tool(name=name)(tool)

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "server": SERVER_NAME, "version": __version__})

    return mcp


def main():
    """Entry point for the signoz_mcp package."""
    _load_env_file()
    env_defaults = _read_env_defaults()
    parser = _build_arg_parser(env_defaults)
    args = parser.parse_args()
    _validate_args(parser, args)

    global logger
    logger = configure_logging(args.log_level, args.log_to_console)
    logger.info("=" * 80)
    logger.info(f"Starting SigNoz MCP v{__version__}")
    logger.info(f"Python executable: {sys.executable}")
    logger.info("=" * 80)
    logger.info(
        "Environment defaults loaded: %s",
        {k: ("***" if "key" in k and v else v) for k, v in env_defaults.items()},
    )

    logger.info(
        f"Starting MCP - url:{args.url} transport:{args.transport} "
        f"cache:{args.client_cache_size or 'unbounded'} prefix:{args.signoz_prefix}"
    )
    app = app_factory(
        url=args.url,
        api_key=args.api_key,
        client_cache_size=args.client_cache_size,
        signoz_prefix=args.signoz_prefix,
        host=args.host,
        port=args.port,
    )

    if args.transport == "http":
        logger.info(f"Serving streamable HTTP on {args.host}:{args.port}")
        app.run(transport="streamable-http")
    else:
        app.run(transport="stdio")


if __name__ == "__main__":
    main()
