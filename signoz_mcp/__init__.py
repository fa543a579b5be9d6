"""MCP server for querying SigNoz logs, traces, metrics, alerts and dashboards."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("signoz-mcp")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.1.0.dev0"
