"""SigNoz tools exposed over MCP.

Each tool resolves the backend client for the calling credential, shapes a
request, and returns SigNoz's JSON (list endpoints wrapped in a pagination
envelope). Argument names follow the camelCase vocabulary used throughout
SigNoz (``timeRange``, ``aggregateOn``, ``groupBy``) so that error hints and
parameter names agree.
"""

import json
import logging
from dataclasses import dataclass
from typing import Annotated, Any, cast

from mcp.server.fastmcp import Context
from pydantic import Field, ValidationError

from signoz_mcp import filters, paginate
from signoz_mcp.aggregation import bool_arg, compile_aggregation, compile_log_search, int_arg, trace_filter
from signoz_mcp.cache import ClientCache
from signoz_mcp.client import SigNozClient
from signoz_mcp.errors import QueryValidationError, SignozMCPError, ToolArgumentError
from signoz_mcp.normalizer import normalize
from signoz_mcp.querybuilder import (
    SIGNAL_LOGS,
    SIGNAL_TRACES,
    StructuredQuery,
    build_logs_query,
    build_trace_details_query,
    build_traces_query,
)
from signoz_mcp.responses import (
    alert_service,
    extract_items,
    extract_metric_keys,
    filter_dashboards,
    simplify_alerts,
    simplify_dashboards,
)
from signoz_mcp.timeutil import parse_datetime_string, resolve_time_window

logger = logging.getLogger(__name__)

LIMIT_DESC = "Maximum number of results per page. Check 'pagination.nextOffset' for the next page."
OFFSET_DESC = "Number of results to skip (0 for the first page)."
TIME_RANGE_DESC = "Relative window ending now, e.g. '30m', '2h', '24h', '7d'. Overrides start/end."
START_DESC = "Start of the window as an epoch number (ignored when timeRange is set)."
END_DESC = "End of the window as an epoch number (defaults to now)."

ERROR_LOG_SEVERITIES = filters.one_of("severity_text", ["ERROR", "FATAL"])
ALERT_LOG_SEVERITIES = filters.one_of("severity_text", ["ERROR", "WARN", "FATAL"])
MAX_ERROR_LOGS = 200

Limit = Annotated[int | str | None, Field(description=LIMIT_DESC)]
Offset = Annotated[int | str | None, Field(description=OFFSET_DESC)]
TimeRange = Annotated[str | None, Field(description=TIME_RANGE_DESC)]
Start = Annotated[int | str | None, Field(description=START_DESC)]
End = Annotated[int | str | None, Field(description=END_DESC)]


@dataclass
class MCPState:
    """State object passed from lifespan context to tools."""

    clients: ClientCache[SigNozClient]


def _args(**kwargs: Any) -> dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


def _flag(value: bool | str | None, name: str, default: bool) -> bool:
    return bool_arg(value, name, default)


def _require(value: str | None, name: str, example: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ToolArgumentError(f'"{name}" must be a non-empty string. Example: {example}')
    return value.strip()


def _log_failure(tool: str, error: Exception) -> None:
    logger.error(f"Error in {tool}: {error}")
    if not isinstance(error, SignozMCPError):
        logger.exception(error)


def request_credential(ctx: Context) -> str:
    """Bearer credential of the current HTTP request, or ``""`` for stdio."""
    request = getattr(ctx.request_context, "request", None)
    headers = getattr(request, "headers", None)
    if headers is None:
        return ""
    auth = headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        auth = auth[len("bearer ") :]
    return auth.strip()


def get_client(ctx: Context) -> SigNozClient:
    """Client bound to the caller's credential, falling back to the configured key."""
    state = cast(MCPState, ctx.request_context.lifespan_context)
    client = state.clients.resolve(request_credential(ctx))
    if client is None:
        raise ToolArgumentError(
            "missing SigNoz API key: send an 'Authorization: Bearer <api-key>' header or start the server with SIGNOZ_API_KEY"
        )
    return client


async def run_query(client: SigNozClient, query: StructuredQuery) -> Any:
    """Normalize ``query`` and send it to ``/api/v5/query_range``."""
    return await client.query_range(normalize(query))


# Metrics


async def list_metric_keys(ctx: Context, limit: Limit = None, offset: Offset = None) -> dict[str, Any]:
    """List available metric keys.

    Results are paginated; when searching for a metric keep paging while
    'pagination.hasMore' is true.
    """
    try:
        client = get_client(ctx)
        page_limit, page_offset = paginate.parse_params(_args(limit=limit, offset=offset))
        keys = extract_metric_keys(await client.list_metric_keys())
        return paginate.paginate(keys, page_offset, page_limit)
    except Exception as e:
        _log_failure("list_metric_keys", e)
        raise


async def search_metric_by_text(
    ctx: Context,
    searchText: Annotated[str, Field(description="Text to search for in metric names, e.g. 'cpu'.")],
) -> Any:
    """Search metrics whose name contains the given text."""
    try:
        text = _require(searchText, "searchText", '{"searchText": "cpu"}')
        return await get_client(ctx).search_metric_by_text(text)
    except Exception as e:
        _log_failure("search_metric_by_text", e)
        raise


async def get_metrics_available_fields(
    ctx: Context,
    searchText: Annotated[str, Field(description="Optional text to narrow the field list.")] = "",
) -> Any:
    """List metric attributes that can be aggregated."""
    try:
        return await get_client(ctx).get_metrics_available_fields(searchText or "")
    except Exception as e:
        _log_failure("get_metrics_available_fields", e)
        raise


async def get_metrics_field_values(
    ctx: Context,
    fieldName: Annotated[str, Field(description="Field whose values to list, e.g. 'service.name'.")],
    searchText: Annotated[str, Field(description="Optional prefix filter for values.")] = "",
    metricName: Annotated[str, Field(description="Optional metric to scope the values to.")] = "",
) -> Any:
    """List known values of a metrics field."""
    try:
        name = _require(fieldName, "fieldName", '{"fieldName": "service.name"}')
        return await get_client(ctx).get_field_values("metrics", name, searchText or "", metricName or "")
    except Exception as e:
        _log_failure("get_metrics_field_values", e)
        raise


# Alerts


async def list_alerts(
    ctx: Context,
    activeOnly: Annotated[
        bool | str | None, Field(description="'true' (default) for firing alerts, 'false' for resolved/inactive rules.")
    ] = None,
    limit: Limit = None,
    offset: Offset = None,
) -> dict[str, Any]:
    """List alerts with name, rule ID, severity, start/end time and state.

    Results are paginated. When looking for a specific alert keep paging while
    'pagination.hasMore' is true before concluding it does not exist.
    """
    try:
        client = get_client(ctx)
        active_only = _flag(activeOnly, "activeOnly", True)
        page_limit, page_offset = paginate.parse_params(_args(limit=limit, offset=offset))
        alerts = simplify_alerts(await client.list_alerts(active_only), active_only)
        return paginate.paginate(alerts, page_offset, page_limit)
    except Exception as e:
        _log_failure("list_alerts", e)
        raise


async def get_alert(
    ctx: Context,
    ruleId: Annotated[str, Field(description="Alert rule ID.")],
) -> Any:
    """Get the full definition of one alert rule."""
    try:
        rule_id = _require(ruleId, "ruleId", '{"ruleId": "0196634d-5d66-75c4-b778-e317f49dab7a"}')
        return await get_client(ctx).get_alert(rule_id)
    except Exception as e:
        _log_failure("get_alert", e)
        raise


async def get_alert_history(
    ctx: Context,
    ruleId: Annotated[str, Field(description="Alert rule ID.")],
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
    offset: Offset = None,
    limit: Annotated[int | str | None, Field(description="Maximum number of entries (default 20).")] = None,
    order: Annotated[str | None, Field(description="'asc' (default) or 'desc'.")] = None,
) -> Any:
    """Get the firing/resolved timeline of an alert rule (default window 6h)."""
    try:
        rule_id = _require(ruleId, "ruleId", '{"ruleId": "0196634d-5d66-75c4-b778-e317f49dab7a", "timeRange": "24h"}')
        args = _args(timeRange=timeRange, start=start, end=end, offset=offset, limit=limit)
        window_start, window_end = resolve_time_window(args, "ms", default_range="6h")
        direction = (order or "asc").strip().lower()
        if direction not in ("asc", "desc"):
            raise ToolArgumentError(f'invalid "order" value "{order}": use "asc" or "desc", e.g. {{"order": "desc"}}')
        request = {
            "start": window_start,
            "end": window_end,
            "offset": int_arg(args, "offset", 0),
            "limit": int_arg(args, "limit", 20),
            "order": direction,
            "filters": {"items": [], "op": "AND"},
        }
        return await get_client(ctx).get_alert_history(rule_id, request)
    except Exception as e:
        _log_failure("get_alert_history", e)
        raise


# Dashboards


async def list_dashboards(
    ctx: Context,
    namePattern: Annotated[
        str | None, Field(description="Optional case-insensitive regex matched against name or description.")
    ] = None,
    limit: Limit = None,
    offset: Offset = None,
) -> dict[str, Any]:
    """List dashboards (name, UUID, description, tags and timestamps).

    Results are paginated; keep paging while 'pagination.hasMore' is true.
    """
    try:
        client = get_client(ctx)
        page_limit, page_offset = paginate.parse_params(_args(limit=limit, offset=offset))
        dashboards = simplify_dashboards(await client.list_dashboards())
        dashboards = filter_dashboards(dashboards, (namePattern or "").strip())
        return paginate.paginate(dashboards, page_offset, page_limit)
    except Exception as e:
        _log_failure("list_dashboards", e)
        raise


async def get_dashboard(
    ctx: Context,
    uuid: Annotated[str, Field(description="Dashboard UUID from list_dashboards.")],
) -> Any:
    """Get the full configuration of a dashboard, including panels and queries."""
    try:
        dashboard_id = _require(uuid, "uuid", '{"uuid": "0197a1a4-4c1f-7b3e-9d2f-1c6a2b8e4f10"}')
        return await get_client(ctx).get_dashboard(dashboard_id)
    except Exception as e:
        _log_failure("get_dashboard", e)
        raise


# Services


async def list_services(
    ctx: Context,
    timeRange: TimeRange = None,
    start: Annotated[int | str | None, Field(description="Start as epoch nanoseconds.")] = None,
    end: Annotated[int | str | None, Field(description="End as epoch nanoseconds.")] = None,
    limit: Limit = None,
    offset: Offset = None,
) -> dict[str, Any]:
    """List services that reported traces in the window (default last 6h).

    Results are paginated; keep paging while 'pagination.hasMore' is true.
    """
    try:
        client = get_client(ctx)
        args = _args(timeRange=timeRange, start=start, end=end, limit=limit, offset=offset)
        window_start, window_end = resolve_time_window(args, "ns", default_range="6h")
        page_limit, page_offset = paginate.parse_params(args)
        services = extract_items(await client.list_services(window_start, window_end))
        return paginate.paginate(services, page_offset, page_limit)
    except Exception as e:
        _log_failure("list_services", e)
        raise


async def get_service_top_operations(
    ctx: Context,
    service: Annotated[str, Field(description="Service name, e.g. 'frontend'.")],
    tags: Annotated[str | None, Field(description="Optional JSON array of tag filters, default '[]'.")] = None,
    timeRange: TimeRange = None,
    start: Annotated[int | str | None, Field(description="Start as epoch nanoseconds.")] = None,
    end: Annotated[int | str | None, Field(description="End as epoch nanoseconds.")] = None,
) -> Any:
    """Get the busiest operations of a service with latency percentiles and error counts."""
    try:
        service_name = _require(service, "service", '{"service": "frontend", "timeRange": "1h"}')
        try:
            tag_list = json.loads(tags) if tags and tags.strip() else []
        except json.JSONDecodeError as e:
            raise ToolArgumentError(f'invalid "tags" JSON: {e}. Example: {{"tags": "[]"}}') from e
        if not isinstance(tag_list, list):
            raise ToolArgumentError('"tags" must be a JSON array. Example: {"tags": "[]"}')
        window_start, window_end = resolve_time_window(
            _args(timeRange=timeRange, start=start, end=end), "ns", default_range="6h"
        )
        return await get_client(ctx).get_service_top_operations(window_start, window_end, service_name, tag_list)
    except Exception as e:
        _log_failure("get_service_top_operations", e)
        raise


# Query builder


def parse_builder_query(query: dict[str, Any] | str) -> StructuredQuery:
    """Parse an agent-supplied query_range payload.

    String ``start``/``end`` values may be human-friendly ("24h", "now",
    "2025-08-28T13:00:00Z", "Dec 3rd 5 PM") and are converted to epoch
    milliseconds; values without an offset are read as UTC.
    """
    if isinstance(query, str):
        try:
            query = json.loads(query)
        except json.JSONDecodeError as e:
            raise ToolArgumentError(f"invalid query payload structure: {e}") from e
    if not isinstance(query, dict):
        raise ToolArgumentError('invalid query payload structure: expected a JSON object with "compositeQuery"')

    payload = dict(query)
    for key in ("start", "end"):
        if isinstance(payload.get(key), str):
            payload[key] = parse_datetime_string(payload[key])

    try:
        return StructuredQuery.model_validate(payload)
    except ValidationError as e:
        raise ToolArgumentError(f"invalid query payload structure: {e}") from e


async def execute_builder_query(
    ctx: Context,
    query: Annotated[
        dict[str, Any] | str,
        Field(description="Complete query_range payload (schemaVersion, start, end, requestType, compositeQuery)."),
    ],
) -> Any:
    """Run a Query Builder v5 payload against /api/v5/query_range.

    The payload is validated first: metrics queries become time series with a
    default 60s step, raw logs/traces drop their step interval, and scalar or
    time series logs/traces must carry aggregations. Call get_query_reference
    for the payload format.
    """
    try:
        structured = parse_builder_query(query)
        try:
            finalized = normalize(structured)
        except QueryValidationError as e:
            raise QueryValidationError(f"query validation error: {e}") from e
        return await get_client(ctx).query_range(finalized)
    except Exception as e:
        _log_failure("execute_builder_query", e)
        raise


# Logs


async def list_log_views(ctx: Context, limit: Limit = None, offset: Offset = None) -> dict[str, Any]:
    """List saved log views.

    Results are paginated; keep paging while 'pagination.hasMore' is true.
    """
    try:
        client = get_client(ctx)
        page_limit, page_offset = paginate.parse_params(_args(limit=limit, offset=offset))
        views = extract_items(await client.list_log_views(), "items", "views", "results")
        return paginate.paginate(views, page_offset, page_limit)
    except Exception as e:
        _log_failure("list_log_views", e)
        raise


async def get_log_view(
    ctx: Context,
    viewId: Annotated[str, Field(description="Log view ID from list_log_views.")],
) -> Any:
    """Get one saved log view, including its query."""
    try:
        view_id = _require(viewId, "viewId", '{"viewId": "0197a1a4-4c1f-7b3e-9d2f-1c6a2b8e4f10"}')
        return await get_client(ctx).get_log_view(view_id)
    except Exception as e:
        _log_failure("get_log_view", e)
        raise


async def get_logs_for_alert(
    ctx: Context,
    alertId: Annotated[str, Field(description="Alert rule ID.")],
    timeRange: Annotated[str | None, Field(description="Window ending now, default '1h'.")] = None,
    limit: Annotated[int | str | None, Field(description="Maximum number of logs (default 100).")] = None,
    offset: Offset = None,
) -> Any:
    """Get ERROR/WARN/FATAL logs around an alert, scoped to the alert's service when known."""
    try:
        alert_id = _require(alertId, "alertId", '{"alertId": "0196634d-5d66-75c4-b778-e317f49dab7a", "timeRange": "1h"}')
        client = get_client(ctx)
        service = alert_service(await client.get_alert(alert_id))
        args = _args(timeRange=timeRange, limit=limit, offset=offset)
        window_start, window_end = resolve_time_window(args, "ms", default_range="1h")
        filter_expression = filters.conjoin(
            [ALERT_LOG_SEVERITIES, filters.one_of("service.name", [service]) if service else None]
        )
        query = build_logs_query(
            window_start, window_end, filter_expression, int_arg(args, "limit", 100), int_arg(args, "offset", 0)
        )
        return await run_query(client, query)
    except Exception as e:
        _log_failure("get_logs_for_alert", e)
        raise


async def get_error_logs(
    ctx: Context,
    service: Annotated[str | None, Field(description="Optional service name to scope the search.")] = None,
    timeRange: Annotated[str | None, Field(description="Window ending now, default '1h'.")] = None,
    start: Start = None,
    end: End = None,
    limit: Annotated[int | str | None, Field(description="Maximum number of logs, 1-200 (default 25).")] = None,
    offset: Offset = None,
) -> Any:
    """Get ERROR and FATAL logs, newest first."""
    try:
        client = get_client(ctx)
        args = _args(timeRange=timeRange, start=start, end=end, limit=limit, offset=offset)
        window_start, window_end = resolve_time_window(args, "ms", default_range="1h")
        row_limit = min(int_arg(args, "limit", 25), MAX_ERROR_LOGS)
        service_name = (service or "").strip()
        filter_expression = filters.conjoin(
            [ERROR_LOG_SEVERITIES, filters.one_of("service.name", [service_name]) if service_name else None]
        )
        query = build_logs_query(window_start, window_end, filter_expression, row_limit, int_arg(args, "offset", 0))
        return await run_query(client, query)
    except Exception as e:
        _log_failure("get_error_logs", e)
        raise


async def search_logs_by_service(
    ctx: Context,
    service: Annotated[str, Field(description="Service name, e.g. 'checkout'.")],
    severity: Annotated[str | None, Field(description="Optional severity, e.g. 'ERROR'.")] = None,
    searchText: Annotated[str | None, Field(description="Optional text the log body must contain.")] = None,
    query: Annotated[str | None, Field(description="Optional extra filter expression, e.g. \"k8s.namespace.name = 'prod'\".")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
    limit: Annotated[int | str | None, Field(description="Maximum number of logs (default 100).")] = None,
    offset: Offset = None,
) -> Any:
    """Search the logs of one service, optionally by severity, body text or an extra filter (default window 1h)."""
    try:
        service_name = _require(service, "service", '{"service": "checkout", "severity": "ERROR", "timeRange": "1h"}')
        client = get_client(ctx)
        args = _args(
            query=query,
            severity=severity,
            searchText=searchText,
            timeRange=timeRange,
            start=start,
            end=end,
            limit=limit,
            offset=offset,
        )
        request = compile_log_search(args, preset_filter=filters.one_of("service.name", [service_name]))
        return await run_query(client, request.to_query())
    except Exception as e:
        _log_failure("search_logs_by_service", e)
        raise


async def search_logs(
    ctx: Context,
    query: Annotated[str | None, Field(description="Optional filter expression, e.g. \"k8s.namespace.name = 'prod'\".")] = None,
    service: Annotated[str | None, Field(description="Optional service name.")] = None,
    severity: Annotated[str | None, Field(description="Optional severity, e.g. 'ERROR'.")] = None,
    searchText: Annotated[str | None, Field(description="Optional text the log body must contain.")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
    limit: Annotated[int | str | None, Field(description="Maximum number of logs (default 100).")] = None,
    offset: Offset = None,
) -> Any:
    """Search logs with a filter expression plus service/severity/text shortcuts (default window 1h)."""
    try:
        client = get_client(ctx)
        args = _args(
            query=query,
            service=service,
            severity=severity,
            searchText=searchText,
            timeRange=timeRange,
            start=start,
            end=end,
            limit=limit,
            offset=offset,
        )
        request = compile_log_search(args)
        return await run_query(client, request.to_query())
    except Exception as e:
        _log_failure("search_logs", e)
        raise


AggregationVerb = Annotated[
    str, Field(description="One of count, count_distinct, avg, sum, min, max, p50, p75, p90, p95, p99, rate.")
]
AggregateOn = Annotated[str | None, Field(description="Field to aggregate, required except for count and rate.")]
GroupBy = Annotated[str | None, Field(description="Comma separated fields to group by, e.g. 'service.name'.")]
OrderBy = Annotated[str | None, Field(description="Order expression with optional ' asc'/' desc' suffix.")]
AggregateLimit = Annotated[int | str | None, Field(description="Maximum number of groups (default 10).")]
FilterArg = Annotated[str | None, Field(description="Optional filter expression ANDed with the shortcuts.")]


async def aggregate_logs(
    ctx: Context,
    aggregation: AggregationVerb,
    aggregateOn: AggregateOn = None,
    groupBy: GroupBy = None,
    orderBy: OrderBy = None,
    limit: AggregateLimit = None,
    filter: FilterArg = None,
    service: Annotated[str | None, Field(description="Optional service name.")] = None,
    severity: Annotated[str | None, Field(description="Optional severity, e.g. 'ERROR'.")] = None,
    searchText: Annotated[str | None, Field(description="Optional text the log body must contain.")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
) -> Any:
    """Aggregate logs, e.g. error counts per service (default window 1h).

    Example: {"aggregation": "count", "groupBy": "service.name", "severity": "ERROR"}
    """
    try:
        client = get_client(ctx)
        args = _args(
            aggregation=aggregation,
            aggregateOn=aggregateOn,
            groupBy=groupBy,
            orderBy=orderBy,
            limit=limit,
            filter=filter,
            service=service,
            severity=severity,
            searchText=searchText,
            timeRange=timeRange,
            start=start,
            end=end,
        )
        request = compile_aggregation(args, SIGNAL_LOGS)
        return await run_query(client, request.to_query())
    except Exception as e:
        _log_failure("aggregate_logs", e)
        raise


async def get_logs_available_fields(
    ctx: Context,
    searchText: Annotated[str, Field(description="Optional text to narrow the field list.")] = "",
) -> Any:
    """List log fields (attributes and resources) usable in filters and group-bys."""
    try:
        return await get_client(ctx).get_field_keys(SIGNAL_LOGS, searchText or "")
    except Exception as e:
        _log_failure("get_logs_available_fields", e)
        raise


async def get_logs_field_values(
    ctx: Context,
    fieldName: Annotated[str, Field(description="Field whose values to list, e.g. 'service.name'.")],
    searchText: Annotated[str, Field(description="Optional prefix filter for values.")] = "",
) -> Any:
    """List known values of a log field."""
    try:
        name = _require(fieldName, "fieldName", '{"fieldName": "service.name"}')
        return await get_client(ctx).get_field_values(SIGNAL_LOGS, name, searchText or "")
    except Exception as e:
        _log_failure("get_logs_field_values", e)
        raise


# Traces


async def aggregate_traces(
    ctx: Context,
    aggregation: AggregationVerb,
    aggregateOn: AggregateOn = None,
    groupBy: GroupBy = None,
    orderBy: OrderBy = None,
    limit: AggregateLimit = None,
    filter: FilterArg = None,
    service: Annotated[str | None, Field(description="Optional service name.")] = None,
    operation: Annotated[str | None, Field(description="Optional span name.")] = None,
    error: Annotated[str | None, Field(description="'true' for failed spans only, 'false' for successful ones.")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
) -> Any:
    """Aggregate spans, e.g. p99 latency per operation (default window 1h).

    Example: {"aggregation": "p99", "aggregateOn": "duration", "groupBy": "name", "service": "frontend"}
    """
    try:
        client = get_client(ctx)
        args = _args(
            aggregation=aggregation,
            aggregateOn=aggregateOn,
            groupBy=groupBy,
            orderBy=orderBy,
            limit=limit,
            filter=filter,
            service=service,
            operation=operation,
            error=error,
            timeRange=timeRange,
            start=start,
            end=end,
        )
        request = compile_aggregation(args, SIGNAL_TRACES)
        return await run_query(client, request.to_query())
    except Exception as e:
        _log_failure("aggregate_traces", e)
        raise


def _duration_bound(value: int | str | None, name: str) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ToolArgumentError(
            f'invalid "{name}" value "{value}": must be an integer number of nanoseconds, e.g. {{"{name}": "500000000"}}'
        ) from None


async def search_traces_by_service(
    ctx: Context,
    service: Annotated[str, Field(description="Service name, e.g. 'frontend'.")],
    operation: Annotated[str | None, Field(description="Optional span name.")] = None,
    error: Annotated[str | None, Field(description="'true' for failed spans only, 'false' for successful ones.")] = None,
    minDuration: Annotated[int | str | None, Field(description="Minimum span duration in nanoseconds.")] = None,
    maxDuration: Annotated[int | str | None, Field(description="Maximum span duration in nanoseconds.")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
    limit: Annotated[int | str | None, Field(description="Maximum number of spans (default 100).")] = None,
) -> Any:
    """Search the spans of one service (default window 6h)."""
    try:
        service_name = _require(service, "service", '{"service": "frontend", "error": "true", "timeRange": "2h"}')
        min_duration = _duration_bound(minDuration, "minDuration")
        max_duration = _duration_bound(maxDuration, "maxDuration")
        client = get_client(ctx)
        args = _args(operation=operation, error=error, timeRange=timeRange, start=start, end=end, limit=limit)
        window_start, window_end = resolve_time_window(args, "ms", default_range="6h")
        filter_expression = filters.conjoin(
            [
                filters.one_of("service.name", [service_name]),
                trace_filter(args),
                filters.Compare("durationNano", ">=", min_duration) if min_duration is not None else None,
                filters.Compare("durationNano", "<=", max_duration) if max_duration is not None else None,
            ]
        )
        query = build_traces_query(window_start, window_end, filter_expression, int_arg(args, "limit", 100))
        return await run_query(client, query)
    except Exception as e:
        _log_failure("search_traces_by_service", e)
        raise


async def get_trace_details(
    ctx: Context,
    traceId: Annotated[str, Field(description="Trace ID.")],
    includeSpans: Annotated[bool | str | None, Field(description="Include spans (default true).")] = None,
    includeLogs: Annotated[bool | str | None, Field(description="Include logs correlated by trace_id (default false).")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
) -> Any:
    """Get all spans of a trace, optionally with its logs (default window 6h).

    With includeLogs the response has two result legs named 'traces' and 'logs'.
    """
    try:
        trace_id = _require(traceId, "traceId", '{"traceId": "abc123def456", "includeSpans": "true", "timeRange": "1h"}')
        include_spans = _flag(includeSpans, "includeSpans", True)
        include_logs = _flag(includeLogs, "includeLogs", False)
        if not include_spans and not include_logs:
            raise ToolArgumentError(
                'nothing to fetch: set "includeSpans" or "includeLogs" to "true", '
                'e.g. {"traceId": "abc123def456", "includeLogs": "true"}'
            )
        client = get_client(ctx)
        window_start, window_end = resolve_time_window(
            _args(timeRange=timeRange, start=start, end=end), "ms", default_range="6h"
        )
        query = build_trace_details_query(
            filters.equals("trace_id", trace_id).render(), window_start, window_end, include_spans, include_logs
        )
        return await run_query(client, query)
    except Exception as e:
        _log_failure("get_trace_details", e)
        raise


async def get_trace_error_analysis(
    ctx: Context,
    service: Annotated[str | None, Field(description="Optional service name to scope the analysis.")] = None,
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
) -> Any:
    """Get failed spans (hasError = true) to analyse error patterns (default window 6h)."""
    try:
        client = get_client(ctx)
        window_start, window_end = resolve_time_window(
            _args(timeRange=timeRange, start=start, end=end), "ms", default_range="6h"
        )
        service_name = (service or "").strip()
        filter_expression = filters.conjoin(
            [
                filters.equals("hasError", True),
                filters.one_of("service.name", [service_name]) if service_name else None,
            ]
        )
        return await run_query(client, build_traces_query(window_start, window_end, filter_expression, 1000))
    except Exception as e:
        _log_failure("get_trace_error_analysis", e)
        raise


async def get_trace_span_hierarchy(
    ctx: Context,
    traceId: Annotated[str, Field(description="Trace ID.")],
    timeRange: TimeRange = None,
    start: Start = None,
    end: End = None,
) -> Any:
    """Get the spans of a trace with parent/child IDs to rebuild the call tree."""
    try:
        trace_id = _require(traceId, "traceId", '{"traceId": "abc123def456", "timeRange": "1h"}')
        client = get_client(ctx)
        window_start, window_end = resolve_time_window(
            _args(timeRange=timeRange, start=start, end=end), "ms", default_range="6h"
        )
        query = build_traces_query(window_start, window_end, filters.equals("trace_id", trace_id).render(), 1000)
        return await run_query(client, query)
    except Exception as e:
        _log_failure("get_trace_span_hierarchy", e)
        raise


async def get_trace_available_fields(
    ctx: Context,
    searchText: Annotated[str, Field(description="Optional text to narrow the field list.")] = "",
) -> Any:
    """List span fields usable in filters and group-bys."""
    try:
        return await get_client(ctx).get_field_keys(SIGNAL_TRACES, searchText or "")
    except Exception as e:
        _log_failure("get_trace_available_fields", e)
        raise


async def get_trace_field_values(
    ctx: Context,
    fieldName: Annotated[str, Field(description="Field whose values to list, e.g. 'service.name'.")],
    searchText: Annotated[str, Field(description="Optional prefix filter for values.")] = "",
) -> Any:
    """List known values of a span field."""
    try:
        name = _require(fieldName, "fieldName", '{"fieldName": "service.name"}')
        return await get_client(ctx).get_field_values(SIGNAL_TRACES, name, searchText or "")
    except Exception as e:
        _log_failure("get_trace_field_values", e)
        raise


# Reference


async def get_query_reference(ctx: Context) -> str:
    """Get a short reference for building query_range payloads."""
    return QUERY_REFERENCE


QUERY_REFERENCE = """
# SigNoz Query Builder v5 reference

## Signals and request types
| signal  | raw | scalar | time_series | notes |
|---------|-----|--------|-------------|-------|
| metrics | -   | -      | always      | stepInterval defaults to 60 |
| logs    | yes | yes*   | yes*        | *requires aggregations |
| traces  | yes | yes*   | yes*        | *requires aggregations; 'trace' behaves like raw |

Raw and scalar queries never carry a stepInterval. Time series queries default it to 60 seconds.

## Aggregations
Expressions are `verb(field)`: count, count_distinct, avg, sum, min, max,
p50, p75, p90, p95, p99, rate. `count()` and `rate()` need no field.

## Filters
`service.name = 'frontend' AND hasError = true`
`severity_text IN ('ERROR', 'FATAL')`
`body CONTAINS 'timeout'`
`durationNano >= 500000000`

## Example payload
```
{
  "schemaVersion": "v1",
  "start": "1h",
  "end": "now",
  "requestType": "scalar",
  "compositeQuery": {
    "queries": [
      {
        "type": "builder_query",
        "spec": {
          "name": "A",
          "signal": "traces",
          "filter": {"expression": "service.name = 'frontend'"},
          "aggregations": [{"expression": "p99(durationNano)"}],
          "groupBy": [{"name": "name"}],
          "order": [{"key": {"name": "p99(durationNano)"}, "direction": "desc"}],
          "limit": 10
        }
      }
    ]
  }
}
```
`start`/`end` accept epoch milliseconds, RFC3339 timestamps, `now`, or a
relative range such as `24h` meaning that long ago.
"""

TOOLS = [
    list_metric_keys,
    search_metric_by_text,
    get_metrics_available_fields,
    get_metrics_field_values,
    list_alerts,
    get_alert,
    get_alert_history,
    list_dashboards,
    get_dashboard,
    list_services,
    get_service_top_operations,
    execute_builder_query,
    list_log_views,
    get_log_view,
    get_logs_for_alert,
    get_error_logs,
    search_logs_by_service,
    search_logs,
    aggregate_logs,
    get_logs_available_fields,
    get_logs_field_values,
    aggregate_traces,
    search_traces_by_service,
    get_trace_details,
    get_trace_error_analysis,
    get_trace_span_hierarchy,
    get_trace_available_fields,
    get_trace_field_values,
    get_query_reference,
]
