"""Compile free-form aggregation arguments into backend queries.

An agent asks for "average duration grouped by service, top 10" as a bag of
string arguments. :func:`compile_aggregation` validates that bag and lowers
it to an :class:`AggregationRequest`. Every error message carries an example
of a valid call, because the agent can only learn from the message text.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from signoz_mcp import filters
from signoz_mcp.errors import ToolArgumentError
from signoz_mcp.querybuilder import (
    SIGNAL_LOGS,
    SIGNAL_TRACES,
    SelectField,
    StructuredQuery,
    build_aggregate_query,
    build_logs_query,
)
from signoz_mcp.timeutil import resolve_time_window

VALID_AGGREGATIONS = frozenset(
    {"count", "count_distinct", "avg", "sum", "min", "max", "p50", "p75", "p90", "p95", "p99", "rate"}
)
AGGREGATIONS_WITHOUT_FIELD = frozenset({"count", "rate"})
ALLOWED_AGGREGATIONS = ", ".join(sorted(VALID_AGGREGATIONS))

DEFAULT_AGGREGATE_LIMIT = 10
DEFAULT_SEARCH_LIMIT = 100
DEFAULT_AGGREGATE_RANGE = "1h"


@dataclass
class AggregationRequest:
    """Validated aggregation, ready to be lowered into a scalar query."""

    signal: str
    aggregation: str
    aggregate_on: str
    expression: str
    filter_expression: str
    group_by: list[SelectField]
    order_expr: str
    order_dir: str
    limit: int
    start: int
    end: int

    def to_query(self) -> StructuredQuery:
        return build_aggregate_query(
            self.signal,
            self.start,
            self.end,
            self.expression,
            self.filter_expression,
            self.group_by,
            self.order_expr,
            self.order_dir,
            self.limit,
        )


@dataclass
class LogSearchRequest:
    filter_expression: str
    limit: int
    offset: int
    start: int
    end: int

    def to_query(self) -> StructuredQuery:
        return build_logs_query(self.start, self.end, self.filter_expression, self.limit, self.offset)


def string_arg(args: Mapping[str, Any], key: str) -> str:
    """Return a trimmed string argument, or ``""`` when absent."""
    value = args.get(key)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ToolArgumentError(f'"{key}" must be a string, e.g. {{"{key}": "value"}}')
    return str(value).strip()


def int_arg(args: Mapping[str, Any], key: str, default: int) -> int:
    """Return a positive integer argument.

    Missing, empty and non-positive values give ``default``; anything that is
    not a number is an error.
    """
    value = args.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ToolArgumentError(f'invalid "{key}" value "{value}": must be a number, e.g. {{"{key}": "{default}"}}')
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value).strip())
        except ValueError:
            raise ToolArgumentError(
                f'invalid "{key}" value "{value}": must be a number, e.g. {{"{key}": "{default}"}}'
            ) from None
    return number if number > 0 else default


TRUE_VALUES = frozenset({"true", "1", "yes"})
FALSE_VALUES = frozenset({"false", "0", "no"})


def bool_arg(value: Any, key: str, default: bool | None) -> bool | None:
    """Parse a boolean argument given as a bool or a string.

    Missing or empty values give ``default``; anything other than
    true/false, 1/0 or yes/no is an error.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ToolArgumentError(f'invalid "{key}" value "{value}": use "true" or "false", e.g. {{"{key}": "true"}}')


def log_filter(args: Mapping[str, Any], free_form_key: str = "filter") -> filters.And:
    """Free-form filter plus the service, severity and body-text shortcuts."""
    service = string_arg(args, "service")
    severity = string_arg(args, "severity")
    search_text = string_arg(args, "searchText")
    return filters.all_of(
        [
            string_arg(args, free_form_key),
            filters.equals("service.name", service) if service else None,
            filters.equals("severity_text", severity) if severity else None,
            filters.contains("body", search_text) if search_text else None,
        ]
    )


def trace_filter(args: Mapping[str, Any], free_form_key: str = "filter") -> filters.And:
    """Free-form filter plus the service, operation and error shortcuts."""
    service = string_arg(args, "service")
    operation = string_arg(args, "operation")
    has_error = bool_arg(args.get("error"), "error", None)
    return filters.all_of(
        [
            string_arg(args, free_form_key),
            filters.equals("service.name", service) if service else None,
            filters.equals("name", operation) if operation else None,
            filters.equals("hasError", has_error) if has_error is not None else None,
        ]
    )


def signal_filter(args: Mapping[str, Any], signal: str) -> filters.Expr:
    if signal == SIGNAL_LOGS:
        return log_filter(args)
    if signal == SIGNAL_TRACES:
        return trace_filter(args)
    return filters.Raw(string_arg(args, "filter"))


def parse_group_by(args: Mapping[str, Any], signal: str) -> list[SelectField]:
    """Split a comma separated ``groupBy`` into field descriptors."""
    value = args.get("groupBy")
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        tokens = [str(item) for item in value]
    else:
        tokens = string_arg(args, "groupBy").split(",")
    return [SelectField(name=token.strip(), signal=signal) for token in tokens if token.strip()]


def parse_order_by(args: Mapping[str, Any], default_expr: str) -> tuple[str, str]:
    """Split ``orderBy`` into expression and direction (default ``desc``)."""
    order_by = string_arg(args, "orderBy")
    if not order_by:
        return default_expr, "desc"
    lowered = order_by.lower()
    for direction in ("asc", "desc"):
        if lowered.endswith(f" {direction}"):
            return order_by[: -len(direction)].strip(), direction
    return order_by, "desc"


def parse_aggregation(args: Mapping[str, Any]) -> tuple[str, str]:
    """Return the validated ``(verb, field)`` pair; field may be empty."""
    verb = string_arg(args, "aggregation").lower()
    if not verb:
        raise ToolArgumentError(
            f'"aggregation" is required. Supported values: {ALLOWED_AGGREGATIONS}. '
            'Tip: for simple totals use {"aggregation": "count", "groupBy": "service.name"}'
        )
    if verb not in VALID_AGGREGATIONS:
        raise ToolArgumentError(
            f'invalid aggregation "{verb}". Supported values: {ALLOWED_AGGREGATIONS}. '
            'Tip: for counting use "count", for averages use "avg"'
        )

    field = string_arg(args, "aggregateOn")
    if not field and verb not in AGGREGATIONS_WITHOUT_FIELD:
        raise ToolArgumentError(
            f'"aggregateOn" is required for "{verb}" aggregation. Specify the field to aggregate, '
            f'e.g. {{"aggregation": "{verb}", "aggregateOn": "duration"}}'
        )
    return verb, field


def compile_aggregation(
    args: Mapping[str, Any], signal: str, preset_filter: filters.Expr | str | None = None
) -> AggregationRequest:
    """Validate aggregation arguments for ``signal``.

    Args:
        args: Raw tool arguments (``aggregation``, ``aggregateOn``, ``groupBy``,
            ``orderBy``, ``limit``, ``timeRange``/``start``/``end`` and the
            signal's filter shortcuts).
        signal: ``logs``, ``traces`` or ``metrics``.
        preset_filter: Expression the calling tool always applies.

    Returns:
        AggregationRequest with a resolved millisecond window.

    Raises:
        ToolArgumentError: With a corrective example for any bad argument.
    """
    verb, field = parse_aggregation(args)
    expression = f"{verb}({field})"
    filter_expression = filters.conjoin([preset_filter, signal_filter(args, signal)])
    group_by = parse_group_by(args, signal)
    order_expr, order_dir = parse_order_by(args, expression)
    limit = int_arg(args, "limit", DEFAULT_AGGREGATE_LIMIT)
    start, end = resolve_time_window(args, "ms", default_range=DEFAULT_AGGREGATE_RANGE)

    return AggregationRequest(
        signal=signal,
        aggregation=verb,
        aggregate_on=field,
        expression=expression,
        filter_expression=filter_expression,
        group_by=group_by,
        order_expr=order_expr,
        order_dir=order_dir,
        limit=limit,
        start=start,
        end=end,
    )


def compile_log_search(args: Mapping[str, Any], preset_filter: filters.Expr | str | None = None) -> LogSearchRequest:
    """Validate arguments for a raw log search (``query`` is the free-form filter)."""
    filter_expression = filters.conjoin([preset_filter, log_filter(args, free_form_key="query")])
    limit = int_arg(args, "limit", DEFAULT_SEARCH_LIMIT)
    offset = int_arg(args, "offset", 0)
    start, end = resolve_time_window(args, "ms", default_range=DEFAULT_AGGREGATE_RANGE)
    return LogSearchRequest(filter_expression=filter_expression, limit=limit, offset=offset, start=start, end=end)
