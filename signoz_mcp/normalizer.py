"""Signal-aware validation of structured queries before they reach SigNoz.

Agents tend to send payloads that are plausible but not quite what the backend
accepts: a metrics query without a step, a raw log listing that still carries
one, a scalar trace query without aggregations. :func:`normalize` reconciles
those rules in one place and produces error messages precise enough for the
agent to fix its payload on the next call.
"""

import logging

from signoz_mcp.errors import QueryValidationError
from signoz_mcp.querybuilder import (
    BUILDER_QUERY,
    DEFAULT_STEP_INTERVAL,
    REQUEST_RAW,
    REQUEST_SCALAR,
    REQUEST_TIME_SERIES,
    REQUEST_TRACE,
    SCHEMA_VERSION,
    SIGNAL_LOGS,
    SIGNAL_METRICS,
    SIGNAL_TRACES,
    QuerySpec,
    StructuredQuery,
)

logger = logging.getLogger(__name__)


def normalize(query: StructuredQuery) -> StructuredQuery:
    """Validate ``query`` and return a finalized copy.

    The input is never modified, so a template can be normalized repeatedly.
    On failure nothing is returned at all; the whole structure is rejected.

    Args:
        query: Structured query as built by a tool or supplied by the agent.

    Returns:
        A new StructuredQuery with request type, step intervals and schema
        version filled in.

    Raises:
        QueryValidationError: If the query misses timestamps, has no legs, or
            a leg violates the rules for its signal and request type.
    """
    result = query.model_copy(deep=True)

    if not result.schema_version:
        result.schema_version = SCHEMA_VERSION

    if result.start == 0 or result.end == 0:
        raise QueryValidationError("missing start or end timestamp")
    if not result.queries:
        raise QueryValidationError("missing or empty compositeQuery.queries")

    for index, item in enumerate(result.queries):
        if item.type != BUILDER_QUERY:
            continue
        if not isinstance(item.spec, QuerySpec):
            raise QueryValidationError(f"query at position {index + 1}: missing spec for builder_query")
        _normalize_spec(result, item.spec, index)

    if not result.request_type:
        result.request_type = REQUEST_RAW

    logger.debug(f"Normalized query: requestType={result.request_type} legs={len(result.queries)}")
    return result


def _normalize_spec(query: StructuredQuery, spec: QuerySpec, index: int) -> None:
    name = spec.name or f"query at position {index + 1}"
    signal = spec.signal

    if signal == SIGNAL_METRICS:
        query.request_type = REQUEST_TIME_SERIES
        _default_step(spec)
        return

    if signal not in (SIGNAL_TRACES, SIGNAL_LOGS):
        raise QueryValidationError(f"{name}: unknown signal type '{signal}'")

    if not query.request_type:
        query.request_type = REQUEST_RAW

    request_type = query.request_type
    if request_type == REQUEST_RAW or (signal == SIGNAL_TRACES and request_type == REQUEST_TRACE):
        spec.step_interval = None
    elif request_type == REQUEST_SCALAR:
        spec.step_interval = None
        _require_aggregations(spec, name, request_type)
    elif request_type == REQUEST_TIME_SERIES:
        _require_aggregations(spec, name, request_type)
        _default_step(spec)
    else:
        raise QueryValidationError(f"{name}: unsupported requestType '{request_type}' for {signal}")


def _require_aggregations(spec: QuerySpec, name: str, request_type: str) -> None:
    if not spec.aggregations:
        raise QueryValidationError(f"{name}: missing aggregations for {request_type} {spec.signal} query")


def _default_step(spec: QuerySpec) -> None:
    if spec.step_interval is None or spec.step_interval <= 0:
        spec.step_interval = DEFAULT_STEP_INTERVAL
