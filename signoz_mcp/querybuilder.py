"""Data model for SigNoz v5 query_range payloads and builders for common queries."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_serializer

SCHEMA_VERSION = "v1"
BUILDER_QUERY = "builder_query"
DEFAULT_STEP_INTERVAL = 60

SIGNAL_METRICS = "metrics"
SIGNAL_LOGS = "logs"
SIGNAL_TRACES = "traces"

REQUEST_RAW = "raw"
REQUEST_SCALAR = "scalar"
REQUEST_TIME_SERIES = "time_series"
REQUEST_TRACE = "trace"


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class FieldKey(_Model):
    name: str = ""


class OrderBy(_Model):
    key: FieldKey = Field(default_factory=FieldKey)
    direction: str = "desc"


class FilterExpression(_Model):
    expression: str = ""


class Having(_Model):
    expression: str = ""


class SelectField(_Model):
    """Field descriptor used for select lists and group-by clauses."""

    name: str
    field_data_type: str | None = Field(default=None, alias="fieldDataType")
    signal: str | None = None
    field_context: str | None = Field(default=None, alias="fieldContext")


class QuerySpec(_Model):
    """One leg of a composite query."""

    name: str = ""
    signal: str = ""
    step_interval: int | None = Field(default=None, alias="stepInterval")
    disabled: bool = False
    filter: FilterExpression | None = None
    limit: int = 0
    offset: int = 0
    order: list[OrderBy] = Field(default_factory=list)
    having: Having = Field(default_factory=Having)
    select_fields: list[SelectField] = Field(default_factory=list, alias="selectFields")
    aggregations: list[Any] = Field(default_factory=list)
    group_by: list[SelectField] = Field(default_factory=list, alias="groupBy")

    @model_serializer(mode="wrap")
    def _omit_empty_lists(self, handler):
        data = handler(self)
        for key in ("aggregations", "groupBy", "group_by"):
            if key in data and not data[key]:
                del data[key]
        return data


class Query(_Model):
    """Envelope carrying a query kind and its spec.

    Only ``builder_query`` specs are parsed into :class:`QuerySpec`; other kinds
    (promql, clickhouse_sql, formulas) keep their raw JSON.
    """

    type: str = BUILDER_QUERY
    spec: Any = None

    @field_validator("spec", mode="before")
    @classmethod
    def _parse_builder_spec(cls, value: Any, info: ValidationInfo) -> Any:
        if info.data.get("type", BUILDER_QUERY) == BUILDER_QUERY and isinstance(value, dict):
            return QuerySpec.model_validate(value)
        return value


class CompositeQuery(_Model):
    queries: list[Query] = Field(default_factory=list)


class FormatOptions(_Model):
    format_table_result_for_ui: bool = Field(default=False, alias="formatTableResultForUI")
    fill_gaps: bool = Field(default=False, alias="fillGaps")


class StructuredQuery(_Model):
    """Request body for ``POST /api/v5/query_range``."""

    schema_version: str = Field(default="", alias="schemaVersion")
    start: int = 0
    end: int = 0
    request_type: str = Field(default="", alias="requestType")
    composite_query: CompositeQuery = Field(default_factory=CompositeQuery, alias="compositeQuery")
    format_options: FormatOptions = Field(default_factory=FormatOptions, alias="formatOptions")
    variables: dict[str, Any] = Field(default_factory=dict)

    @property
    def queries(self) -> list[Query]:
        return self.composite_query.queries

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON shape the backend expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


LOG_SELECT_FIELDS = [
    ("timestamp", "string", None),
    ("severity_text", "string", None),
    ("body", "string", None),
    ("service.name", "string", "resource"),
]

TRACE_SELECT_FIELDS = [
    ("traceID", "string", None),
    ("spanID", "string", None),
    ("parentSpanID", "string", None),
    ("service.name", "string", "resource"),
    ("name", "string", None),
    ("durationNano", "int64", None),
    ("timestamp", "string", None),
    ("hasError", "bool", None),
    ("statusCode", "string", None),
    ("statusCodeString", "string", None),
    ("httpMethod", "string", None),
    ("httpUrl", "string", None),
    ("spanKind", "string", None),
    ("rpcMethod", "string", None),
    ("kind", "int32", None),
]


def _select_fields(signal: str, fields: list[tuple[str, str, str | None]]) -> list[SelectField]:
    return [SelectField(name=name, field_data_type=dtype, signal=signal, field_context=ctx) for name, dtype, ctx in fields]


def _filter(expression: str) -> FilterExpression | None:
    return FilterExpression(expression=expression) if expression else None


def _raw_spec(name: str, signal: str, filter_expression: str, limit: int, offset: int = 0) -> QuerySpec:
    fields = LOG_SELECT_FIELDS if signal == SIGNAL_LOGS else TRACE_SELECT_FIELDS
    return QuerySpec(
        name=name,
        signal=signal,
        filter=_filter(filter_expression),
        limit=limit,
        offset=offset,
        order=[OrderBy(key=FieldKey(name="timestamp"), direction="desc")],
        select_fields=_select_fields(signal, fields),
    )


def _structured(start: int, end: int, request_type: str, specs: list[QuerySpec]) -> StructuredQuery:
    return StructuredQuery(
        schema_version=SCHEMA_VERSION,
        start=start,
        end=end,
        request_type=request_type,
        composite_query=CompositeQuery(queries=[Query(type=BUILDER_QUERY, spec=spec) for spec in specs]),
        format_options=FormatOptions(format_table_result_for_ui=False, fill_gaps=False),
    )


def build_logs_query(start: int, end: int, filter_expression: str, limit: int, offset: int = 0) -> StructuredQuery:
    """Raw log listing, newest first."""
    return _structured(start, end, REQUEST_RAW, [_raw_spec("A", SIGNAL_LOGS, filter_expression, limit, offset)])


def build_traces_query(start: int, end: int, filter_expression: str, limit: int) -> StructuredQuery:
    """Raw span listing, newest first."""
    return _structured(start, end, REQUEST_RAW, [_raw_spec("A", SIGNAL_TRACES, filter_expression, limit)])


def build_aggregate_query(
    signal: str,
    start: int,
    end: int,
    aggregation_expr: str,
    filter_expression: str,
    group_by: list[SelectField],
    order_expr: str,
    order_dir: str,
    limit: int,
) -> StructuredQuery:
    """Scalar aggregation such as ``p99(duration)`` grouped by fields."""
    spec = QuerySpec(
        name="A",
        signal=signal,
        filter=_filter(filter_expression),
        limit=limit,
        order=[OrderBy(key=FieldKey(name=order_expr), direction=order_dir)],
        aggregations=[{"expression": aggregation_expr}],
        group_by=group_by,
    )
    return _structured(start, end, REQUEST_SCALAR, [spec])


def build_trace_details_query(
    trace_id_filter: str, start: int, end: int, include_spans: bool = True, include_logs: bool = False
) -> StructuredQuery:
    """Spans of one trace and/or the logs emitted during it.

    Legs are named ``traces`` and ``logs`` so results can be told apart.
    """
    specs = []
    if include_spans:
        specs.append(_raw_spec("traces", SIGNAL_TRACES, trace_id_filter, 1000))
    if include_logs:
        specs.append(_raw_spec("logs", SIGNAL_LOGS, trace_id_filter, 100))
    return _structured(start, end, REQUEST_RAW, specs)
