"""Tests for aggregation argument compilation."""

from __future__ import annotations

import pytest

from signoz_mcp import filters
from signoz_mcp.aggregation import (
    ALLOWED_AGGREGATIONS,
    bool_arg,
    compile_aggregation,
    compile_log_search,
    int_arg,
    parse_group_by,
    parse_order_by,
)
from signoz_mcp.errors import ToolArgumentError


def test_scenario_p99_grouped_ascending():
    request = compile_aggregation(
        {
            "aggregation": "p99",
            "aggregateOn": "duration",
            "groupBy": "service.name, region",
            "orderBy": "p99(duration) asc",
            "limit": "5",
            "timeRange": "1h",
        },
        "traces",
    )

    assert request.expression == "p99(duration)"
    assert [field.name for field in request.group_by] == ["service.name", "region"]
    assert all(field.signal == "traces" for field in request.group_by)
    assert (request.order_expr, request.order_dir) == ("p99(duration)", "asc")
    assert request.limit == 5
    assert request.end - request.start == 3_600_000

    payload = request.to_query().to_payload()
    spec = payload["compositeQuery"]["queries"][0]["spec"]
    assert payload["requestType"] == "scalar"
    assert spec["aggregations"] == [{"expression": "p99(duration)"}]
    assert spec["order"] == [{"key": {"name": "p99(duration)"}, "direction": "asc"}]


def test_defaults():
    request = compile_aggregation({"aggregation": "count"}, "logs")

    assert request.expression == "count()"
    assert request.group_by == []
    assert (request.order_expr, request.order_dir) == ("count()", "desc")
    assert request.limit == 10
    assert request.filter_expression == ""
    assert request.end - request.start == 3_600_000


@pytest.mark.parametrize("verb", ["count", "rate"])
def test_field_optional_for_count_and_rate(verb):
    assert compile_aggregation({"aggregation": verb}, "traces").expression == f"{verb}()"


def test_verb_is_case_insensitive():
    assert compile_aggregation({"aggregation": "AVG", "aggregateOn": "durationNano"}, "traces").expression == (
        "avg(durationNano)"
    )


class TestErrors:
    def test_missing_aggregation(self):
        with pytest.raises(ToolArgumentError) as exc_info:
            compile_aggregation({}, "logs")
        message = str(exc_info.value)
        assert message.startswith('"aggregation" is required. Supported values: ')
        assert ALLOWED_AGGREGATIONS in message
        assert '{"aggregation": "count", "groupBy": "service.name"}' in message

    def test_invalid_aggregation(self):
        with pytest.raises(ToolArgumentError, match='invalid aggregation "median"'):
            compile_aggregation({"aggregation": "median"}, "logs")

    def test_missing_aggregate_on(self):
        with pytest.raises(ToolArgumentError) as exc_info:
            compile_aggregation({"aggregation": "avg"}, "traces")
        assert str(exc_info.value) == (
            '"aggregateOn" is required for "avg" aggregation. Specify the field to aggregate, '
            'e.g. {"aggregation": "avg", "aggregateOn": "duration"}'
        )

    def test_invalid_limit(self):
        with pytest.raises(ToolArgumentError, match='invalid "limit" value "ten": must be a number'):
            compile_aggregation({"aggregation": "count", "limit": "ten"}, "logs")

    def test_invalid_time_range(self):
        with pytest.raises(ToolArgumentError, match="invalid time range format"):
            compile_aggregation({"aggregation": "count", "timeRange": "yesterday"}, "logs")


class TestFilters:
    def test_log_shortcuts(self):
        request = compile_aggregation(
            {
                "aggregation": "count",
                "filter": "k8s.namespace.name = 'prod'",
                "service": "checkout",
                "severity": "ERROR",
                "searchText": "timeout",
            },
            "logs",
        )
        assert request.filter_expression == (
            "(k8s.namespace.name = 'prod') AND service.name = 'checkout' "
            "AND severity_text = 'ERROR' AND body CONTAINS 'timeout'"
        )

    def test_trace_shortcuts(self):
        request = compile_aggregation(
            {"aggregation": "count", "service": "api", "operation": "GET /users", "error": "true"},
            "traces",
        )
        assert request.filter_expression == "service.name = 'api' AND name = 'GET /users' AND hasError = true"

    def test_preset_filter_comes_first(self):
        request = compile_aggregation({"aggregation": "count", "service": "api"}, "traces", preset_filter="kind = 2")
        assert request.filter_expression == "(kind = 2) AND service.name = 'api'"

    def test_values_are_quoted(self):
        request = compile_aggregation({"aggregation": "count", "service": "o'reilly"}, "logs")
        assert request.filter_expression == "service.name = 'o\\'reilly'"

    def test_or_filter_keeps_service_scope(self):
        request = compile_aggregation(
            {
                "aggregation": "count",
                "filter": "severity_text = 'ERROR' OR severity_text = 'FATAL'",
                "service": "checkout",
            },
            "logs",
        )
        assert request.filter_expression == (
            "(severity_text = 'ERROR' OR severity_text = 'FATAL') AND service.name = 'checkout'"
        )

    def test_or_query_keeps_preset_scope(self):
        request = compile_log_search(
            {"query": "k8s.namespace.name = 'a' OR k8s.namespace.name = 'b'"},
            preset_filter="service.name in ['api']",
        )
        assert request.filter_expression == (
            "(service.name in ['api']) AND (k8s.namespace.name = 'a' OR k8s.namespace.name = 'b')"
        )

    @pytest.mark.parametrize(
        "error, rendered",
        [("true", "hasError = true"), ("yes", "hasError = true"), ("1", "hasError = true"), ("0", "hasError = false")],
    )
    def test_error_flag_spellings(self, error, rendered):
        request = compile_aggregation({"aggregation": "count", "error": error}, "traces")
        assert request.filter_expression == rendered

    def test_unknown_error_flag_is_rejected(self):
        with pytest.raises(ToolArgumentError) as exc_info:
            compile_aggregation({"aggregation": "count", "error": "maybe"}, "traces")
        assert str(exc_info.value) == (
            'invalid "error" value "maybe": use "true" or "false", e.g. {"error": "true"}'
        )

    def test_metrics_use_free_form_filter_only(self):
        request = compile_aggregation({"aggregation": "count", "service": "api", "filter": "host = 'a'"}, "metrics")
        assert request.filter_expression == "host = 'a'"


def test_group_by_accepts_list():
    fields = parse_group_by({"groupBy": ["service.name", " ", "host"]}, "logs")
    assert [field.name for field in fields] == ["service.name", "host"]


@pytest.mark.parametrize(
    "order_by, expected",
    [
        ("", ("avg(x)", "desc")),
        ("count() ASC", ("count()", "asc")),
        ("count() desc", ("count()", "desc")),
        ("service.name", ("service.name", "desc")),
    ],
)
def test_parse_order_by(order_by, expected):
    assert parse_order_by({"orderBy": order_by}, "avg(x)") == expected


@pytest.mark.parametrize("value, expected", [(None, 7), ("", 7), ("12", 12), (3, 3), (0, 7), ("-4", 7)])
def test_int_arg(value, expected):
    assert int_arg({"limit": value}, "limit", 7) == expected


def test_int_arg_rejects_bool():
    with pytest.raises(ToolArgumentError):
        int_arg({"limit": True}, "limit", 7)


@pytest.mark.parametrize(
    "value, expected",
    [(None, True), ("", True), (False, False), ("no", False), (" Yes ", True), ("FALSE", False), ("1", True)],
)
def test_bool_arg(value, expected):
    assert bool_arg(value, "activeOnly", True) is expected


def test_bool_arg_rejects_other_text():
    with pytest.raises(ToolArgumentError, match='"activeOnly": "true"'):
        bool_arg("enabled", "activeOnly", True)


def test_compile_log_search():
    request = compile_log_search(
        {"query": "body CONTAINS 'panic'", "severity": "FATAL", "limit": 20, "offset": "40", "start": 1000, "end": "2000"},
        preset_filter=filters.one_of("service.name", ["api"]),
    )
    assert request.filter_expression == (
        "service.name in ['api'] AND (body CONTAINS 'panic') AND severity_text = 'FATAL'"
    )
    assert (request.limit, request.offset) == (20, 40)
    assert (request.start, request.end) == (1000, 2000)

    spec = request.to_query().queries[0].spec
    assert spec.offset == 40
    assert spec.signal == "logs"


def test_compile_log_search_defaults():
    request = compile_log_search({})
    assert (request.limit, request.offset) == (100, 0)
    assert request.filter_expression == ""


@pytest.mark.parametrize(
    "args, expression",
    [
        ({"aggregation": "avg", "aggregateOn": "duration"}, "avg(duration)"),
        ({"aggregation": "count", "aggregateOn": ""}, "count()"),
        ({"aggregation": "count", "aggregateOn": "duration"}, "count(duration)"),
    ],
)
def test_expression_composition(args, expression):
    assert compile_aggregation(args, "traces").expression == expression
