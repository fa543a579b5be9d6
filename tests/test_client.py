"""Unit tests for the SigNoz HTTP client."""

import asyncio
import json

import httpx
import pytest

from signoz_mcp.client import API_KEY_HEADER, SigNozClient
from signoz_mcp.errors import BackendError
from signoz_mcp.querybuilder import build_logs_query
from tests.fakes import FakeSigNozBackend


def make_client(backend, api_key="secret"):
    return SigNozClient("https://signoz.test/", api_key, transport=backend.transport)


class TestRequests:
    def test_api_key_header_and_base_url(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/dashboards", {"status": "success", "data": []})

        result = asyncio.run(make_client(backend).list_dashboards())

        assert result == {"status": "success", "data": []}
        request = backend.last_request
        assert request.headers[API_KEY_HEADER] == "secret"
        assert request.headers["content-type"] == "application/json"
        assert str(request.url) == "https://signoz.test/api/v1/dashboards"

    def test_active_alerts_use_alertmanager_endpoint(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/alerts", {"data": []})

        asyncio.run(make_client(backend).list_alerts(active_only=True))

        params = backend.last_request.url.params
        assert (params["active"], params["inhibited"], params["silenced"]) == ("true", "true", "false")

    def test_all_alerts_use_rules_endpoint(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/rules", {"data": {"rules": []}})

        asyncio.run(make_client(backend).list_alerts(active_only=False))

        assert backend.last_request.url.path == "/api/v1/rules"

    def test_services_send_string_nanoseconds(self):
        backend = FakeSigNozBackend()
        backend.add("POST", "/api/v1/services", [])

        asyncio.run(make_client(backend).list_services(1_000_000_000, 2_000_000_000))

        assert backend.last_json() == {"start": "1000000000", "end": "2000000000"}

    def test_query_range_posts_payload(self):
        backend = FakeSigNozBackend()
        query = build_logs_query(1, 2, "", 10)

        asyncio.run(make_client(backend).query_range(query))

        assert backend.last_request.method == "POST"
        assert backend.last_json() == query.to_payload()

    def test_field_values_scope_to_metric(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/fields/values", {"data": {"values": {}}})

        asyncio.run(make_client(backend).get_field_values("metrics", "host.name", "web", "cpu_usage"))

        params = backend.last_request.url.params
        assert dict(params) == {"signal": "metrics", "name": "host.name", "searchText": "web", "metricName": "cpu_usage"}

    def test_field_keys_without_metric(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/fields/keys", {"data": {}})

        asyncio.run(make_client(backend).get_field_keys("logs"))

        assert "metricName" not in backend.last_request.url.params


class TestResponses:
    def test_empty_body_is_empty_dict(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/rules/abc", "")

        assert asyncio.run(make_client(backend).get_alert("abc")) == {}

    def test_non_json_body_returned_as_text(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/rules/abc", "plain text")

        assert asyncio.run(make_client(backend).get_alert("abc")) == "plain text"

    def test_error_status_carries_body(self):
        backend = FakeSigNozBackend()
        backend.add("GET", "/api/v1/dashboards/missing", {"error": "not found"}, status=404)

        with pytest.raises(BackendError) as exc_info:
            asyncio.run(make_client(backend).get_dashboard("missing"))

        assert exc_info.value.status_code == 404
        assert json.loads(exc_info.value.body) == {"error": "not found"}
        assert str(exc_info.value).startswith("unexpected status 404: ")

    def test_transport_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = SigNozClient("https://signoz.test", "secret", transport=httpx.MockTransport(refuse))

        with pytest.raises(BackendError) as exc_info:
            asyncio.run(client.list_dashboards())

        assert exc_info.value.status_code is None
        assert str(exc_info.value) == "failed to reach SigNoz: connection refused"


def test_repr_hides_key():
    client = SigNozClient("https://signoz.test", "secret")
    assert "secret" not in repr(client)
