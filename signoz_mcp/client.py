"""Async HTTP client for the SigNoz REST API."""

import json
import logging
from typing import Any

import httpx

from signoz_mcp.errors import BackendError
from signoz_mcp.querybuilder import StructuredQuery

logger = logging.getLogger(__name__)

API_KEY_HEADER = "SIGNOZ-API-KEY"
DEFAULT_TIMEOUT = 600.0


class SigNozClient:
    """Thin wrapper over the SigNoz endpoints used by the tools.

    Creating an instance does no I/O; a connection is opened per call.

    Args:
        base_url: SigNoz base URL, e.g. ``https://signoz.example.com``.
        api_key: Value sent in the ``SIGNOZ-API-KEY`` header.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def __repr__(self) -> str:
        return f"SigNozClient(base_url={self.base_url!r})"

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        headers = {"Content-Type": "application/json", API_KEY_HEADER: self.api_key}
        logger.debug(f"{method} {path} params={params}")
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, headers=headers, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, path, params=params, json=body)
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise BackendError(None, str(e)) from e

        if not response.is_success:
            logger.warning(f"{method} {path} returned {response.status_code}")
            raise BackendError(response.status_code, response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except json.JSONDecodeError:
            return response.text

    # Metrics

    async def list_metric_keys(self) -> Any:
        return await self._request("GET", "/api/v1/metrics/filters/keys")

    async def search_metric_by_text(self, search_text: str) -> Any:
        params = {"dataSource": "metrics", "searchText": search_text}
        return await self._request("GET", "/api/v3/autocomplete/aggregate_attributes", params=params)

    async def get_metrics_available_fields(self, search_text: str = "") -> Any:
        params = {"aggregateOperator": "avg", "searchText": search_text, "dataSource": "metrics"}
        return await self._request("GET", "/api/v3/autocomplete/aggregate_attributes", params=params)

    # Alerts

    async def list_alerts(self, active_only: bool = True) -> Any:
        """Firing alerts, or every rule (with its state) when ``active_only`` is false."""
        if not active_only:
            return await self._request("GET", "/api/v1/rules")
        params = {"active": "true", "inhibited": "true", "silenced": "false"}
        return await self._request("GET", "/api/v1/alerts", params=params)

    async def get_alert(self, rule_id: str) -> Any:
        return await self._request("GET", f"/api/v1/rules/{rule_id}")

    async def get_alert_history(self, rule_id: str, request: dict[str, Any]) -> Any:
        return await self._request("POST", f"/api/v1/rules/{rule_id}/history/timeline", body=request)

    # Dashboards

    async def list_dashboards(self) -> Any:
        return await self._request("GET", "/api/v1/dashboards")

    async def get_dashboard(self, uuid: str) -> Any:
        return await self._request("GET", f"/api/v1/dashboards/{uuid}")

    # Services

    async def list_services(self, start_ns: int, end_ns: int) -> Any:
        body = {"start": str(start_ns), "end": str(end_ns)}
        return await self._request("POST", "/api/v1/services", body=body)

    async def get_service_top_operations(self, start_ns: int, end_ns: int, service: str, tags: list[Any]) -> Any:
        body = {"start": str(start_ns), "end": str(end_ns), "service": service, "tags": tags}
        return await self._request("POST", "/api/v1/service/top_operations", body=body)

    # Queries

    async def query_range(self, query: StructuredQuery) -> Any:
        return await self._request("POST", "/api/v5/query_range", body=query.to_payload())

    # Log views

    async def list_log_views(self) -> Any:
        return await self._request("GET", "/api/v1/explorer/views", params={"sourcePage": "logs"})

    async def get_log_view(self, view_id: str) -> Any:
        return await self._request("GET", f"/api/v1/explorer/views/{view_id}")

    # Field metadata

    async def get_field_keys(self, signal: str, search_text: str = "", metric_name: str = "") -> Any:
        params = {"signal": signal, "searchText": search_text}
        if metric_name:
            params["metricName"] = metric_name
        return await self._request("GET", "/api/v1/fields/keys", params=params)

    async def get_field_values(self, signal: str, name: str, search_text: str = "", metric_name: str = "") -> Any:
        params = {"signal": signal, "name": name, "searchText": search_text}
        if metric_name:
            params["metricName"] = metric_name
        return await self._request("GET", "/api/v1/fields/values", params=params)
