"""Reshape raw SigNoz responses into compact, agent-friendly lists."""

import logging
import re
from typing import Any

from signoz_mcp.errors import ToolArgumentError

logger = logging.getLogger(__name__)


def extract_items(response: Any, *nested_keys: str) -> list[Any]:
    """Pull the item list out of a SigNoz response.

    Handles a bare JSON array, a ``{"status", "data": [...]}`` envelope, and
    ``data`` objects that hold the list under one of ``nested_keys``.
    """
    if isinstance(response, list):
        return response
    if not isinstance(response, dict):
        return []

    data = response.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in nested_keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def _first_string(*candidates: Any) -> str:
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return ""


def simplify_alert(item: dict[str, Any]) -> dict[str, str] | None:
    """Reduce an alert or rule to name, rule id, severity, timing and state.

    Alerts come from ``/api/v1/alerts`` (Alertmanager shape, details in
    ``labels``) or ``/api/v1/rules`` (rule shape, ``alert`` and ``state`` at
    the top level). Entries without any rule id are dropped.
    """
    labels = item.get("labels") if isinstance(item.get("labels"), dict) else {}
    status = item.get("status") if isinstance(item.get("status"), dict) else {}

    rule_id = _first_string(item.get("id"), item.get("ruleId"), labels.get("ruleId"), labels.get("id"))
    if not rule_id:
        return None
    return {
        "alertname": _first_string(item.get("alert"), item.get("alertname"), labels.get("alertname"), item.get("name")),
        "ruleId": rule_id,
        "severity": _first_string(item.get("severity"), labels.get("severity")),
        "startsAt": _first_string(item.get("startsAt")),
        "endsAt": _first_string(item.get("endsAt")),
        "state": _first_string(item.get("state"), status.get("state")),
    }


def simplify_alerts(response: Any, active_only: bool) -> list[dict[str, str]]:
    """Simplified alerts; with ``active_only`` false only inactive rules are kept."""
    alerts = []
    for item in extract_items(response, "rules", "items", "alerts"):
        if not isinstance(item, dict):
            continue
        alert = simplify_alert(item)
        if alert is not None:
            alerts.append(alert)

    if not active_only:
        alerts = [alert for alert in alerts if alert["state"] == "inactive"]
        logger.info(f"Filtered alerts to inactive rules: {len(alerts)}")
    return alerts


def simplify_dashboards(response: Any) -> list[dict[str, Any]]:
    """Keep only identifying fields of each dashboard; panels are dropped."""
    dashboards = []
    for item in extract_items(response):
        if not isinstance(item, dict):
            continue
        data = item.get("data") if isinstance(item.get("data"), dict) else {}
        dashboards.append(
            {
                "uuid": item.get("id"),
                "name": data.get("title"),
                "description": data.get("description"),
                "tags": data.get("tags"),
                "createdAt": item.get("createdAt"),
                "updatedAt": item.get("updatedAt"),
                "createdBy": item.get("createdBy"),
                "updatedBy": item.get("updatedBy"),
            }
        )
    return dashboards


def filter_dashboards(dashboards: list[dict[str, Any]], name_pattern: str) -> list[dict[str, Any]]:
    """Keep dashboards whose name or description matches ``name_pattern``."""
    if not name_pattern:
        return dashboards
    try:
        pattern = re.compile(name_pattern, re.IGNORECASE)
    except re.error as e:
        raise ToolArgumentError(
            f'invalid "namePattern" regex "{name_pattern}": {e}. Example: {{"namePattern": "checkout|payments"}}'
        ) from e
    return [
        dashboard
        for dashboard in dashboards
        if pattern.search(str(dashboard.get("name") or "")) or pattern.search(str(dashboard.get("description") or ""))
    ]


def extract_metric_keys(response: Any) -> list[Any]:
    """Metric keys live under ``data.attributeKeys``."""
    if isinstance(response, dict) and isinstance(response.get("data"), dict):
        keys = response["data"].get("attributeKeys")
        if isinstance(keys, list):
            return keys
    return extract_items(response)


def alert_service(response: Any) -> str:
    """Service name from an alert rule's labels, if the rule has one."""
    data = response.get("data") if isinstance(response, dict) else None
    labels = data.get("labels") if isinstance(data, dict) else None
    if not isinstance(labels, dict):
        return ""
    return _first_string(labels.get("service_name"), labels.get("service"))
