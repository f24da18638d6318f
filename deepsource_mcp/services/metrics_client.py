from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.data_models.models import Metric, MetricItem
from deepsource_mcp.infrastructure.error_handlers import is_error_with_message
from deepsource_mcp.infrastructure.exceptions import ClassifiedError
from deepsource_mcp.services import graphql_queries as gq
from deepsource_mcp.services.base_client import BaseDeepSourceClient, get_connection


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_metrics(data: Mapping[str, Any]) -> list[Metric]:
    repository = get_connection(data, "repository")
    metrics: list[Metric] = []
    for metric in repository.get("metrics") or []:
        if not isinstance(metric, Mapping):
            continue
        items = [
            MetricItem(
                id=str(item.get("id") or ""),
                key=str(item.get("key") or ""),
                threshold=(
                    _as_float(item["thresholdValue"])
                    if item.get("thresholdValue") is not None
                    else None
                ),
                latest_value=_as_float(item.get("value")),
                latest_value_display=str(
                    item.get("value") if item.get("value") is not None else "0"
                ),
                threshold_status=str(item.get("thresholdStatus") or cs.UNKNOWN),
            )
            for item in metric.get("items") or []
            if isinstance(item, Mapping)
        ]
        metrics.append(
            Metric(
                shortcode=str(metric.get("shortcode") or ""),
                name=str(metric.get("name") or ""),
                description=str(metric.get("description") or ""),
                positive_direction=str(metric.get("direction") or "UPWARD"),
                unit=str(metric.get("unit") or ""),
                is_reported=bool(metric.get("isReported", True)),
                is_threshold_enforced=bool(metric.get("isThresholdEnforced", False)),
                items=items,
            )
        )
    return metrics


class MetricsClient(BaseDeepSourceClient):
    async def get_quality_metrics(
        self, project_key: str, shortcode_in: Sequence[str] | None = None
    ) -> tuple[str | None, list[Metric]]:
        """Fetches the quality metrics of a project.

        Args:
            project_key: The project key.
            shortcode_in: Restricts the result to these metric shortcodes.

        Returns:
            tuple[str | None, list[Metric]]: The repository id, needed by the
                update mutations, and the metrics.
        """
        logger.info(
            ls.METRICS_FETCHING.format(key=project_key, shortcodes=shortcode_in)
        )
        try:
            project = await self.find_project_by_key(project_key)
            if project is None:
                return None, []

            data = await self.execute_graphql(
                gq.QUALITY_METRICS_QUERY,
                {
                    **self.project_variables(project),
                    "shortcodeIn": list(shortcode_in) if shortcode_in else None,
                },
            )
        except ClassifiedError as e:
            if is_error_with_message(e, cs.NONETYPE_MARKER):
                return None, []
            raise

        metrics = parse_metrics(data)
        repository_id = get_connection(data, "repository").get("id")
        logger.info(ls.METRICS_FETCHED.format(count=len(metrics)))
        return (str(repository_id) if repository_id else None), metrics

    async def set_metric_threshold(
        self,
        repository_id: str,
        metric_shortcode: str,
        metric_key: str,
        threshold_value: float | None,
    ) -> bool:
        """Sets or clears (with `None`) the threshold of a metric key."""
        logger.info(
            ls.METRIC_THRESHOLD_UPDATING.format(
                shortcode=metric_shortcode, key=metric_key, repository=repository_id
            )
        )
        data = await self.execute_graphql(
            gq.UPDATE_METRIC_THRESHOLD_MUTATION,
            {
                "repositoryId": repository_id,
                "metricShortcode": metric_shortcode,
                "metricKey": metric_key,
                "thresholdValue": threshold_value,
            },
        )
        return bool(get_connection(data, "updateMetricThreshold").get("success", True))

    async def update_metric_setting(
        self,
        repository_id: str,
        metric_shortcode: str,
        is_reported: bool,
        is_threshold_enforced: bool,
    ) -> bool:
        logger.info(
            ls.METRIC_SETTING_UPDATING.format(
                shortcode=metric_shortcode, repository=repository_id
            )
        )
        data = await self.execute_graphql(
            gq.UPDATE_METRIC_SETTING_MUTATION,
            {
                "repositoryId": repository_id,
                "metricShortcode": metric_shortcode,
                "isReported": is_reported,
                "isThresholdEnforced": is_threshold_enforced,
            },
        )
        return bool(get_connection(data, "updateMetricSetting").get("success", True))
