"""Alert evaluation — turns stock summaries into alerts.

Evaluation is pull-based: an external scheduler (or any caller) sends
``EvaluateStockAlerts`` whenever it wants thresholds re-checked. Repeated
runs on unchanged stock leave the alert set unchanged, because an ACTIVE
alert of the same (product, warehouse, type) is refreshed in place instead
of being duplicated. Once acknowledged or snoozed, an alert is left alone and
a breach that persists raises a fresh ACTIVE one.
"""

from dataclasses import dataclass

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from stockkeeping.alerts.alert import AlertPriority, AlertType, StockAlert
from stockkeeping.alerts.setting import StockLevelSetting
from stockkeeping.domain import stockkeeping
from stockkeeping.stock.aggregator import (
    BELOW_THRESHOLD,
    StockClassification,
    StockSummary,
    below_threshold,
    classify,
    summaries,
)
from stockkeeping.utils.logging import get_logger, tenant_context

logger = get_logger(__name__)

_PRIORITY_BY_CLASSIFICATION = {
    StockClassification.OUT_OF_STOCK: AlertPriority.CRITICAL,
    StockClassification.CRITICAL: AlertPriority.HIGH,
    StockClassification.LOW: AlertPriority.MEDIUM,
}


@dataclass(frozen=True)
class AlertOutcome:
    alert: StockAlert
    created: bool
    changed: bool


@dataclass(frozen=True)
class EvaluationReport:
    evaluated: int = 0
    raised: int = 0
    refreshed: int = 0
    unchanged: int = 0


def alert_message(alert_type: AlertType, current_quantity: int, threshold: int | None) -> str:
    if alert_type is AlertType.OUT_OF_STOCK:
        return "Out of stock. Reorder immediately."
    if alert_type is AlertType.LOW_STOCK:
        return f"Low stock: {current_quantity} available, minimum {threshold}"
    if alert_type is AlertType.OVERSTOCK:
        return f"Overstock: {current_quantity} available, maximum {threshold}"
    return "Stock alert"


def _upsert(tenant_id, summary: StockSummary, alert_type: AlertType, priority: AlertPriority, threshold, deficit):
    repo = current_domain.repository_for(StockAlert)
    message = alert_message(alert_type, summary.available, threshold)
    existing = repo.find_active(tenant_id, summary.product_id, alert_type.value, summary.warehouse_id)
    if existing is not None:
        changed = existing.refresh(summary.available, deficit, priority.value, message)
        if changed:
            repo.add(existing)
        return AlertOutcome(alert=existing, created=False, changed=changed)

    alert = StockAlert.raise_alert(
        tenant_id=tenant_id,
        product_id=summary.product_id,
        warehouse_id=summary.warehouse_id,
        alert_type=alert_type.value,
        priority=priority.value,
        current_quantity=summary.available,
        minimum_level=threshold if alert_type is not AlertType.OVERSTOCK else None,
        deficit=deficit,
        unit=summary.unit,
        message=message,
    )
    repo.add(alert)
    return AlertOutcome(alert=alert, created=True, changed=True)


def evaluate(tenant_id, summary: StockSummary, setting: StockLevelSetting | None = None) -> list[AlertOutcome]:
    """Raise or refresh the alerts one summary calls for.

    The floor comes from the items; an active setting supplies it when no
    item has one, and its maximum drives OVERSTOCK alerts.
    """
    if setting is not None and not setting.is_active:
        setting = None

    floor = summary.min_stock_level
    if floor is None and setting is not None:
        floor = setting.thresholds.minimum_level

    outcomes = []
    classification = classify(summary.available, floor)
    if classification in BELOW_THRESHOLD:
        alert_type = (
            AlertType.OUT_OF_STOCK if classification is StockClassification.OUT_OF_STOCK else AlertType.LOW_STOCK
        )
        deficit = max(0, (floor or 0) - summary.available)
        outcomes.append(
            _upsert(tenant_id, summary, alert_type, _PRIORITY_BY_CLASSIFICATION[classification], floor, deficit)
        )

    maximum = setting.thresholds.maximum_level if setting is not None else None
    if maximum is not None and summary.available > maximum:
        outcomes.append(_upsert(tenant_id, summary, AlertType.OVERSTOCK, AlertPriority.LOW, maximum, 0))

    return outcomes


def _candidates(tenant_id, warehouse_id, settings_repo) -> list[StockSummary]:
    """Products below their item floor, plus every product a setting covers."""
    candidates = {summary.product_id: summary for summary in below_threshold(tenant_id, warehouse_id)}
    configured = settings_repo.configured_products(tenant_id, warehouse_id) - set(candidates)
    if configured:
        for summary in summaries(tenant_id, warehouse_id, product_ids=configured):
            candidates[summary.product_id] = summary
    return [candidates[product_id] for product_id in sorted(candidates)]


@stockkeeping.command(part_of="StockAlert")
class EvaluateStockAlerts:
    """Re-check every product of a tenant (or one warehouse) against its thresholds."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier()


@stockkeeping.command_handler(part_of=StockAlert)
class StockAlertEvaluationHandler:
    @handle(EvaluateStockAlerts)
    def evaluate_stock_alerts(self, command):
        tenant_id = str(command.tenant_id)
        warehouse_id = str(command.warehouse_id) if command.warehouse_id else None

        with tenant_context(tenant_id, warehouse_id=warehouse_id):
            settings_repo = current_domain.repository_for(StockLevelSetting)
            counts = {"evaluated": 0, "raised": 0, "refreshed": 0, "unchanged": 0}
            for summary in _candidates(tenant_id, warehouse_id, settings_repo):
                setting = settings_repo.effective_for(tenant_id, summary.product_id, warehouse_id)
                counts["evaluated"] += 1
                for outcome in evaluate(tenant_id, summary, setting):
                    if outcome.created:
                        counts["raised"] += 1
                    elif outcome.changed:
                        counts["refreshed"] += 1
                    else:
                        counts["unchanged"] += 1

            report = EvaluationReport(**counts)
            logger.info("Stock alerts evaluated", **counts)
            return report
