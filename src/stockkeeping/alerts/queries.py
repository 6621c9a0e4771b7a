"""Read-side alert operations."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from protean.utils.globals import current_domain

from stockkeeping.alerts.alert import AlertStatus, StockAlert, snooze_expired
from stockkeeping.alerts.setting import StockLevelSetting
from stockkeeping.shared.pagination import SCAN_LIMIT, Page, paginate


@dataclass(frozen=True)
class AlertSummary:
    """Counts of ACTIVE alerts."""

    total: int = 0
    by_priority: dict = field(default_factory=dict)
    by_type: dict = field(default_factory=dict)


def list_alerts(
    tenant_id,
    status: str | None = None,
    alert_type: str | None = None,
    priority: str | None = None,
    warehouse_id=None,
    product_id=None,
    offset: int | None = None,
    limit: int | None = None,
) -> Page:
    filters = {}
    if status is not None:
        filters["status"] = status
    if alert_type is not None:
        filters["alert_type"] = alert_type
    if priority is not None:
        filters["priority"] = priority
    if warehouse_id is not None:
        filters["warehouse_id"] = str(warehouse_id)
    if product_id is not None:
        filters["product_id"] = str(product_id)

    queryset = current_domain.repository_for(StockAlert).for_tenant(tenant_id, **filters)
    return paginate(queryset.order_by("-created_at"), offset, limit)


def alert_summary(tenant_id) -> AlertSummary:
    active = (
        current_domain.repository_for(StockAlert)
        .for_tenant(tenant_id, status=AlertStatus.ACTIVE.value)
        .limit(SCAN_LIMIT)
        .all()
        .items
    )
    return AlertSummary(
        total=len(active),
        by_priority=dict(Counter(alert.priority for alert in active)),
        by_type=dict(Counter(alert.alert_type for alert in active)),
    )


def due_snoozed_alerts(tenant_id, now: datetime | None = None) -> list[StockAlert]:
    """Snoozed alerts whose window has passed, for the caller to re-surface."""
    snoozed = (
        current_domain.repository_for(StockAlert)
        .for_tenant(tenant_id, status=AlertStatus.SNOOZED.value)
        .limit(SCAN_LIMIT)
        .all()
        .items
    )
    return [alert for alert in snoozed if snooze_expired(alert, now)]


def list_settings(tenant_id, product_id=None, active_only: bool = False, offset=None, limit=None) -> Page:
    filters = {}
    if product_id is not None:
        filters["product_id"] = str(product_id)
    if active_only:
        filters["is_active"] = True
    queryset = current_domain.repository_for(StockLevelSetting).for_tenant(tenant_id, **filters)
    return paginate(queryset.order_by("product_id"), offset, limit)
