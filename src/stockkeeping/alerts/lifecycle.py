"""Alert lifecycle — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from stockkeeping.alerts.alert import StockAlert
from stockkeeping.domain import stockkeeping
from stockkeeping.utils.logging import get_logger

logger = get_logger(__name__)


@stockkeeping.command(part_of="StockAlert")
class AcknowledgeAlert:
    tenant_id = Identifier(required=True)
    alert_id = Identifier(required=True)
    user_id = String(required=True, max_length=100)
    note = Text()


@stockkeeping.command(part_of="StockAlert")
class SnoozeAlert:
    tenant_id = Identifier(required=True)
    alert_id = Identifier(required=True)
    days = Integer(required=True)
    note = Text()


@stockkeeping.command(part_of="StockAlert")
class ResolveAlert:
    tenant_id = Identifier(required=True)
    alert_id = Identifier(required=True)
    resolved_by = String(max_length=100)
    note = Text()


@stockkeeping.command(part_of="StockAlert")
class ResolveAlertsForProduct:
    """Resolve every ACTIVE alert of a product, e.g. after replenishment."""

    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    warehouse_id = Identifier()
    resolved_by = String(max_length=100)
    note = Text()


@stockkeeping.command_handler(part_of=StockAlert)
class AlertLifecycleHandler:
    @handle(AcknowledgeAlert)
    def acknowledge_alert(self, command):
        repo = current_domain.repository_for(StockAlert)
        alert = repo.get_for_tenant(command.alert_id, command.tenant_id)
        alert.acknowledge(command.user_id, command.note)
        repo.add(alert)

    @handle(SnoozeAlert)
    def snooze_alert(self, command):
        repo = current_domain.repository_for(StockAlert)
        alert = repo.get_for_tenant(command.alert_id, command.tenant_id)
        alert.snooze(command.days, command.note)
        repo.add(alert)
        return alert.snoozed_until

    @handle(ResolveAlert)
    def resolve_alert(self, command):
        repo = current_domain.repository_for(StockAlert)
        alert = repo.get_for_tenant(command.alert_id, command.tenant_id)
        alert.resolve(command.resolved_by, command.note)
        repo.add(alert)

    @handle(ResolveAlertsForProduct)
    def resolve_alerts_for_product(self, command):
        repo = current_domain.repository_for(StockAlert)
        alerts = repo.active_for_product(command.tenant_id, command.product_id, command.warehouse_id)
        for alert in alerts:
            alert.resolve(command.resolved_by, command.note)
            repo.add(alert)

        logger.info(
            "Alerts resolved for product",
            tenant_id=str(command.tenant_id),
            product_id=str(command.product_id),
            resolved=len(alerts),
        )
        return len(alerts)
