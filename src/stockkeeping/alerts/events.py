"""Domain events for stock level settings and stock alerts."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping


@stockkeeping.event(part_of="StockLevelSetting")
class StockLevelSettingDefined:
    __version__ = "v1"

    setting_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    warehouse_id = Identifier()
    minimum_level = Integer()
    reorder_point = Integer()
    reorder_quantity = Integer()
    maximum_level = Integer()
    defined_at = DateTime(required=True)


@stockkeeping.event(part_of="StockLevelSetting")
class StockLevelSettingChanged:
    __version__ = "v1"

    setting_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    minimum_level = Integer()
    reorder_point = Integer()
    reorder_quantity = Integer()
    maximum_level = Integer()
    is_active = Boolean(default=True)
    changed_at = DateTime(required=True)


@stockkeeping.event(part_of="StockAlert")
class StockAlertRaised:
    """A product crossed a threshold and no open alert covered it yet."""

    __version__ = "v1"

    alert_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    warehouse_id = Identifier()
    alert_type = String(required=True)
    priority = String(required=True)
    current_quantity = Integer(default=0)
    minimum_level = Integer()
    deficit = Integer()
    raised_at = DateTime(required=True)


@stockkeeping.event(part_of="StockAlert")
class StockAlertRefreshed:
    """An open alert was brought up to date with the latest stock figures."""

    __version__ = "v1"

    alert_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    priority = String(required=True)
    current_quantity = Integer(default=0)
    deficit = Integer()
    refreshed_at = DateTime(required=True)


@stockkeeping.event(part_of="StockAlert")
class StockAlertAcknowledged:
    __version__ = "v1"

    alert_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    acknowledged_by = String(required=True)
    acknowledged_at = DateTime(required=True)


@stockkeeping.event(part_of="StockAlert")
class StockAlertSnoozed:
    __version__ = "v1"

    alert_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    snoozed_until = DateTime(required=True)


@stockkeeping.event(part_of="StockAlert")
class StockAlertResolved:
    __version__ = "v1"

    alert_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    resolved_by = String()
    resolved_at = DateTime(required=True)
