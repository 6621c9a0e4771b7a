"""Repositories for stock level settings and stock alerts."""

from stockkeeping.domain import stockkeeping
from stockkeeping.shared.pagination import SCAN_LIMIT
from stockkeeping.shared.tenancy import get_owned

from .alert import AlertStatus, StockAlert
from .setting import StockLevelSetting


def _same_warehouse(row, warehouse_id) -> bool:
    return (str(row.warehouse_id) if row.warehouse_id else None) == (str(warehouse_id) if warehouse_id else None)


@stockkeeping.repository(part_of=StockLevelSetting)
class StockLevelSettingRepository:
    def get_for_tenant(self, setting_id, tenant_id) -> StockLevelSetting:
        return get_owned(self, setting_id, tenant_id, "StockLevelSetting")

    def for_tenant(self, tenant_id, **filters):
        return self._dao.query.filter(tenant_id=str(tenant_id), **filters)

    def find_for_product(self, tenant_id, product_id, warehouse_id=None) -> StockLevelSetting | None:
        """The setting registered for exactly this product/warehouse pair."""
        rows = self.for_tenant(tenant_id, product_id=str(product_id)).limit(SCAN_LIMIT).all().items
        return next((row for row in rows if _same_warehouse(row, warehouse_id)), None)

    def effective_for(self, tenant_id, product_id, warehouse_id=None) -> StockLevelSetting | None:
        """The active warehouse-specific setting, falling back to the tenant-wide one."""
        for scope in (warehouse_id, None) if warehouse_id else (None,):
            setting = self.find_for_product(tenant_id, product_id, scope)
            if setting is not None and setting.is_active:
                return setting
        return None

    def configured_products(self, tenant_id, warehouse_id=None) -> set[str]:
        """Products with an active setting that applies to the warehouse (or tenant-wide)."""
        rows = self.for_tenant(tenant_id, is_active=True).limit(SCAN_LIMIT).all().items
        return {
            str(row.product_id)
            for row in rows
            if not row.warehouse_id or warehouse_id is None or str(row.warehouse_id) == str(warehouse_id)
        }


@stockkeeping.repository(part_of=StockAlert)
class StockAlertRepository:
    def get_for_tenant(self, alert_id, tenant_id) -> StockAlert:
        return get_owned(self, alert_id, tenant_id, "StockAlert")

    def for_tenant(self, tenant_id, **filters):
        return self._dao.query.filter(tenant_id=str(tenant_id), **filters)

    def find_active(self, tenant_id, product_id, alert_type: str, warehouse_id=None) -> StockAlert | None:
        """The ACTIVE alert of this key, if one exists."""
        rows = (
            self.for_tenant(
                tenant_id, product_id=str(product_id), alert_type=alert_type, status=AlertStatus.ACTIVE.value
            )
            .limit(SCAN_LIMIT)
            .all()
            .items
        )
        return next(
            (row for row in rows if _same_warehouse(row, warehouse_id)),
            None,
        )

    def active_for_product(self, tenant_id, product_id, warehouse_id=None) -> list[StockAlert]:
        """ACTIVE alerts of a product; every warehouse when ``warehouse_id`` is omitted."""
        filters = {"product_id": str(product_id), "status": AlertStatus.ACTIVE.value}
        if warehouse_id is not None:
            filters["warehouse_id"] = str(warehouse_id)
        return list(self.for_tenant(tenant_id, **filters).limit(SCAN_LIMIT).all().items)
