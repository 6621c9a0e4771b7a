"""Repository for the Warehouse aggregate."""

from stockkeeping.domain import stockkeeping
from stockkeeping.shared.pagination import SCAN_LIMIT
from stockkeeping.shared.tenancy import get_owned

from .warehouse import Warehouse


@stockkeeping.repository(part_of=Warehouse)
class WarehouseRepository:
    """Tenant-scoped warehouse lookups plus the atomic default switch."""

    def get_for_tenant(self, warehouse_id, tenant_id) -> Warehouse:
        return get_owned(self, warehouse_id, tenant_id, "Warehouse")

    def for_tenant(self, tenant_id, **filters):
        """Queryset of the tenant's non-deleted warehouses."""
        return self._dao.query.filter(tenant_id=str(tenant_id), is_deleted=False, **filters)

    def find_by_code(self, tenant_id, code: str) -> Warehouse | None:
        return self.for_tenant(tenant_id, code=code.strip().upper()).all().first

    def find_default(self, tenant_id) -> Warehouse | None:
        return self.for_tenant(tenant_id, is_default=True).all().first

    def count_for_tenant(self, tenant_id) -> int:
        return self.for_tenant(tenant_id).all().total

    def set_default(self, warehouse: Warehouse) -> None:
        """Make ``warehouse`` the tenant's only default.

        Every other default of the tenant is cleared and the new default is
        set in the caller's unit of work, so no reader ever sees two.
        """
        previous = [
            other
            for other in self.for_tenant(warehouse.tenant_id, is_default=True).limit(SCAN_LIMIT).all().items
            if other.id != warehouse.id
        ]
        for other in previous:
            other.clear_default()
            self.add(other)

        warehouse.mark_default(previous_default_id=previous[0].id if previous else None)
        self.add(warehouse)
