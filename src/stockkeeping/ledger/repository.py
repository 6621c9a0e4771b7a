"""Repository for the Movement aggregate."""

from stockkeeping.domain import stockkeeping
from stockkeeping.shared.pagination import SCAN_LIMIT
from stockkeeping.shared.tenancy import get_owned

from .movement import Movement


@stockkeeping.repository(part_of=Movement)
class MovementRepository:
    def get_for_tenant(self, movement_id, tenant_id) -> Movement:
        return get_owned(self, movement_id, tenant_id, "Movement")

    def for_tenant(self, tenant_id, **filters):
        return self._dao.query.filter(tenant_id=str(tenant_id), **filters)

    def for_item(self, tenant_id, item_id) -> list[Movement]:
        """Every entry of one item in ledger order."""
        rows = self.for_tenant(tenant_id, inventory_item_id=str(item_id)).limit(SCAN_LIMIT).all().items
        return sorted(rows, key=lambda m: (m.performed_at, m.sequence))

    def in_period(self, tenant_id, start, end, warehouse_id=None) -> list[Movement]:
        filters = {"performed_at__gte": start, "performed_at__lte": end}
        if warehouse_id is not None:
            filters["warehouse_id"] = str(warehouse_id)
        return list(self.for_tenant(tenant_id, **filters).limit(SCAN_LIMIT).all().items)
