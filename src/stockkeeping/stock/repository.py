"""Repository for the InventoryItem aggregate."""

from stockkeeping.domain import stockkeeping
from stockkeeping.shared.pagination import SCAN_LIMIT
from stockkeeping.shared.tenancy import get_owned

from .item import InventoryItem


@stockkeeping.repository(part_of=InventoryItem)
class InventoryItemRepository:
    def get_for_tenant(self, item_id, tenant_id) -> InventoryItem:
        return get_owned(self, item_id, tenant_id, "InventoryItem")

    def for_tenant(self, tenant_id, **filters):
        return self._dao.query.filter(tenant_id=str(tenant_id), is_deleted=False, **filters)

    def scan(self, tenant_id, **filters) -> list[InventoryItem]:
        return list(self.for_tenant(tenant_id, **filters).limit(SCAN_LIMIT).all().items)

    def for_product(self, tenant_id, product_id, warehouse_id=None) -> list[InventoryItem]:
        filters = {"product_id": str(product_id)}
        if warehouse_id is not None:
            filters["warehouse_id"] = str(warehouse_id)
        return self.scan(tenant_id, **filters)

    def find_matching(
        self, tenant_id, warehouse_id, product_id, serial_number=None, location_code=None
    ) -> InventoryItem | None:
        """The row holding this product (and serial/location) in a warehouse, if any."""
        candidates = self.scan(tenant_id, warehouse_id=str(warehouse_id), product_id=str(product_id))
        for item in candidates:
            if (item.serial_number or None) == (serial_number or None) and (item.location_code or None) == (
                location_code or None
            ):
                return item
        return None

    def stocked_in_warehouse(self, tenant_id, warehouse_id) -> bool:
        return self.for_tenant(tenant_id, warehouse_id=str(warehouse_id), quantity__gt=0).all().total > 0

    def referencing_location(self, tenant_id, warehouse_id, location_code) -> list[InventoryItem]:
        """Live rows that still point at a location code, empty ones included."""
        return self.scan(tenant_id, warehouse_id=str(warehouse_id), location_code=location_code)
