"""Repository for the Transfer aggregate."""

from stockkeeping.domain import stockkeeping
from stockkeeping.shared.pagination import SCAN_LIMIT
from stockkeeping.shared.tenancy import get_owned

from .transfer import ACTIVE_STATUSES, Transfer


@stockkeeping.repository(part_of=Transfer)
class TransferRepository:
    def get_for_tenant(self, transfer_id, tenant_id) -> Transfer:
        return get_owned(self, transfer_id, tenant_id, "Transfer")

    def for_tenant(self, tenant_id, **filters):
        return self._dao.query.filter(tenant_id=str(tenant_id), **filters)

    def find_by_code(self, tenant_id, transfer_code: str) -> Transfer | None:
        return self.for_tenant(tenant_id, transfer_code=transfer_code).all().first

    def active(self, tenant_id) -> list[Transfer]:
        statuses = [status.value for status in ACTIVE_STATUSES]
        return list(self.for_tenant(tenant_id, status__in=statuses).limit(SCAN_LIMIT).all().items)

    def active_for_item(self, tenant_id, inventory_item_id) -> Transfer | None:
        """The PENDING or IN_TRANSIT transfer holding an item, if any."""
        return next((t for t in self.active(tenant_id) if t.holds_item(inventory_item_id)), None)
