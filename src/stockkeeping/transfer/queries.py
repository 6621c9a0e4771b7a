"""Read-side transfer operations."""

from protean.utils.globals import current_domain

from stockkeeping.errors import NotFound
from stockkeeping.shared.pagination import Page, paginate
from stockkeeping.transfer.transfer import Transfer


def get_transfer(tenant_id, transfer_id) -> Transfer:
    return current_domain.repository_for(Transfer).get_for_tenant(transfer_id, tenant_id)


def get_transfer_by_code(tenant_id, transfer_code: str) -> Transfer:
    transfer = current_domain.repository_for(Transfer).find_by_code(tenant_id, transfer_code)
    if transfer is None:
        raise NotFound("Transfer", transfer_code)
    return transfer


def active_transfer_for_item(tenant_id, inventory_item_id) -> Transfer | None:
    return current_domain.repository_for(Transfer).active_for_item(tenant_id, inventory_item_id)


def list_transfers(
    tenant_id,
    status: str | None = None,
    source_warehouse_id=None,
    target_warehouse_id=None,
    offset: int | None = None,
    limit: int | None = None,
) -> Page:
    """Transfers of a tenant, newest first."""
    filters = {}
    if status is not None:
        filters["status"] = status
    if source_warehouse_id is not None:
        filters["source_warehouse_id"] = str(source_warehouse_id)
    if target_warehouse_id is not None:
        filters["target_warehouse_id"] = str(target_warehouse_id)

    queryset = current_domain.repository_for(Transfer).for_tenant(tenant_id, **filters)
    return paginate(queryset.order_by("-initiated_at"), offset, limit)
