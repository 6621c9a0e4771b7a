"""Read-side warehouse operations."""

from protean.utils.globals import current_domain

from stockkeeping.errors import NotFound
from stockkeeping.shared.pagination import Page, paginate
from stockkeeping.warehouse.warehouse import Warehouse


def get_warehouse(tenant_id, warehouse_id) -> Warehouse:
    return current_domain.repository_for(Warehouse).get_for_tenant(warehouse_id, tenant_id)


def get_warehouse_by_code(tenant_id, code: str) -> Warehouse:
    warehouse = current_domain.repository_for(Warehouse).find_by_code(tenant_id, code)
    if warehouse is None:
        raise NotFound("Warehouse", code)
    return warehouse


def get_default_warehouse(tenant_id) -> Warehouse | None:
    return current_domain.repository_for(Warehouse).find_default(tenant_id)


def list_warehouses(
    tenant_id,
    status: str | None = None,
    warehouse_type: str | None = None,
    offset: int | None = None,
    limit: int | None = None,
) -> Page:
    filters = {}
    if status is not None:
        filters["status"] = status
    if warehouse_type is not None:
        filters["warehouse_type"] = warehouse_type

    queryset = current_domain.repository_for(Warehouse).for_tenant(tenant_id, **filters)
    return paginate(queryset.order_by("code"), offset, limit)
