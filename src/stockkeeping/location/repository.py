"""Repositories for location structures and locations."""

from stockkeeping.domain import stockkeeping
from stockkeeping.shared.pagination import SCAN_LIMIT
from stockkeeping.shared.tenancy import get_owned

from .location import Location, LocationStatus
from .structure import LocationStructure


@stockkeeping.repository(part_of=LocationStructure)
class LocationStructureRepository:
    def get_for_tenant(self, structure_id, tenant_id) -> LocationStructure:
        return get_owned(self, structure_id, tenant_id, "LocationStructure")

    def find_for_warehouse(self, tenant_id, warehouse_id) -> LocationStructure | None:
        return (
            self._dao.query.filter(tenant_id=str(tenant_id), warehouse_id=str(warehouse_id)).all().first
        )


@stockkeeping.repository(part_of=Location)
class LocationRepository:
    """Tenant-scoped location lookups. Soft-deleted rows are invisible by default."""

    def get_for_tenant(self, location_id, tenant_id) -> Location:
        return get_owned(self, location_id, tenant_id, "Location")

    def in_warehouse(self, tenant_id, warehouse_id, include_deleted: bool = False, **filters):
        criteria = {"tenant_id": str(tenant_id), "warehouse_id": str(warehouse_id), **filters}
        if not include_deleted:
            criteria["is_deleted"] = False
        return self._dao.query.filter(**criteria)

    def find_by_code(self, tenant_id, warehouse_id, code: str, include_deleted: bool = False) -> Location | None:
        return self.in_warehouse(tenant_id, warehouse_id, include_deleted, code=code.strip()).all().first

    def all_in_warehouse(self, tenant_id, warehouse_id) -> list[Location]:
        return list(self.in_warehouse(tenant_id, warehouse_id).limit(SCAN_LIMIT).all().items)

    def existing_codes(self, tenant_id, warehouse_id) -> set[str]:
        """Codes already issued in the warehouse, deleted ones included."""
        rows = self.in_warehouse(tenant_id, warehouse_id, include_deleted=True).limit(SCAN_LIMIT).all().items
        return {row.code for row in rows}

    def has_locations(self, tenant_id, warehouse_id) -> bool:
        return self.in_warehouse(tenant_id, warehouse_id).limit(1).all().total > 0

    def available(self, tenant_id, warehouse_id, zone: int | None = None) -> list[Location]:
        """ACTIVE, non-deleted locations ordered by code."""
        filters = {"status": LocationStatus.ACTIVE.value}
        if zone is not None:
            filters["zone"] = zone
        rows = self.in_warehouse(tenant_id, warehouse_id, **filters).order_by("code").limit(SCAN_LIMIT).all().items
        return [row for row in rows if row.headroom is None or row.headroom > 0]
