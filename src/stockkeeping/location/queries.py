"""Read-side location operations: code validation feedback, availability and listings."""

from protean.utils.globals import current_domain

from stockkeeping.location.location import Location, LocationStatus
from stockkeeping.location.structure import CodeRejection, CodeValidation, LocationStructure, validate
from stockkeeping.shared.pagination import Page, paginate


def get_structure(tenant_id, warehouse_id) -> LocationStructure | None:
    return current_domain.repository_for(LocationStructure).find_for_warehouse(tenant_id, warehouse_id)


def validate_code(tenant_id, warehouse_id, raw: str) -> CodeValidation:
    """Check a code for UI feedback: grammar, range, existence and usability."""
    result = validate(get_structure(tenant_id, warehouse_id), raw)
    if not result.is_valid:
        return result

    location = current_domain.repository_for(Location).find_by_code(tenant_id, warehouse_id, result.code)
    if location is None:
        return result.rejected(CodeRejection.NOT_EXISTS, f"Location {result.code} does not exist")
    if location.status == LocationStatus.INACTIVE.value:
        return result.rejected(CodeRejection.INACTIVE, f"Location {result.code} is inactive")

    return CodeValidation(
        code=result.code,
        zone=result.zone,
        shelf=result.shelf,
        bin=result.bin,
        location_id=str(location.id),
    )


def find_available_location(tenant_id, warehouse_id, preferred_zone: int | None = None) -> Location | None:
    """First ACTIVE location with headroom by code, trying the preferred zone first."""
    repo = current_domain.repository_for(Location)
    if preferred_zone is not None:
        in_zone = repo.available(tenant_id, warehouse_id, zone=preferred_zone)
        if in_zone:
            return in_zone[0]

    candidates = repo.available(tenant_id, warehouse_id)
    return candidates[0] if candidates else None


def list_locations(
    tenant_id,
    warehouse_id,
    status: str | None = None,
    zone: int | None = None,
    offset: int | None = None,
    limit: int | None = None,
) -> Page:
    filters = {}
    if status is not None:
        filters["status"] = status
    if zone is not None:
        filters["zone"] = zone

    queryset = current_domain.repository_for(Location).in_warehouse(tenant_id, warehouse_id, **filters)
    return paginate(queryset.order_by("code"), offset, limit)
