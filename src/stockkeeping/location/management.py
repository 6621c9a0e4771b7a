"""Location management — structure and single-location commands and handlers."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from stockkeeping.domain import stockkeeping
from stockkeeping.location.location import Location
from stockkeeping.location.structure import LocationStructure, validate
from stockkeeping.stock.item import InventoryItem
from stockkeeping.utils.logging import get_logger
from stockkeeping.warehouse.warehouse import Warehouse

logger = get_logger(__name__)


def check_unreferenced(location: Location) -> None:
    """Refuse to retire a location that inventory rows still point at."""
    items = current_domain.repository_for(InventoryItem).referencing_location(
        location.tenant_id, location.warehouse_id, location.code
    )
    if items:
        raise ValidationError(
            {"location": [f"Location {location.code} is still assigned to {len(items)} inventory item(s)"]}
        )


# ---------------------------------------------------------------------------
# Structure commands
# ---------------------------------------------------------------------------
@stockkeeping.command(part_of="LocationStructure")
class DefineLocationStructure:
    """Give a warehouse its location code grammar."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    max_zones = Integer(required=True, min_value=1)
    max_shelves = Integer(required=True, min_value=1)
    max_bins = Integer(required=True, min_value=1)
    zone_prefix = String(max_length=5)
    shelf_prefix = String(max_length=5)
    bin_prefix = String(max_length=5)
    separator = String(max_length=3)


@stockkeeping.command(part_of="LocationStructure")
class UpdateLocationStructure:
    tenant_id = Identifier(required=True)
    structure_id = Identifier(required=True)
    max_zones = Integer(min_value=1)
    max_shelves = Integer(min_value=1)
    max_bins = Integer(min_value=1)
    zone_prefix = String(max_length=5)
    shelf_prefix = String(max_length=5)
    bin_prefix = String(max_length=5)
    separator = String(max_length=3)


@stockkeeping.command_handler(part_of=LocationStructure)
class LocationStructureHandler:
    @handle(DefineLocationStructure)
    def define_structure(self, command):
        tenant_id = str(command.tenant_id)
        current_domain.repository_for(Warehouse).get_for_tenant(command.warehouse_id, tenant_id)

        repo = current_domain.repository_for(LocationStructure)
        if repo.find_for_warehouse(tenant_id, command.warehouse_id) is not None:
            raise ValidationError({"warehouse_id": ["The warehouse already has a location structure"]})

        structure = LocationStructure.create(
            tenant_id=tenant_id,
            warehouse_id=command.warehouse_id,
            max_zones=command.max_zones,
            max_shelves=command.max_shelves,
            max_bins=command.max_bins,
            zone_prefix=command.zone_prefix,
            shelf_prefix=command.shelf_prefix,
            bin_prefix=command.bin_prefix,
            separator=command.separator,
        )
        repo.add(structure)
        logger.info("Location structure defined", tenant_id=tenant_id, structure_id=str(structure.id))
        return str(structure.id)

    @handle(UpdateLocationStructure)
    def update_structure(self, command):
        repo = current_domain.repository_for(LocationStructure)
        structure = repo.get_for_tenant(command.structure_id, command.tenant_id)
        has_locations = current_domain.repository_for(Location).has_locations(
            structure.tenant_id, structure.warehouse_id
        )
        structure.reconfigure(
            has_locations=has_locations,
            zone_prefix=command.zone_prefix,
            shelf_prefix=command.shelf_prefix,
            bin_prefix=command.bin_prefix,
            separator=command.separator,
            max_zones=command.max_zones,
            max_shelves=command.max_shelves,
            max_bins=command.max_bins,
        )
        repo.add(structure)


# ---------------------------------------------------------------------------
# Location commands
# ---------------------------------------------------------------------------
@stockkeeping.command(part_of="Location")
class CreateLocation:
    """Register one location whose code follows the warehouse structure."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    capacity = Integer(min_value=1)
    description = String(max_length=255)


@stockkeeping.command(part_of="Location")
class AdjustLocationOccupancy:
    tenant_id = Identifier(required=True)
    location_id = Identifier(required=True)
    delta = Integer()


@stockkeeping.command(part_of="Location")
class DeactivateLocation:
    tenant_id = Identifier(required=True)
    location_id = Identifier(required=True)


@stockkeeping.command(part_of="Location")
class ReactivateLocation:
    tenant_id = Identifier(required=True)
    location_id = Identifier(required=True)


@stockkeeping.command(part_of="Location")
class ChangeLocationCapacity:
    """Set a new capacity, or clear it with ``unbounded``."""

    tenant_id = Identifier(required=True)
    location_id = Identifier(required=True)
    capacity = Integer(min_value=1)
    unbounded = Boolean(default=False)


@stockkeeping.command(part_of="Location")
class DeleteLocation:
    tenant_id = Identifier(required=True)
    location_id = Identifier(required=True)


@stockkeeping.command_handler(part_of=Location)
class LocationManagementHandler:
    @handle(CreateLocation)
    def create_location(self, command):
        tenant_id = str(command.tenant_id)
        warehouse_id = str(command.warehouse_id)
        current_domain.repository_for(Warehouse).get_for_tenant(warehouse_id, tenant_id)

        structure = current_domain.repository_for(LocationStructure).find_for_warehouse(tenant_id, warehouse_id)
        result = validate(structure, command.code)
        if not result.is_valid:
            raise ValidationError({"code": [f"{result.reason.value}: {result.message}"]})

        repo = current_domain.repository_for(Location)
        if repo.find_by_code(tenant_id, warehouse_id, result.code, include_deleted=True) is not None:
            raise ValidationError({"code": [f"Location {result.code} already exists"]})

        location = Location.create(
            tenant_id=tenant_id,
            warehouse_id=warehouse_id,
            code=result.code,
            zone=result.zone,
            shelf=result.shelf,
            bin_=result.bin,
            capacity=command.capacity,
            description=command.description,
        )
        repo.add(location)
        return str(location.id)

    @handle(AdjustLocationOccupancy)
    def adjust_occupancy(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get_for_tenant(command.location_id, command.tenant_id)
        location.adjust_occupancy(command.delta or 0)
        repo.add(location)
        return location.current_occupancy

    @handle(DeactivateLocation)
    def deactivate_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get_for_tenant(command.location_id, command.tenant_id)
        location.deactivate()
        repo.add(location)

    @handle(ReactivateLocation)
    def reactivate_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get_for_tenant(command.location_id, command.tenant_id)
        location.reactivate()
        repo.add(location)

    @handle(ChangeLocationCapacity)
    def change_capacity(self, command):
        if command.capacity is None and not command.unbounded:
            raise ValidationError({"capacity": ["Provide a capacity or mark the location unbounded"]})

        repo = current_domain.repository_for(Location)
        location = repo.get_for_tenant(command.location_id, command.tenant_id)
        location.change_capacity(None if command.unbounded else command.capacity)
        repo.add(location)

    @handle(DeleteLocation)
    def delete_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get_for_tenant(command.location_id, command.tenant_id)
        check_unreferenced(location)
        location.delete()
        repo.add(location)
        logger.info("Location deleted", tenant_id=str(command.tenant_id), code=location.code)
