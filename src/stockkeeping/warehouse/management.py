"""Warehouse management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from stockkeeping.domain import stockkeeping
from stockkeeping.location.location import Location
from stockkeeping.location.management import check_unreferenced
from stockkeeping.stock.item import InventoryItem
from stockkeeping.utils.logging import get_logger, tenant_context
from stockkeeping.warehouse.warehouse import Warehouse, WarehouseStatus, WarehouseType

logger = get_logger(__name__)


@stockkeeping.command(part_of="Warehouse")
class CreateWarehouse:
    """Create a new warehouse. The tenant's first warehouse becomes its default."""

    tenant_id = Identifier(required=True)
    code = String(required=True, max_length=20)
    name = String(required=True, max_length=255)
    warehouse_type = String(max_length=20, default=WarehouseType.MAIN.value)
    status = String(max_length=20, default=WarehouseStatus.ACTIVE.value)
    is_default = Boolean(default=False)
    address = String(max_length=255)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    contact_name = String(max_length=255)
    contact_phone = String(max_length=50)
    contact_email = String(max_length=255)


@stockkeeping.command(part_of="Warehouse")
class UpdateWarehouse:
    """Update warehouse details."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    name = String(max_length=255)
    warehouse_type = String(max_length=20)
    status = String(max_length=20)
    is_default = Boolean(default=False)
    address = String(max_length=255)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    contact_name = String(max_length=255)
    contact_phone = String(max_length=50)
    contact_email = String(max_length=255)


@stockkeeping.command(part_of="Warehouse")
class SetDefaultWarehouse:
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)


@stockkeeping.command(part_of="Warehouse")
class DecommissionWarehouse:
    """Soft-delete a warehouse together with all of its locations."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)


@stockkeeping.command_handler(part_of=Warehouse)
class WarehouseManagementHandler:
    @handle(CreateWarehouse)
    def create_warehouse(self, command):
        tenant_id = str(command.tenant_id)
        repo = current_domain.repository_for(Warehouse)
        if repo.find_by_code(tenant_id, command.code) is not None:
            raise ValidationError({"code": [f"Warehouse code {command.code.strip().upper()} is already in use"]})

        first_of_tenant = repo.count_for_tenant(tenant_id) == 0
        warehouse = Warehouse.create(
            tenant_id=tenant_id,
            code=command.code,
            name=command.name,
            warehouse_type=command.warehouse_type or WarehouseType.MAIN.value,
            status=command.status or WarehouseStatus.ACTIVE.value,
            address=command.address,
            city=command.city,
            postal_code=command.postal_code,
            contact_name=command.contact_name,
            contact_phone=command.contact_phone,
            contact_email=command.contact_email,
        )
        if first_of_tenant or command.is_default:
            repo.set_default(warehouse)
        else:
            repo.add(warehouse)

        logger.info(
            "Warehouse created",
            tenant_id=tenant_id,
            warehouse_id=str(warehouse.id),
            code=warehouse.code,
            is_default=warehouse.is_default,
        )
        return str(warehouse.id)

    @handle(UpdateWarehouse)
    def update_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.get_for_tenant(command.warehouse_id, command.tenant_id)
        warehouse.update_details(
            name=command.name,
            warehouse_type=command.warehouse_type,
            status=command.status,
            address=command.address,
            city=command.city,
            postal_code=command.postal_code,
            contact_name=command.contact_name,
            contact_phone=command.contact_phone,
            contact_email=command.contact_email,
        )
        if command.is_default and not warehouse.is_default:
            repo.set_default(warehouse)
        else:
            repo.add(warehouse)

    @handle(SetDefaultWarehouse)
    def set_default_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.get_for_tenant(command.warehouse_id, command.tenant_id)
        if not warehouse.is_default:
            repo.set_default(warehouse)
            logger.info("Default warehouse changed", tenant_id=str(command.tenant_id), warehouse_id=str(warehouse.id))

    @handle(DecommissionWarehouse)
    def decommission_warehouse(self, command):
        tenant_id = str(command.tenant_id)
        with tenant_context(tenant_id, warehouse_id=str(command.warehouse_id)):
            repo = current_domain.repository_for(Warehouse)
            warehouse = repo.get_for_tenant(command.warehouse_id, tenant_id)
            if warehouse.is_default:
                raise ValidationError({"warehouse": ["The default warehouse cannot be decommissioned"]})

            if current_domain.repository_for(InventoryItem).stocked_in_warehouse(tenant_id, warehouse.id):
                raise ValidationError({"warehouse": ["The warehouse still holds stock"]})

            location_repo = current_domain.repository_for(Location)
            locations = location_repo.all_in_warehouse(tenant_id, warehouse.id)
            for location in locations:
                location.check_deletable()
                check_unreferenced(location)

            for location in locations:
                location.delete()
                location_repo.add(location)

            warehouse.decommission(locations_retired=len(locations))
            repo.add(warehouse)

            logger.info("Warehouse decommissioned", locations_retired=len(locations))
