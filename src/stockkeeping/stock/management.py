"""Inventory item management — commands and handler.

Every quantity change here is posted through the movement ledger; the item
row is only updated as a consequence of an appended entry.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import NotFound
from stockkeeping.ledger.movement import MovementType
from stockkeeping.ledger.recording import MovementEntry, append_movements
from stockkeeping.location.location import Location
from stockkeeping.stock.item import InventoryItem
from stockkeeping.transfer.transfer import Transfer
from stockkeeping.utils.logging import get_logger
from stockkeeping.warehouse.warehouse import Warehouse

logger = get_logger(__name__)


@stockkeeping.command(part_of="InventoryItem")
class RegisterInventoryItem:
    """Start tracking a product in a warehouse, optionally with opening stock."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    unit = String(max_length=20)
    location_code = String(max_length=50)
    serial_number = String(max_length=100)
    min_stock_level = Integer(min_value=0)
    max_stock_level = Integer(min_value=0)
    initial_quantity = Integer(default=0, min_value=0)
    performed_by = String(required=True, max_length=100)


@stockkeeping.command(part_of="InventoryItem")
class AdjustQuantity:
    """Change an item's quantity by a signed amount, explained by a business type."""

    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    quantity_change = Integer()  # Can be negative
    movement_type = String(max_length=20, default=MovementType.ADJUSTMENT.value)
    reason = String(max_length=255)
    note = Text()
    performed_by = String(required=True, max_length=100)
    reference_id = Identifier()
    reference_type = String(max_length=50)


@stockkeeping.command(part_of="InventoryItem")
class BulkAdjustQuantity:
    """Adjust several items at once; one bad line rejects the whole batch."""

    tenant_id = Identifier(required=True)
    adjustments = Text(required=True)  # JSON list of {inventory_item_id, quantity_change, movement_type?, reason?}
    reason = String(max_length=255)
    performed_by = String(required=True, max_length=100)


@stockkeeping.command(part_of="InventoryItem")
class ChangeItemStatus:
    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    reason = String(max_length=255)
    performed_by = String(required=True, max_length=100)


@stockkeeping.command(part_of="InventoryItem")
class UpdateStockLevels:
    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    min_stock_level = Integer(min_value=0)
    max_stock_level = Integer(min_value=0)


@stockkeeping.command(part_of="InventoryItem")
class DeleteInventoryItem:
    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    deleted_by = String(max_length=100)


@stockkeeping.command_handler(part_of=InventoryItem)
class InventoryItemHandler:
    @handle(RegisterInventoryItem)
    def register_item(self, command):
        tenant_id = str(command.tenant_id)
        warehouse_id = str(command.warehouse_id)
        current_domain.repository_for(Warehouse).get_for_tenant(warehouse_id, tenant_id)

        location_code = None
        if command.location_code:
            location = current_domain.repository_for(Location).find_by_code(
                tenant_id, warehouse_id, command.location_code
            )
            if location is None:
                raise NotFound("Location", command.location_code)
            location_code = location.code

        repo = current_domain.repository_for(InventoryItem)
        duplicate = repo.find_matching(
            tenant_id, warehouse_id, command.product_id, command.serial_number, location_code
        )
        if duplicate is not None:
            raise ValidationError({"product_id": ["The product is already tracked at this warehouse and location"]})

        item = InventoryItem.register(
            tenant_id=tenant_id,
            warehouse_id=warehouse_id,
            product_id=command.product_id,
            product_name=command.product_name,
            unit=command.unit,
            location_code=location_code,
            serial_number=command.serial_number,
            min_stock_level=command.min_stock_level,
            max_stock_level=command.max_stock_level,
        )
        if command.initial_quantity:
            append_movements(
                [
                    MovementEntry(
                        item=item,
                        movement_type=MovementType.RECEIPT.value,
                        quantity_change=command.initial_quantity,
                        performed_by=command.performed_by,
                        reason="Opening stock",
                    )
                ]
            )
        else:
            repo.add(item)

        logger.info(
            "Inventory item registered",
            tenant_id=tenant_id,
            item_id=str(item.id),
            product_id=str(command.product_id),
            quantity=item.quantity,
        )
        return str(item.id)

    @handle(AdjustQuantity)
    def adjust_quantity(self, command):
        item = current_domain.repository_for(InventoryItem).get_for_tenant(
            command.inventory_item_id, command.tenant_id
        )
        (movement,) = append_movements(
            [
                MovementEntry(
                    item=item,
                    movement_type=command.movement_type or MovementType.ADJUSTMENT.value,
                    quantity_change=command.quantity_change,
                    performed_by=command.performed_by,
                    reason=command.reason,
                    note=command.note,
                    reference_id=command.reference_id,
                    reference_type=command.reference_type,
                )
            ]
        )
        return movement.new_quantity

    @handle(BulkAdjustQuantity)
    def bulk_adjust_quantity(self, command):
        lines = json.loads(command.adjustments) if isinstance(command.adjustments, str) else command.adjustments
        repo = current_domain.repository_for(InventoryItem)
        items = {}
        for line in lines:
            item_id = str(line["inventory_item_id"])
            if item_id not in items:
                items[item_id] = repo.get_for_tenant(item_id, command.tenant_id)

        movements = append_movements(
            [
                MovementEntry(
                    item=items[str(line["inventory_item_id"])],
                    movement_type=line.get("movement_type") or MovementType.ADJUSTMENT.value,
                    quantity_change=line.get("quantity_change"),
                    performed_by=command.performed_by,
                    reason=line.get("reason") or command.reason,
                )
                for line in lines
            ]
        )
        logger.info("Bulk quantity adjustment", tenant_id=str(command.tenant_id), lines=len(movements))
        return {item_id: item.quantity for item_id, item in items.items()}

    @handle(ChangeItemStatus)
    def change_status(self, command):
        item = current_domain.repository_for(InventoryItem).get_for_tenant(
            command.inventory_item_id, command.tenant_id
        )
        previous = item.change_status(command.status)
        append_movements(
            [
                MovementEntry(
                    item=item,
                    movement_type=MovementType.STATUS_CHANGE.value,
                    quantity_change=0,
                    performed_by=command.performed_by,
                    reason=command.reason,
                    note=f"Status {previous} to {item.status}",
                )
            ]
        )
        return item.status

    @handle(UpdateStockLevels)
    def update_stock_levels(self, command):
        repo = current_domain.repository_for(InventoryItem)
        item = repo.get_for_tenant(command.inventory_item_id, command.tenant_id)
        item.update_stock_levels(command.min_stock_level, command.max_stock_level)
        repo.add(item)

    @handle(DeleteInventoryItem)
    def delete_item(self, command):
        tenant_id = str(command.tenant_id)
        repo = current_domain.repository_for(InventoryItem)
        item = repo.get_for_tenant(command.inventory_item_id, tenant_id)
        holder = current_domain.repository_for(Transfer).active_for_item(tenant_id, item.id)
        if holder is not None:
            raise ValidationError({"inventory_item_id": [f"Item is part of transfer {holder.transfer_code}"]})

        item.delete(command.deleted_by)
        repo.add(item)
        logger.info("Inventory item deleted", tenant_id=tenant_id, item_id=str(item.id))
