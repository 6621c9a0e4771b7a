"""Transfer lifecycle — commands and handler.

Completion is the only step that touches stock. For every transferred item
it posts a TRANSFER_OUT on the source row and a TRANSFER_IN on the matching
row in the target warehouse, through one ``append_movements`` batch, so the
paired entries and the occupancy changes at both ends land together or not
at all.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import InsufficientQuantity, NotFound
from stockkeeping.ledger.movement import MovementType
from stockkeeping.ledger.recording import MovementEntry, append_movements
from stockkeeping.location.location import Location
from stockkeeping.stock.item import InventoryItem
from stockkeeping.transfer.transfer import Transfer, TransferStatus
from stockkeeping.utils.logging import get_logger, tenant_context
from stockkeeping.warehouse.warehouse import Warehouse

logger = get_logger(__name__)

TRANSFER_REFERENCE = "Transfer"


@stockkeeping.command(part_of="Transfer")
class CreateTransfer:
    tenant_id = Identifier(required=True)
    source_warehouse_id = Identifier(required=True)
    target_warehouse_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {inventory_item_id, quantity, note, target_location_code}
    initiated_by = String(required=True, max_length=100)
    reason = String(max_length=500)


@stockkeeping.command(part_of="Transfer")
class StartTransfer:
    tenant_id = Identifier(required=True)
    transfer_id = Identifier(required=True)


@stockkeeping.command(part_of="Transfer")
class CompleteTransfer:
    tenant_id = Identifier(required=True)
    transfer_id = Identifier(required=True)
    completed_by = String(required=True, max_length=100)
    received_items = Text()  # JSON list of {inventory_item_id, received_quantity, note}
    note = Text()


@stockkeeping.command(part_of="Transfer")
class CancelTransfer:
    tenant_id = Identifier(required=True)
    transfer_id = Identifier(required=True)
    cancelled_by = String(max_length=100)
    reason = String(max_length=500)


def _parse_received(raw) -> dict[str, dict]:
    entries = json.loads(raw) if isinstance(raw, str) else (raw or [])
    received = {}
    for entry in entries:
        quantity = entry.get("received_quantity")
        if quantity is None or quantity < 0:
            raise ValidationError({"received_quantity": ["Received quantities cannot be negative"]})
        received[str(entry["inventory_item_id"])] = entry
    return received


def discrepancy_note(shipped: int, received: int, note: str | None = None) -> str | None:
    """Describe a short or over delivery; ``None`` when the counts agree and nothing was noted."""
    parts = []
    if received != shipped:
        difference = received - shipped
        parts.append(f"Discrepancy: shipped {shipped}, received {received} ({difference:+d})")
    if note:
        parts.append(note)
    return "; ".join(parts) or None


def _target_item(tenant_id, transfer: Transfer, source: InventoryItem, line, cache: dict) -> InventoryItem:
    """The row receiving a line; registered at quantity 0 when the target has none."""
    location_code = line.target_location_code or None
    key = (str(source.product_id), source.serial_number or None, location_code)
    if key in cache:
        return cache[key]

    target_warehouse_id = str(transfer.target_warehouse_id)
    if location_code:
        location = current_domain.repository_for(Location).find_by_code(tenant_id, target_warehouse_id, location_code)
        if location is None:
            raise NotFound("Location", location_code)

    item = current_domain.repository_for(InventoryItem).find_matching(
        tenant_id, target_warehouse_id, source.product_id, source.serial_number, location_code
    )
    if item is None:
        item = InventoryItem.register(
            tenant_id=tenant_id,
            warehouse_id=target_warehouse_id,
            product_id=source.product_id,
            product_name=source.product_name,
            unit=source.unit,
            location_code=location_code,
            serial_number=source.serial_number,
            min_stock_level=source.min_stock_level,
            max_stock_level=source.max_stock_level,
        )
    cache[key] = item
    return item


@stockkeeping.command_handler(part_of=Transfer)
class TransferLifecycleHandler:
    @handle(CreateTransfer)
    def create_transfer(self, command):
        tenant_id = str(command.tenant_id)
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        warehouses = current_domain.repository_for(Warehouse)
        warehouses.get_for_tenant(command.source_warehouse_id, tenant_id)
        target = warehouses.get_for_tenant(command.target_warehouse_id, tenant_id)

        # Shape checks (distinct warehouses, non-empty, positive) live on the aggregate.
        transfer = Transfer.create(
            tenant_id=tenant_id,
            source_warehouse_id=command.source_warehouse_id,
            target_warehouse_id=command.target_warehouse_id,
            items_data=items_data,
            initiated_by=command.initiated_by,
            reason=command.reason,
        )
        if not target.is_active:
            raise ValidationError({"target_warehouse_id": [f"Warehouse {target.code} is not active"]})

        item_repo = current_domain.repository_for(InventoryItem)
        transfer_repo = current_domain.repository_for(Transfer)
        for line in transfer.items:
            item = item_repo.get_for_tenant(line.inventory_item_id, tenant_id)
            if str(item.warehouse_id) != str(command.source_warehouse_id):
                raise ValidationError({"items": [f"Item {item.id} is not held in the source warehouse"]})
            if item.is_terminal:
                raise ValidationError({"items": [f"Item {item.id} is {item.status} and cannot be moved"]})
            if item.quantity < line.quantity:
                raise InsufficientQuantity(
                    {"quantity": [f"Item {item.id} holds {item.quantity}, transfer needs {line.quantity}"]}
                )
            holder = transfer_repo.active_for_item(tenant_id, item.id)
            if holder is not None:
                raise ValidationError({"items": [f"Item {item.id} is already part of transfer {holder.transfer_code}"]})
            if not line.unit:
                line.unit = item.unit
            if not line.serial_number:
                line.serial_number = item.serial_number

        transfer_repo.add(transfer)
        logger.info(
            "Transfer created",
            tenant_id=tenant_id,
            transfer_code=transfer.transfer_code,
            items=len(transfer.items),
        )
        return str(transfer.id)

    @handle(StartTransfer)
    def start_transfer(self, command):
        repo = current_domain.repository_for(Transfer)
        transfer = repo.get_for_tenant(command.transfer_id, command.tenant_id)
        transfer.start()
        repo.add(transfer)

    @handle(CompleteTransfer)
    def complete_transfer(self, command):
        tenant_id = str(command.tenant_id)
        repo = current_domain.repository_for(Transfer)
        transfer = repo.get_for_tenant(command.transfer_id, tenant_id)

        with tenant_context(tenant_id, transfer_code=transfer.transfer_code):
            # Refuse before any ledger entry is built.
            transfer.assert_can_transition(TransferStatus.COMPLETED)
            received = _parse_received(command.received_items)
            unknown = set(received) - {str(line.inventory_item_id) for line in transfer.items}
            if unknown:
                raise ValidationError({"received_items": [f"Items not part of the transfer: {sorted(unknown)}"]})

            item_repo = current_domain.repository_for(InventoryItem)
            targets: dict = {}
            entries = []
            for line in transfer.items:
                source = item_repo.get_for_tenant(line.inventory_item_id, tenant_id)
                target = _target_item(tenant_id, transfer, source, line, targets)
                override = received.get(str(line.inventory_item_id), {})
                received_quantity = override.get("received_quantity", line.quantity)

                entries.append(
                    MovementEntry(
                        item=source,
                        movement_type=MovementType.TRANSFER_OUT.value,
                        quantity_change=-line.quantity,
                        performed_by=command.completed_by,
                        reason=f"Transfer {transfer.transfer_code}",
                        note=line.note,
                        reference_id=str(transfer.id),
                        reference_type=TRANSFER_REFERENCE,
                    )
                )
                entries.append(
                    MovementEntry(
                        item=target,
                        movement_type=MovementType.TRANSFER_IN.value,
                        quantity_change=received_quantity,
                        performed_by=command.completed_by,
                        reason=f"Transfer {transfer.transfer_code}",
                        note=discrepancy_note(line.quantity, received_quantity, override.get("note")),
                        reference_id=str(transfer.id),
                        reference_type=TRANSFER_REFERENCE,
                    )
                )

            try:
                append_movements(entries)
            except ValidationError as exc:
                logger.warning("Transfer completion refused", error=str(exc))
                raise
            transfer.complete(
                command.completed_by,
                {key: entry["received_quantity"] for key, entry in received.items()},
                command.note,
            )
            repo.add(transfer)

            logger.info(
                "Transfer completed",
                items=len(transfer.items),
                shipped=sum(line.quantity for line in transfer.items),
                received=sum(line.received_quantity for line in transfer.items),
            )

    @handle(CancelTransfer)
    def cancel_transfer(self, command):
        repo = current_domain.repository_for(Transfer)
        transfer = repo.get_for_tenant(command.transfer_id, command.tenant_id)
        transfer.cancel(command.cancelled_by, command.reason)
        repo.add(transfer)
