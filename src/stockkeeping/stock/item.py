"""InventoryItem aggregate (CQRS) — the current-state row for a product in a warehouse.

The quantity column is never edited directly: it only moves when the
movement ledger appends an entry for the item (see
``stockkeeping.ledger.recording.append_movements``), which is what keeps the
row reconcilable from its history. ``ledger_sequence`` and
``last_movement_at`` identify the last ledger entry applied to the row.

Status Model:
    AVAILABLE  → RESERVED, RENTED, IN_TRANSIT, IN_SERVICE, SOLD, DAMAGED, LOST, SCRAPPED
    RESERVED   → AVAILABLE, RENTED, IN_TRANSIT, SOLD
    IN_TRANSIT → AVAILABLE, RESERVED, DAMAGED, LOST
    IN_SERVICE → AVAILABLE, DAMAGED, SCRAPPED
    RENTED     → AVAILABLE, IN_SERVICE, DAMAGED, LOST
    DAMAGED    → IN_SERVICE, SCRAPPED, AVAILABLE
    LOST       → AVAILABLE
    SOLD, SCRAPPED are terminal
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import InsufficientQuantity, InvalidTransition
from stockkeeping.stock.events import (
    InventoryItemDeleted,
    InventoryItemRegistered,
    ItemQuantityChanged,
    ItemStatusChanged,
    StockLevelsUpdated,
)

DEFAULT_UNIT = "pcs"


class ItemStatus(Enum):
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    IN_TRANSIT = "In_Transit"
    IN_SERVICE = "In_Service"
    RENTED = "Rented"
    SOLD = "Sold"
    DAMAGED = "Damaged"
    LOST = "Lost"
    SCRAPPED = "Scrapped"


_VALID_TRANSITIONS = {
    ItemStatus.AVAILABLE: {
        ItemStatus.RESERVED,
        ItemStatus.RENTED,
        ItemStatus.IN_TRANSIT,
        ItemStatus.IN_SERVICE,
        ItemStatus.SOLD,
        ItemStatus.DAMAGED,
        ItemStatus.LOST,
        ItemStatus.SCRAPPED,
    },
    ItemStatus.RESERVED: {ItemStatus.AVAILABLE, ItemStatus.RENTED, ItemStatus.IN_TRANSIT, ItemStatus.SOLD},
    ItemStatus.IN_TRANSIT: {ItemStatus.AVAILABLE, ItemStatus.RESERVED, ItemStatus.DAMAGED, ItemStatus.LOST},
    ItemStatus.IN_SERVICE: {ItemStatus.AVAILABLE, ItemStatus.DAMAGED, ItemStatus.SCRAPPED},
    ItemStatus.RENTED: {ItemStatus.AVAILABLE, ItemStatus.IN_SERVICE, ItemStatus.DAMAGED, ItemStatus.LOST},
    ItemStatus.DAMAGED: {ItemStatus.IN_SERVICE, ItemStatus.SCRAPPED, ItemStatus.AVAILABLE},
    ItemStatus.LOST: {ItemStatus.AVAILABLE},
    ItemStatus.SOLD: set(),  # terminal
    ItemStatus.SCRAPPED: set(),  # terminal
}

TERMINAL_STATUSES = {ItemStatus.SOLD, ItemStatus.SCRAPPED}

# Stock that is out with a customer or on the road cannot be written off by deletion.
UNDELETABLE_STATUSES = {ItemStatus.RENTED, ItemStatus.RESERVED, ItemStatus.IN_TRANSIT}


@stockkeeping.aggregate
class InventoryItem:
    """Stock of one product (or one serialized unit) held in one warehouse."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(default=0, min_value=0)
    unit = String(max_length=20, default=DEFAULT_UNIT)
    status = String(
        max_length=20,
        choices=ItemStatus,
        default=ItemStatus.AVAILABLE.value,
    )
    location_code = String(max_length=50)
    serial_number = String(max_length=100)
    min_stock_level = Integer(min_value=0)
    max_stock_level = Integer(min_value=0)
    ledger_sequence = Integer(default=0, min_value=0)
    last_movement_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        tenant_id,
        warehouse_id,
        product_id,
        product_name=None,
        unit=None,
        location_code=None,
        serial_number=None,
        min_stock_level=None,
        max_stock_level=None,
    ):
        """Start tracking a product at quantity 0; opening stock arrives as a ledger entry."""
        _check_levels(min_stock_level, max_stock_level)
        now = datetime.now(UTC)
        item = cls(
            tenant_id=tenant_id,
            warehouse_id=warehouse_id,
            product_id=product_id,
            product_name=product_name,
            quantity=0,
            unit=unit or DEFAULT_UNIT,
            location_code=location_code,
            serial_number=serial_number,
            min_stock_level=min_stock_level,
            max_stock_level=max_stock_level,
            ledger_sequence=0,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            InventoryItemRegistered(
                item_id=str(item.id),
                tenant_id=str(tenant_id),
                warehouse_id=str(warehouse_id),
                product_id=str(product_id),
                product_name=product_name,
                unit=item.unit,
                location_code=location_code,
                serial_number=serial_number,
                registered_at=now,
            )
        )
        return item

    @property
    def is_terminal(self) -> bool:
        return ItemStatus(self.status) in TERMINAL_STATUSES

    # -------------------------------------------------------------------
    # Ledger application
    # -------------------------------------------------------------------
    def apply_movement(self, movement) -> None:
        """Move the row to the state described by an appended ledger entry."""
        if movement.previous_quantity != self.quantity:
            raise ValidationError(
                {"quantity": [f"Ledger entry starts at {movement.previous_quantity}, item holds {self.quantity}"]}
            )
        if movement.new_quantity < 0:
            raise InsufficientQuantity({"quantity": ["Quantity cannot become negative"]})

        self.quantity = movement.new_quantity
        self.ledger_sequence = movement.sequence
        self.last_movement_at = movement.performed_at
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ItemQuantityChanged(
                item_id=str(self.id),
                tenant_id=str(self.tenant_id),
                movement_id=str(movement.id),
                movement_type=movement.movement_type,
                previous_quantity=movement.previous_quantity,
                new_quantity=movement.new_quantity,
                changed_at=movement.performed_at,
            )
        )

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: ItemStatus) -> None:
        current = ItemStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition("InventoryItem", current.value, target_status.value)

    def change_status(self, new_status: str) -> str:
        """Move to ``new_status`` and return the status it left."""
        try:
            target = ItemStatus(new_status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown item status {new_status}"]}) from exc
        self._assert_can_transition(target)

        previous = self.status
        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ItemStatusChanged(
                item_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_status=previous,
                new_status=target.value,
                changed_at=self.updated_at,
            )
        )
        return previous

    # -------------------------------------------------------------------
    # Stock levels
    # -------------------------------------------------------------------
    def update_stock_levels(self, min_stock_level=None, max_stock_level=None) -> None:
        _check_levels(min_stock_level, max_stock_level)
        self.min_stock_level = min_stock_level
        self.max_stock_level = max_stock_level
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockLevelsUpdated(
                item_id=str(self.id),
                tenant_id=str(self.tenant_id),
                min_stock_level=min_stock_level,
                max_stock_level=max_stock_level,
                updated_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def check_deletable(self) -> None:
        status = ItemStatus(self.status)
        if status in UNDELETABLE_STATUSES:
            raise ValidationError({"status": [f"A {status.value} item cannot be deleted"]})
        if self.quantity:
            raise ValidationError(
                {"quantity": [f"Item still holds {self.quantity} {self.unit}; bring it to zero before deleting"]}
            )

    def delete(self, deleted_by: str | None = None) -> None:
        """Soft-delete an emptied row; its ledger stays intact."""
        self.check_deletable()
        now = datetime.now(UTC)
        self.is_deleted = True
        self.deleted_at = now
        self.updated_at = now
        self.raise_(
            InventoryItemDeleted(
                item_id=str(self.id),
                tenant_id=str(self.tenant_id),
                warehouse_id=str(self.warehouse_id),
                location_code=self.location_code,
                deleted_by=deleted_by,
                deleted_at=now,
            )
        )

def _check_levels(min_stock_level, max_stock_level) -> None:
    if min_stock_level is not None and max_stock_level is not None and max_stock_level < min_stock_level:
        raise ValidationError({"max_stock_level": ["Maximum stock level cannot be below the minimum"]})
