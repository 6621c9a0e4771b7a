"""Transfer aggregate — stock relocated between two warehouses of a tenant.

Transfer Lifecycle:
    PENDING    → IN_TRANSIT, CANCELLED
    IN_TRANSIT → COMPLETED
    COMPLETED, CANCELLED are terminal

The item list is fixed when the transfer is created. Goods that are already
moving cannot be cancelled; they can only be received.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import InvalidTransition
from stockkeeping.transfer.events import TransferCancelled, TransferCompleted, TransferCreated, TransferStarted


class TransferStatus(Enum):
    PENDING = "Pending"
    IN_TRANSIT = "In_Transit"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    TransferStatus.PENDING: {TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED},
    TransferStatus.IN_TRANSIT: {TransferStatus.COMPLETED},
    TransferStatus.COMPLETED: set(),  # terminal
    TransferStatus.CANCELLED: set(),  # terminal
}

ACTIVE_STATUSES = {TransferStatus.PENDING, TransferStatus.IN_TRANSIT}


def generate_transfer_code(now: datetime | None = None) -> str:
    year = (now or datetime.now(UTC)).year
    return f"TRF-{year}-{uuid4().hex[:8].upper()}"


@stockkeeping.entity(part_of="Transfer")
class TransferItem:
    """One inventory item shipped by a transfer."""

    inventory_item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit = String(max_length=20)
    serial_number = String(max_length=100)
    note = Text()
    target_location_code = String(max_length=50)
    received_quantity = Integer()


@stockkeeping.aggregate
class Transfer:
    tenant_id = Identifier(required=True)
    transfer_code = String(required=True, max_length=30)
    source_warehouse_id = Identifier(required=True)
    target_warehouse_id = Identifier(required=True)
    status = String(
        max_length=15,
        choices=TransferStatus,
        default=TransferStatus.PENDING.value,
    )
    items = HasMany(TransferItem)
    reason = String(max_length=500)
    initiated_by = String(required=True, max_length=100)
    initiated_at = DateTime()
    started_at = DateTime()
    completed_by = String(max_length=100)
    completed_at = DateTime()
    completion_note = Text()
    cancelled_by = String(max_length=100)
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    updated_at = DateTime()

    @classmethod
    def create(cls, tenant_id, source_warehouse_id, target_warehouse_id, items_data, initiated_by, reason=None):
        """Create a PENDING transfer.

        Args:
            items_data: List of dicts with inventory_item_id, quantity and
                optionally unit, serial_number, note, target_location_code.
        """
        if str(source_warehouse_id) == str(target_warehouse_id):
            raise ValidationError({"target_warehouse_id": ["Source and target warehouse must differ"]})
        if not items_data:
            raise ValidationError({"items": ["A transfer needs at least one item"]})

        seen = set()
        for data in items_data:
            if not data.get("quantity") or data["quantity"] < 1:
                raise ValidationError({"quantity": ["Transfer quantities must be positive"]})
            key = str(data["inventory_item_id"])
            if key in seen:
                raise ValidationError({"items": [f"Item {key} is listed more than once"]})
            seen.add(key)

        now = datetime.now(UTC)
        transfer = cls(
            tenant_id=tenant_id,
            transfer_code=generate_transfer_code(now),
            source_warehouse_id=source_warehouse_id,
            target_warehouse_id=target_warehouse_id,
            status=TransferStatus.PENDING.value,
            reason=reason,
            initiated_by=initiated_by,
            initiated_at=now,
            updated_at=now,
        )
        transfer.add_items(
            [
                TransferItem(
                    inventory_item_id=str(data["inventory_item_id"]),
                    quantity=data["quantity"],
                    unit=data.get("unit"),
                    serial_number=data.get("serial_number"),
                    note=data.get("note"),
                    target_location_code=data.get("target_location_code"),
                )
                for data in items_data
            ]
        )
        transfer.raise_(
            TransferCreated(
                transfer_id=str(transfer.id),
                tenant_id=str(tenant_id),
                transfer_code=transfer.transfer_code,
                source_warehouse_id=str(source_warehouse_id),
                target_warehouse_id=str(target_warehouse_id),
                items=json.dumps(
                    [{"inventory_item_id": str(d["inventory_item_id"]), "quantity": d["quantity"]} for d in items_data]
                ),
                initiated_by=initiated_by,
                initiated_at=now,
            )
        )
        return transfer

    @property
    def is_active(self) -> bool:
        return TransferStatus(self.status) in ACTIVE_STATUSES

    def holds_item(self, inventory_item_id) -> bool:
        return any(str(item.inventory_item_id) == str(inventory_item_id) for item in self.items)

    def assert_can_transition(self, target_status: TransferStatus) -> None:
        current = TransferStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition("Transfer", current.value, target_status.value)

    def start(self) -> None:
        self.assert_can_transition(TransferStatus.IN_TRANSIT)
        now = datetime.now(UTC)
        self.status = TransferStatus.IN_TRANSIT.value
        self.started_at = now
        self.updated_at = now
        self.raise_(TransferStarted(transfer_id=str(self.id), tenant_id=str(self.tenant_id), started_at=now))

    def complete(self, completed_by: str, received: dict[str, int], note: str | None = None) -> None:
        """Mark the transfer received; ``received`` maps item ids to the quantity that arrived."""
        self.assert_can_transition(TransferStatus.COMPLETED)
        now = datetime.now(UTC)
        for item in self.items:
            item.received_quantity = received.get(str(item.inventory_item_id), item.quantity)

        self.status = TransferStatus.COMPLETED.value
        self.completed_by = completed_by
        self.completed_at = now
        self.completion_note = note
        self.updated_at = now
        self.raise_(
            TransferCompleted(
                transfer_id=str(self.id),
                tenant_id=str(self.tenant_id),
                completed_by=completed_by,
                shipped_quantity=sum(item.quantity for item in self.items),
                received_quantity=sum(item.received_quantity for item in self.items),
                completed_at=now,
            )
        )

    def cancel(self, cancelled_by: str | None = None, reason: str | None = None) -> None:
        self.assert_can_transition(TransferStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = TransferStatus.CANCELLED.value
        self.cancelled_by = cancelled_by
        self.cancelled_at = now
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            TransferCancelled(
                transfer_id=str(self.id),
                tenant_id=str(self.tenant_id),
                cancelled_by=cancelled_by,
                reason=reason,
                cancelled_at=now,
            )
        )
