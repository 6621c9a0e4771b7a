"""Movement aggregate — one immutable entry of the stock ledger.

Every quantity change to an inventory item is explained by exactly one
movement. Entries carry the full business type (no narrowing to a smaller
storage vocabulary), the quantity before and after, and a per-item sequence
number. Movements have no mutators: once recorded they are only ever read.

Sign rules per type:
    increases:  RECEIPT, TRANSFER_IN, RETURN, RELEASE
    decreases:  ISSUE, TRANSFER_OUT, SCRAP, RESERVATION
    either way: ADJUSTMENT
    no change:  STATUS_CHANGE
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import InsufficientQuantity
from stockkeeping.ledger.events import MovementRecorded
from stockkeeping.shared.clock import as_utc


class MovementType(Enum):
    RECEIPT = "Receipt"
    ISSUE = "Issue"
    TRANSFER_OUT = "Transfer_Out"
    TRANSFER_IN = "Transfer_In"
    ADJUSTMENT = "Adjustment"
    RETURN = "Return"
    SCRAP = "Scrap"
    RESERVATION = "Reservation"
    RELEASE = "Release"
    STATUS_CHANGE = "Status_Change"


INCREASING_TYPES = {MovementType.RECEIPT, MovementType.TRANSFER_IN, MovementType.RETURN, MovementType.RELEASE}
DECREASING_TYPES = {MovementType.ISSUE, MovementType.TRANSFER_OUT, MovementType.SCRAP, MovementType.RESERVATION}

# A transfer can arrive with nothing left to receive.
_ZERO_ALLOWED = {MovementType.STATUS_CHANGE, MovementType.TRANSFER_IN}


def check_sign(movement_type: MovementType, quantity_change: int) -> None:
    if movement_type is MovementType.STATUS_CHANGE:
        if quantity_change != 0:
            raise ValidationError({"quantity_change": ["A status change cannot change the quantity"]})
        return
    if quantity_change == 0 and movement_type not in _ZERO_ALLOWED:
        raise ValidationError({"quantity_change": [f"A {movement_type.value} movement must change the quantity"]})
    if movement_type in INCREASING_TYPES and quantity_change < 0:
        raise ValidationError({"quantity_change": [f"A {movement_type.value} movement can only increase stock"]})
    if movement_type in DECREASING_TYPES and quantity_change > 0:
        raise ValidationError({"quantity_change": [f"A {movement_type.value} movement can only decrease stock"]})


@stockkeeping.aggregate
class Movement:
    """An append-only record of one quantity change to one inventory item."""

    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    movement_type = String(required=True, max_length=20, choices=MovementType)
    quantity_change = Integer()
    previous_quantity = Integer(default=0, min_value=0)
    new_quantity = Integer(default=0, min_value=0)
    sequence = Integer(required=True, min_value=1)
    reason = String(max_length=255)
    note = Text()
    location_before = String(max_length=50)
    location_after = String(max_length=50)
    reference_id = Identifier()
    reference_type = String(max_length=50)
    performed_by = String(required=True, max_length=100)
    performed_at = DateTime(required=True)

    @classmethod
    def record(
        cls,
        tenant_id,
        inventory_item_id,
        warehouse_id,
        product_id,
        movement_type,
        quantity_change,
        previous_quantity,
        sequence,
        performed_by,
        new_quantity=None,
        reason=None,
        note=None,
        location_before=None,
        location_after=None,
        reference_id=None,
        reference_type=None,
        performed_at=None,
    ):
        """Validate one ledger entry and build it.

        ``new_quantity`` may be supplied by the caller; it must then equal
        ``previous_quantity + quantity_change``.
        """
        try:
            kind = MovementType(movement_type)
        except ValueError as exc:
            raise ValidationError({"movement_type": [f"Unknown movement type {movement_type}"]}) from exc

        if quantity_change is None:
            raise ValidationError({"quantity_change": ["is required"]})
        check_sign(kind, quantity_change)

        if quantity_change < 0 and not (reason or "").strip():
            raise ValidationError({"reason": ["Every stock decrease must give a reason"]})

        expected = previous_quantity + quantity_change
        if new_quantity is not None and new_quantity != expected:
            raise ValidationError(
                {"new_quantity": [f"{previous_quantity} {quantity_change:+d} gives {expected}, not {new_quantity}"]}
            )
        if expected < 0:
            raise InsufficientQuantity(
                {"quantity": [f"Only {previous_quantity} on hand, cannot remove {-quantity_change}"]}
            )

        performed_at = as_utc(performed_at) or datetime.now(UTC)
        movement = cls(
            tenant_id=tenant_id,
            inventory_item_id=inventory_item_id,
            warehouse_id=warehouse_id,
            product_id=product_id,
            movement_type=kind.value,
            quantity_change=quantity_change,
            previous_quantity=previous_quantity,
            new_quantity=expected,
            sequence=sequence,
            reason=reason,
            note=note,
            location_before=location_before,
            location_after=location_after,
            reference_id=reference_id,
            reference_type=reference_type,
            performed_by=performed_by,
            performed_at=performed_at,
        )
        movement.raise_(
            MovementRecorded(
                movement_id=str(movement.id),
                tenant_id=str(tenant_id),
                inventory_item_id=str(inventory_item_id),
                warehouse_id=str(warehouse_id),
                movement_type=kind.value,
                quantity_change=quantity_change,
                previous_quantity=previous_quantity,
                new_quantity=expected,
                sequence=sequence,
                reference_id=str(reference_id) if reference_id else None,
                reference_type=reference_type,
                performed_by=performed_by,
                performed_at=performed_at,
            )
        )
        return movement

    @property
    def kind(self) -> MovementType:
        return MovementType(self.movement_type)
