"""Domain events for the Movement aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping


@stockkeeping.event(part_of="Movement")
class MovementRecorded:
    """A ledger entry was appended for an inventory item."""

    __version__ = "v1"

    movement_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    movement_type = String(required=True)
    quantity_change = Integer()
    previous_quantity = Integer(default=0)
    new_quantity = Integer(default=0)
    sequence = Integer(required=True)
    reference_id = Identifier()
    reference_type = String()
    performed_by = String(required=True)
    performed_at = DateTime(required=True)
