"""Domain events for the Transfer aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from stockkeeping.domain import stockkeeping


@stockkeeping.event(part_of="Transfer")
class TransferCreated:
    """Stock was scheduled to move between two warehouses."""

    __version__ = "v1"

    transfer_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    transfer_code = String(required=True)
    source_warehouse_id = Identifier(required=True)
    target_warehouse_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {inventory_item_id, quantity}
    initiated_by = String(required=True)
    initiated_at = DateTime(required=True)


@stockkeeping.event(part_of="Transfer")
class TransferStarted:
    __version__ = "v1"

    transfer_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    started_at = DateTime(required=True)


@stockkeeping.event(part_of="Transfer")
class TransferCompleted:
    """Goods arrived; the paired ledger entries were written."""

    __version__ = "v1"

    transfer_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    completed_by = String(required=True)
    shipped_quantity = Integer(default=0)
    received_quantity = Integer(default=0)
    completed_at = DateTime(required=True)


@stockkeeping.event(part_of="Transfer")
class TransferCancelled:
    __version__ = "v1"

    transfer_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    cancelled_by = String()
    reason = String()
    cancelled_at = DateTime(required=True)
