"""Domain events for the InventoryItem aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping


@stockkeeping.event(part_of="InventoryItem")
class InventoryItemRegistered:
    """A product started being tracked in a warehouse."""

    __version__ = "v1"

    item_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String()
    unit = String()
    location_code = String()
    serial_number = String()
    registered_at = DateTime(required=True)


@stockkeeping.event(part_of="InventoryItem")
class ItemQuantityChanged:
    """The current quantity moved because a ledger entry was appended."""

    __version__ = "v1"

    item_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    movement_id = Identifier(required=True)
    movement_type = String(required=True)
    previous_quantity = Integer(default=0)
    new_quantity = Integer(default=0)
    changed_at = DateTime(required=True)


@stockkeeping.event(part_of="InventoryItem")
class ItemStatusChanged:
    __version__ = "v1"

    item_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@stockkeeping.event(part_of="InventoryItem")
class StockLevelsUpdated:
    __version__ = "v1"

    item_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    min_stock_level = Integer()
    max_stock_level = Integer()
    updated_at = DateTime(required=True)


@stockkeeping.event(part_of="InventoryItem")
class InventoryItemDeleted:
    __version__ = "v1"

    item_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    location_code = String()
    deleted_by = String()
    deleted_at = DateTime(required=True)
