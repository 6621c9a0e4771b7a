"""Domain events for the Warehouse aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping


@stockkeeping.event(part_of="Warehouse")
class WarehouseCreated:
    """A new warehouse was registered for a tenant."""

    __version__ = "v1"

    warehouse_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    name = String(required=True)
    warehouse_type = String(required=True)
    is_default = Boolean(default=False)
    created_at = DateTime(required=True)


@stockkeeping.event(part_of="Warehouse")
class WarehouseUpdated:
    """Warehouse details were updated."""

    __version__ = "v1"

    warehouse_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    name = String(required=True)
    warehouse_type = String(required=True)
    status = String(required=True)
    updated_at = DateTime(required=True)


@stockkeeping.event(part_of="Warehouse")
class DefaultWarehouseChanged:
    """The warehouse became the tenant's default warehouse."""

    __version__ = "v1"

    warehouse_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_default_id = Identifier()
    changed_at = DateTime(required=True)


@stockkeeping.event(part_of="Warehouse")
class WarehouseDecommissioned:
    """The warehouse and all of its locations were soft-deleted."""

    __version__ = "v1"

    warehouse_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    locations_retired = Integer(default=0)
    decommissioned_at = DateTime(required=True)
