"""Domain events for location structures and locations."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from stockkeeping.domain import stockkeeping


@stockkeeping.event(part_of="LocationStructure")
class LocationStructureDefined:
    """A warehouse received its location code structure."""

    __version__ = "v1"

    structure_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    zone_prefix = String(required=True)
    shelf_prefix = String(required=True)
    bin_prefix = String(required=True)
    separator = String(required=True)
    max_zones = Integer(required=True)
    max_shelves = Integer(required=True)
    max_bins = Integer(required=True)
    defined_at = DateTime(required=True)


@stockkeeping.event(part_of="LocationStructure")
class LocationStructureChanged:
    """Prefixes, separator or maxima of a structure changed."""

    __version__ = "v1"

    structure_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    zone_prefix = String(required=True)
    shelf_prefix = String(required=True)
    bin_prefix = String(required=True)
    separator = String(required=True)
    max_zones = Integer(required=True)
    max_shelves = Integer(required=True)
    max_bins = Integer(required=True)
    changed_at = DateTime(required=True)


@stockkeeping.event(part_of="LocationStructure")
class LocationsGenerated:
    """A bulk generation run enumerated a block of location codes."""

    __version__ = "v1"

    structure_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    total_created = Integer(default=0)
    skipped = Integer(default=0)
    sample_codes = Text()  # JSON list of code strings
    generated_at = DateTime(required=True)


@stockkeeping.event(part_of="Location")
class LocationCreated:
    """A single location was registered."""

    __version__ = "v1"

    location_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    code = String(required=True)
    capacity = Integer()
    created_at = DateTime(required=True)


@stockkeeping.event(part_of="Location")
class OccupancyAdjusted:
    """Units were placed into or taken out of a location."""

    __version__ = "v1"

    location_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    delta = Integer()
    previous_occupancy = Integer(default=0)
    new_occupancy = Integer(default=0)
    status = String(required=True)
    adjusted_at = DateTime(required=True)


@stockkeeping.event(part_of="Location")
class LocationDeactivated:
    """A location was manually taken out of service."""

    __version__ = "v1"

    location_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    deactivated_at = DateTime(required=True)


@stockkeeping.event(part_of="Location")
class LocationReactivated:
    """A manually deactivated location was put back into service."""

    __version__ = "v1"

    location_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    status = String(required=True)
    reactivated_at = DateTime(required=True)


@stockkeeping.event(part_of="Location")
class LocationCapacityChanged:
    """The capacity of a location changed."""

    __version__ = "v1"

    location_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    previous_capacity = Integer()
    new_capacity = Integer()
    status = String(required=True)
    changed_at = DateTime(required=True)


@stockkeeping.event(part_of="Location")
class LocationDeleted:
    """A location was soft-deleted."""

    __version__ = "v1"

    location_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    code = String(required=True)
    deleted_at = DateTime(required=True)
