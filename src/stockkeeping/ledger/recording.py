"""Movement recording — the single write path of the stock ledger.

``append_movements`` is what every quantity change goes through: it checks
each entry against the item's current quantity and against the entries
before it in the same batch, checks the occupancy of every location the
batch touches, and only then writes the movements, the new item quantities
and the occupancy counters. Called from a command handler, all of it lands
in one unit of work, so a batch is applied completely or not at all.
"""

import json
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import NotFound
from stockkeeping.ledger.movement import Movement
from stockkeeping.location.location import Location
from stockkeeping.shared.clock import as_utc
from stockkeeping.stock.item import InventoryItem
from stockkeeping.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class MovementEntry:
    """One requested ledger entry, against an already loaded item."""

    item: InventoryItem
    movement_type: str
    quantity_change: int
    performed_by: str
    reason: str | None = None
    note: str | None = None
    reference_id: str | None = None
    reference_type: str | None = None
    performed_at: datetime | None = None
    expected_quantity: int | None = None


def _resolve_location(cache: dict, item: InventoryItem) -> Location:
    key = (str(item.warehouse_id), item.location_code)
    if key not in cache:
        location = current_domain.repository_for(Location).find_by_code(
            item.tenant_id, item.warehouse_id, item.location_code
        )
        if location is None:
            raise NotFound("Location", item.location_code)
        cache[key] = location
    return cache[key]


def append_movements(entries: list[MovementEntry]) -> list[Movement]:
    """Validate a batch of ledger entries, then apply all of them.

    Nothing is written unless every entry passes. Entries for the same item
    are chained: each starts where the previous one ended.
    """
    if not entries:
        raise ValidationError({"entries": ["At least one movement is required"]})

    items: dict[str, InventoryItem] = {}
    running: dict[str, tuple[int, int, datetime | None]] = {}
    locations: dict = {}
    occupancy = defaultdict(int)
    movements = []

    for entry in entries:
        key = str(entry.item.id)
        item = items.setdefault(key, entry.item)
        quantity, sequence, last_at = running.get(
            key, (item.quantity or 0, item.ledger_sequence or 0, item.last_movement_at)
        )

        if entry.expected_quantity is not None and entry.expected_quantity != quantity:
            raise ValidationError(
                {"expected_quantity": [f"Item {key} holds {quantity}, caller expected {entry.expected_quantity}"]}
            )

        performed_at = as_utc(entry.performed_at) or datetime.now(UTC)
        if last_at is not None and performed_at < as_utc(last_at):
            raise ValidationError({"performed_at": [f"Item {key} already has ledger entries after {performed_at}"]})

        movement = Movement.record(
            tenant_id=item.tenant_id,
            inventory_item_id=key,
            warehouse_id=item.warehouse_id,
            product_id=item.product_id,
            movement_type=entry.movement_type,
            quantity_change=entry.quantity_change,
            previous_quantity=quantity,
            sequence=sequence + 1,
            performed_by=entry.performed_by,
            reason=entry.reason,
            note=entry.note,
            location_before=item.location_code,
            location_after=item.location_code,
            reference_id=entry.reference_id,
            reference_type=entry.reference_type,
            performed_at=performed_at,
        )
        running[key] = (movement.new_quantity, movement.sequence, movement.performed_at)
        movements.append((item, movement))

        if item.location_code and entry.quantity_change:
            location = _resolve_location(locations, item)
            occupancy[str(location.id)] += entry.quantity_change

    by_id = {str(location.id): location for location in locations.values()}
    for location_id, delta in occupancy.items():
        by_id[location_id].check_occupancy_change(delta)

    # Every check passed; write.
    movement_repo = current_domain.repository_for(Movement)
    for item, movement in movements:
        item.apply_movement(movement)
        movement_repo.add(movement)

    item_repo = current_domain.repository_for(InventoryItem)
    for item in items.values():
        item_repo.add(item)

    location_repo = current_domain.repository_for(Location)
    for location_id, delta in occupancy.items():
        if delta:
            by_id[location_id].adjust_occupancy(delta)
            location_repo.add(by_id[location_id])

    return [movement for _, movement in movements]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@stockkeeping.command(part_of="Movement")
class RecordMovement:
    """Append one ledger entry to an item."""

    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    movement_type = String(required=True, max_length=20)
    quantity_change = Integer()
    performed_by = String(required=True, max_length=100)
    reason = String(max_length=255)
    note = Text()
    reference_id = Identifier()
    reference_type = String(max_length=50)
    expected_quantity = Integer()
    performed_at = DateTime()


@stockkeeping.command(part_of="Movement")
class RecordMovementBatch:
    """Append several ledger entries all-or-nothing."""

    tenant_id = Identifier(required=True)
    performed_by = String(required=True, max_length=100)
    # JSON list of {inventory_item_id, movement_type, quantity_change, reason, note, performed_at, ...}
    entries = Text(required=True)
    reference_id = Identifier()
    reference_type = String(max_length=50)


def _timestamp(value) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError({"performed_at": [f"Not an ISO 8601 timestamp: {value}"]}) from exc


def _load_items(tenant_id, item_ids) -> dict[str, InventoryItem]:
    repo = current_domain.repository_for(InventoryItem)
    return {str(item_id): repo.get_for_tenant(item_id, tenant_id) for item_id in dict.fromkeys(item_ids)}


@stockkeeping.command_handler(part_of=Movement)
class MovementRecordingHandler:
    @handle(RecordMovement)
    def record_movement(self, command):
        items = _load_items(command.tenant_id, [str(command.inventory_item_id)])
        (movement,) = append_movements(
            [
                MovementEntry(
                    item=items[str(command.inventory_item_id)],
                    movement_type=command.movement_type,
                    quantity_change=command.quantity_change,
                    performed_by=command.performed_by,
                    reason=command.reason,
                    note=command.note,
                    reference_id=command.reference_id,
                    reference_type=command.reference_type,
                    expected_quantity=command.expected_quantity,
                    performed_at=command.performed_at,
                )
            ]
        )
        logger.info(
            "Movement recorded",
            tenant_id=str(command.tenant_id),
            movement_id=str(movement.id),
            movement_type=movement.movement_type,
            quantity_change=movement.quantity_change,
        )
        return str(movement.id)

    @handle(RecordMovementBatch)
    def record_movement_batch(self, command):
        raw_entries = json.loads(command.entries) if isinstance(command.entries, str) else command.entries
        items = _load_items(command.tenant_id, [str(raw["inventory_item_id"]) for raw in raw_entries])

        entries = [
            MovementEntry(
                item=items[str(raw["inventory_item_id"])],
                movement_type=raw["movement_type"],
                quantity_change=raw.get("quantity_change"),
                performed_by=command.performed_by,
                reason=raw.get("reason"),
                note=raw.get("note"),
                reference_id=raw.get("reference_id") or command.reference_id,
                reference_type=raw.get("reference_type") or command.reference_type,
                expected_quantity=raw.get("expected_quantity"),
                performed_at=_timestamp(raw.get("performed_at")),
            )
            for raw in raw_entries
        ]
        try:
            movements = append_movements(entries)
        except ValidationError as exc:
            logger.warning(
                "Movement batch refused",
                tenant_id=str(command.tenant_id),
                entries=len(entries),
                error=str(exc),
            )
            raise
        logger.info("Movement batch recorded", tenant_id=str(command.tenant_id), entries=len(movements))
        return [str(movement.id) for movement in movements]
