"""Tests for the InventoryItem aggregate."""

import pytest
from protean.exceptions import ValidationError

from stockkeeping.errors import InvalidTransition
from stockkeeping.ledger.movement import Movement
from stockkeeping.stock.events import (
    InventoryItemDeleted,
    InventoryItemRegistered,
    ItemQuantityChanged,
    ItemStatusChanged,
)
from stockkeeping.stock.item import DEFAULT_UNIT, InventoryItem, ItemStatus


def _make_item(**overrides):
    defaults = {"tenant_id": "tenant-001", "warehouse_id": "wh-001", "product_id": "prod-001"}
    defaults.update(overrides)
    return InventoryItem.register(**defaults)


def _movement_for(item, change, previous=None, movement_type="Receipt", reason=None):
    return Movement.record(
        tenant_id=item.tenant_id,
        inventory_item_id=str(item.id),
        warehouse_id=item.warehouse_id,
        product_id=item.product_id,
        movement_type=movement_type,
        quantity_change=change,
        previous_quantity=item.quantity if previous is None else previous,
        sequence=(item.ledger_sequence or 0) + 1,
        performed_by="user-1",
        reason=reason,
    )


class TestRegistration:
    def test_starts_empty_and_available(self):
        item = _make_item()
        assert item.quantity == 0
        assert item.status == ItemStatus.AVAILABLE.value
        assert item.unit == DEFAULT_UNIT
        assert len([e for e in item._events if isinstance(e, InventoryItemRegistered)]) == 1

    def test_max_below_min_is_refused(self):
        with pytest.raises(ValidationError) as exc_info:
            _make_item(min_stock_level=10, max_stock_level=5)
        assert "max_stock_level" in exc_info.value.messages


class TestApplyMovement:
    def test_apply_moves_quantity_and_sequence(self):
        item = _make_item()
        movement = _movement_for(item, 7)
        item.apply_movement(movement)
        assert item.quantity == 7
        assert item.ledger_sequence == 1
        assert item.last_movement_at == movement.performed_at
        assert len([e for e in item._events if isinstance(e, ItemQuantityChanged)]) == 1

    def test_entry_from_another_starting_point_is_refused(self):
        item = _make_item()
        with pytest.raises(ValidationError):
            item.apply_movement(_movement_for(item, 7, previous=3))


class TestStatus:
    def test_change_returns_previous(self):
        item = _make_item()
        assert item.change_status(ItemStatus.RESERVED.value) == ItemStatus.AVAILABLE.value
        assert item.status == ItemStatus.RESERVED.value
        assert len([e for e in item._events if isinstance(e, ItemStatusChanged)]) == 1

    def test_terminal_status_is_final(self):
        item = _make_item()
        item.change_status(ItemStatus.SOLD.value)
        assert item.is_terminal
        with pytest.raises(InvalidTransition) as exc_info:
            item.change_status(ItemStatus.AVAILABLE.value)
        assert exc_info.value.current == "Sold"
        assert exc_info.value.attempted == "Available"

    def test_disallowed_transition(self):
        item = _make_item()
        item.change_status(ItemStatus.LOST.value)
        with pytest.raises(InvalidTransition):
            item.change_status(ItemStatus.RENTED.value)

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            _make_item().change_status("Vanished")


class TestDeletion:
    def test_empty_item_is_soft_deleted(self):
        item = _make_item(location_code="K1-P1-D1")
        item.delete("user-1")
        assert item.is_deleted is True
        assert item.deleted_at is not None
        (event,) = [e for e in item._events if isinstance(e, InventoryItemDeleted)]
        assert event.location_code == "K1-P1-D1"
        assert event.deleted_by == "user-1"

    @pytest.mark.parametrize("status", [ItemStatus.RESERVED, ItemStatus.RENTED, ItemStatus.IN_TRANSIT])
    def test_item_out_of_the_building_cannot_be_deleted(self, status):
        item = _make_item()
        item.change_status(status.value)
        with pytest.raises(ValidationError) as exc_info:
            item.delete()
        assert "status" in exc_info.value.messages
        assert item.is_deleted is False

    def test_item_with_quantity_cannot_be_deleted(self):
        item = _make_item()
        item.apply_movement(_movement_for(item, 4))
        with pytest.raises(ValidationError) as exc_info:
            item.delete()
        assert "quantity" in exc_info.value.messages

    def test_damaged_empty_item_can_be_deleted(self):
        item = _make_item()
        item.change_status(ItemStatus.DAMAGED.value)
        item.delete()
        assert item.is_deleted is True
