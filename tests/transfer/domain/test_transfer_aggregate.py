"""Tests for the Transfer aggregate and its lifecycle."""

import re

import pytest
from protean.exceptions import ValidationError

from stockkeeping.errors import InvalidTransition
from stockkeeping.transfer.events import TransferCompleted, TransferCreated
from stockkeeping.transfer.transfer import Transfer, TransferStatus


def _make_transfer(**overrides):
    defaults = {
        "tenant_id": "tenant-001",
        "source_warehouse_id": "wh-001",
        "target_warehouse_id": "wh-002",
        "items_data": [{"inventory_item_id": "item-001", "quantity": 10}],
        "initiated_by": "user-1",
    }
    defaults.update(overrides)
    return Transfer.create(**defaults)


def _transfer_in(status: TransferStatus):
    transfer = _make_transfer()
    if status is TransferStatus.IN_TRANSIT:
        transfer.start()
    elif status is TransferStatus.COMPLETED:
        transfer.start()
        transfer.complete("user-2", {})
    elif status is TransferStatus.CANCELLED:
        transfer.cancel("user-1", "Not needed")
    return transfer


_ACTIONS = {
    TransferStatus.PENDING: None,
    TransferStatus.IN_TRANSIT: lambda t: t.start(),
    TransferStatus.COMPLETED: lambda t: t.complete("user-2", {}),
    TransferStatus.CANCELLED: lambda t: t.cancel("user-1", "Not needed"),
}

_ALLOWED = {
    (TransferStatus.PENDING, TransferStatus.IN_TRANSIT),
    (TransferStatus.PENDING, TransferStatus.CANCELLED),
    (TransferStatus.IN_TRANSIT, TransferStatus.COMPLETED),
}


class TestTransferCreation:
    def test_starts_pending_with_code(self):
        transfer = _make_transfer()
        assert transfer.status == TransferStatus.PENDING.value
        assert re.fullmatch(r"TRF-\d{4}-[0-9A-F]{8}", transfer.transfer_code)
        assert transfer.initiated_at is not None
        assert len([e for e in transfer._events if isinstance(e, TransferCreated)]) == 1

    def test_same_warehouse_is_refused(self):
        with pytest.raises(ValidationError) as exc_info:
            _make_transfer(target_warehouse_id="wh-001")
        assert "target_warehouse_id" in exc_info.value.messages

    def test_empty_item_list_is_refused(self):
        with pytest.raises(ValidationError) as exc_info:
            _make_transfer(items_data=[])
        assert "items" in exc_info.value.messages

    def test_non_positive_quantity_is_refused(self):
        with pytest.raises(ValidationError):
            _make_transfer(items_data=[{"inventory_item_id": "item-001", "quantity": 0}])

    def test_item_listed_twice_is_refused(self):
        with pytest.raises(ValidationError):
            _make_transfer(
                items_data=[
                    {"inventory_item_id": "item-001", "quantity": 1},
                    {"inventory_item_id": "item-001", "quantity": 2},
                ]
            )

    def test_holds_item(self):
        transfer = _make_transfer()
        assert transfer.holds_item("item-001")
        assert not transfer.holds_item("item-002")


class TestTransitionMatrix:
    @pytest.mark.parametrize("current", list(TransferStatus))
    @pytest.mark.parametrize("target", list(TransferStatus))
    def test_transition(self, current, target):
        transfer = _transfer_in(current)
        action = _ACTIONS[target]

        if (current, target) in _ALLOWED:
            action(transfer)
            assert transfer.status == target.value
        elif action is None:
            with pytest.raises(InvalidTransition):
                transfer.assert_can_transition(target)
        else:
            with pytest.raises(InvalidTransition) as exc_info:
                action(transfer)
            assert exc_info.value.current == current.value
            assert exc_info.value.attempted == target.value
            assert transfer.status == current.value

    def test_exactly_three_transitions_succeed(self):
        succeeded = 0
        for current in TransferStatus:
            for target in TransferStatus:
                transfer = _transfer_in(current)
                try:
                    transfer.assert_can_transition(target)
                except InvalidTransition:
                    continue
                succeeded += 1
        assert succeeded == 3


class TestCompletion:
    def test_received_quantities_default_to_shipped(self):
        transfer = _transfer_in(TransferStatus.IN_TRANSIT)
        transfer.complete("user-2", {})
        assert transfer.items[0].received_quantity == 10
        event = [e for e in transfer._events if isinstance(e, TransferCompleted)][0]
        assert (event.shipped_quantity, event.received_quantity) == (10, 10)

    def test_received_override(self):
        transfer = _transfer_in(TransferStatus.IN_TRANSIT)
        transfer.complete("user-2", {"item-001": 9}, note="One crate short")
        assert transfer.items[0].received_quantity == 9
        assert transfer.completion_note == "One crate short"
        assert transfer.completed_by == "user-2"

    def test_cancel_records_reason(self):
        transfer = _transfer_in(TransferStatus.CANCELLED)
        assert transfer.cancellation_reason == "Not needed"
        assert transfer.cancelled_at is not None
