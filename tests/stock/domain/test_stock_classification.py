"""Tests for threshold classification and summary building."""

import pytest

from stockkeeping.stock.aggregator import StockClassification, build_summary, classify
from stockkeeping.stock.item import InventoryItem, ItemStatus


class TestClassify:
    @pytest.mark.parametrize(
        "available, expected",
        [
            (8, StockClassification.CRITICAL),
            (14, StockClassification.LOW),
            (15, StockClassification.OK),
            (0, StockClassification.OUT_OF_STOCK),
        ],
    )
    def test_floor_of_ten(self, available, expected):
        assert classify(available, 10) is expected

    def test_no_floor_is_ok(self):
        assert classify(3, None) is StockClassification.OK

    def test_zero_is_out_of_stock_without_floor(self):
        assert classify(0, None) is StockClassification.OUT_OF_STOCK

    def test_exactly_at_floor_is_low(self):
        assert classify(10, 10) is StockClassification.LOW


def _item(quantity, status=ItemStatus.AVAILABLE.value, min_level=None, max_level=None):
    return InventoryItem(
        tenant_id="tenant-001",
        warehouse_id="wh-001",
        product_id="prod-001",
        quantity=quantity,
        status=status,
        min_stock_level=min_level,
        max_stock_level=max_level,
    )


class TestBuildSummary:
    def test_quantities_are_bucketed_by_status(self):
        summary = build_summary(
            "prod-001",
            "wh-001",
            [
                _item(5),
                _item(3, status=ItemStatus.RESERVED.value),
                _item(2, status=ItemStatus.IN_TRANSIT.value),
                _item(4, status=ItemStatus.DAMAGED.value),
            ],
        )
        assert summary.total == 14
        assert summary.available == 5
        assert summary.reserved == 3
        assert summary.in_transit == 2
        assert summary.item_count == 4

    def test_smallest_floor_wins(self):
        summary = build_summary("prod-001", None, [_item(4, min_level=10), _item(4, min_level=6, max_level=50)])
        assert summary.min_stock_level == 6
        assert summary.max_stock_level == 50
        assert summary.classification is StockClassification.LOW
        assert summary.deficit == 0

    def test_deficit(self):
        summary = build_summary("prod-001", None, [_item(3, min_level=10)])
        assert summary.classification is StockClassification.CRITICAL
        assert summary.is_below_threshold
        assert summary.deficit == 7

    def test_no_items(self):
        assert build_summary("prod-001", None, []) is None
