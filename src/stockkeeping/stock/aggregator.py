"""Per-product stock summaries and threshold classification.

Summaries are computed from the current item rows, which the movement
ledger keeps in step with their history. The floor used for classification
is the smallest ``min_stock_level`` configured on any matching item.
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum

from protean.utils.globals import current_domain

from stockkeeping.stock.item import InventoryItem, ItemStatus

LOW_BAND_MULTIPLIER = 1.5


class StockClassification(Enum):
    OK = "OK"
    LOW = "LOW"
    CRITICAL = "CRITICAL"
    OUT_OF_STOCK = "OUT_OF_STOCK"


BELOW_THRESHOLD = {StockClassification.LOW, StockClassification.CRITICAL, StockClassification.OUT_OF_STOCK}

_BUCKETS = {
    ItemStatus.AVAILABLE: "available",
    ItemStatus.RESERVED: "reserved",
    ItemStatus.IN_TRANSIT: "in_transit",
    ItemStatus.IN_SERVICE: "in_service",
    ItemStatus.RENTED: "rented",
}


def classify(available: int, floor: int | None) -> StockClassification:
    """Bucket available stock against a minimum level.

    Zero is always OUT_OF_STOCK, with or without a floor.
    """
    if available <= 0:
        return StockClassification.OUT_OF_STOCK
    if not floor:
        return StockClassification.OK
    if available < floor:
        return StockClassification.CRITICAL
    if available < floor * LOW_BAND_MULTIPLIER:
        return StockClassification.LOW
    return StockClassification.OK


@dataclass(frozen=True)
class StockSummary:
    product_id: str
    warehouse_id: str | None
    product_name: str | None
    unit: str | None
    total: int
    available: int
    reserved: int
    in_transit: int
    in_service: int
    rented: int
    min_stock_level: int | None
    max_stock_level: int | None
    item_count: int

    @property
    def classification(self) -> StockClassification:
        return classify(self.available, self.min_stock_level)

    @property
    def is_below_threshold(self) -> bool:
        return self.classification in BELOW_THRESHOLD

    @property
    def deficit(self) -> int:
        return max(0, (self.min_stock_level or 0) - self.available)


def build_summary(product_id, warehouse_id, items: list[InventoryItem]) -> StockSummary | None:
    if not items:
        return None

    totals = defaultdict(int)
    floors = [item.min_stock_level for item in items if item.min_stock_level is not None]
    ceilings = [item.max_stock_level for item in items if item.max_stock_level is not None]
    for item in items:
        quantity = item.quantity or 0
        totals["total"] += quantity
        bucket = _BUCKETS.get(ItemStatus(item.status))
        if bucket:
            totals[bucket] += quantity

    first = items[0]
    return StockSummary(
        product_id=str(product_id),
        warehouse_id=str(warehouse_id) if warehouse_id is not None else None,
        product_name=first.product_name,
        unit=first.unit,
        total=totals["total"],
        available=totals["available"],
        reserved=totals["reserved"],
        in_transit=totals["in_transit"],
        in_service=totals["in_service"],
        rented=totals["rented"],
        min_stock_level=min(floors) if floors else None,
        max_stock_level=max(ceilings) if ceilings else None,
        item_count=len(items),
    )


def summarize(tenant_id, product_id, warehouse_id=None) -> StockSummary | None:
    """Stock of one product, in one warehouse or across all of them."""
    items = current_domain.repository_for(InventoryItem).for_product(tenant_id, product_id, warehouse_id)
    return build_summary(product_id, warehouse_id, items)


def summaries(tenant_id, warehouse_id=None, product_ids=None) -> list[StockSummary]:
    """One summary per product, per warehouse when ``warehouse_id`` is given."""
    filters = {}
    if warehouse_id is not None:
        filters["warehouse_id"] = str(warehouse_id)
    if product_ids is not None:
        filters["product_id__in"] = [str(p) for p in product_ids]

    grouped = defaultdict(list)
    for item in current_domain.repository_for(InventoryItem).scan(tenant_id, **filters):
        grouped[str(item.product_id)].append(item)

    return [build_summary(product_id, warehouse_id, items) for product_id, items in sorted(grouped.items())]


def below_threshold(tenant_id, warehouse_id=None) -> list[StockSummary]:
    """Summaries classified LOW, CRITICAL or OUT_OF_STOCK."""
    return [summary for summary in summaries(tenant_id, warehouse_id) if summary.is_below_threshold]


def cross_warehouse_stock(tenant_id, product_id) -> dict[str, StockSummary]:
    """Per-warehouse summaries of one product, keyed by warehouse id."""
    grouped = defaultdict(list)
    for item in current_domain.repository_for(InventoryItem).for_product(tenant_id, product_id):
        grouped[str(item.warehouse_id)].append(item)
    return {
        warehouse_id: build_summary(product_id, warehouse_id, items) for warehouse_id, items in grouped.items()
    }
