"""Read-side ledger operations: history, period summaries, replay and reconciliation."""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from stockkeeping.ledger.movement import Movement, MovementType
from stockkeeping.shared.clock import as_utc
from stockkeeping.shared.pagination import MAX_HISTORY_LIMIT, Page, clamp_window, paginate
from stockkeeping.stock.item import InventoryItem

_RECEIPT_TYPES = {MovementType.RECEIPT, MovementType.RETURN, MovementType.RELEASE}
_ISSUE_TYPES = {MovementType.ISSUE, MovementType.RESERVATION}


@dataclass
class MovementSummary:
    """Unsigned totals per category over a period."""

    receipts: int = 0
    issues: int = 0
    transfers_out: int = 0
    transfers_in: int = 0
    adjustments_positive: int = 0
    adjustments_negative: int = 0
    scrapped: int = 0
    movement_count: int = 0

    @property
    def net_change(self) -> int:
        return (
            self.receipts
            + self.transfers_in
            + self.adjustments_positive
            - self.issues
            - self.transfers_out
            - self.adjustments_negative
            - self.scrapped
        )

    def add(self, movement: Movement) -> None:
        kind = movement.kind
        change = movement.quantity_change or 0
        self.movement_count += 1

        if kind in _RECEIPT_TYPES:
            self.receipts += change
        elif kind in _ISSUE_TYPES:
            self.issues += -change
        elif kind is MovementType.SCRAP:
            self.scrapped += -change
        elif kind is MovementType.TRANSFER_OUT:
            self.transfers_out += -change
        elif kind is MovementType.TRANSFER_IN:
            self.transfers_in += change
        elif kind is MovementType.ADJUSTMENT:
            if change >= 0:
                self.adjustments_positive += change
            else:
                self.adjustments_negative += -change


@dataclass(frozen=True)
class Replay:
    item_id: str
    quantity: int
    entries: int
    breaks: list[int] = field(default_factory=list)

    @property
    def is_continuous(self) -> bool:
        return not self.breaks


@dataclass(frozen=True)
class Reconciliation:
    item_id: str
    recorded_quantity: int
    ledger_quantity: int
    replay: Replay

    @property
    def in_sync(self) -> bool:
        return self.recorded_quantity == self.ledger_quantity and self.replay.is_continuous


def history(tenant_id, item_id, limit: int | None = None) -> list[Movement]:
    """Ledger entries of one item, oldest first, capped at the history limit."""
    current_domain.repository_for(InventoryItem).get_for_tenant(item_id, tenant_id)
    _, limit = clamp_window(0, limit or MAX_HISTORY_LIMIT, MAX_HISTORY_LIMIT)
    return current_domain.repository_for(Movement).for_item(tenant_id, item_id)[:limit]


def summarize(tenant_id, start, end, warehouse_id=None) -> MovementSummary:
    summary = MovementSummary()
    for movement in current_domain.repository_for(Movement).in_period(
        tenant_id, as_utc(start), as_utc(end), warehouse_id
    ):
        summary.add(movement)
    return summary


def replay(tenant_id, item_id) -> Replay:
    """Rebuild an item's quantity from its ledger, noting every continuity break."""
    quantity = 0
    breaks = []
    entries = current_domain.repository_for(Movement).for_item(tenant_id, item_id)
    for movement in entries:
        if movement.previous_quantity != quantity:
            breaks.append(movement.sequence)
        quantity = movement.previous_quantity + (movement.quantity_change or 0)
    return Replay(item_id=str(item_id), quantity=quantity, entries=len(entries), breaks=breaks)


def reconcile(tenant_id, item_id) -> Reconciliation:
    item = current_domain.repository_for(InventoryItem).get_for_tenant(item_id, tenant_id)
    result = replay(tenant_id, item_id)
    return Reconciliation(
        item_id=str(item_id),
        recorded_quantity=item.quantity or 0,
        ledger_quantity=result.quantity,
        replay=result,
    )


def list_movements(
    tenant_id,
    movement_type: str | None = None,
    reference_id=None,
    warehouse_id=None,
    offset: int | None = None,
    limit: int | None = None,
) -> Page:
    filters = {}
    if movement_type is not None:
        filters["movement_type"] = MovementType(movement_type).value
    if reference_id is not None:
        filters["reference_id"] = str(reference_id)
    if warehouse_id is not None:
        filters["warehouse_id"] = str(warehouse_id)

    queryset = current_domain.repository_for(Movement).for_tenant(tenant_id, **filters)
    return paginate(queryset.order_by("-performed_at"), offset, limit)
