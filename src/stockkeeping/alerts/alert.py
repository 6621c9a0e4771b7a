"""StockAlert aggregate — a threshold breach and its handling by people.

Alert Lifecycle:
    ACTIVE       → ACKNOWLEDGED, SNOOZED, RESOLVED
    ACKNOWLEDGED → SNOOZED, RESOLVED
    SNOOZED      → ACKNOWLEDGED, RESOLVED
    RESOLVED is terminal

Snoozes do not expire on their own: whoever re-checks an alert compares
``snoozed_until`` with the current time (see ``snooze_expired``).
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from stockkeeping.alerts.events import (
    StockAlertAcknowledged,
    StockAlertRaised,
    StockAlertRefreshed,
    StockAlertResolved,
    StockAlertSnoozed,
)
from stockkeeping.domain import stockkeeping
from stockkeeping.errors import InvalidTransition
from stockkeeping.shared.clock import as_utc

MIN_SNOOZE_DAYS = 1
MAX_SNOOZE_DAYS = 30


class AlertType(Enum):
    LOW_STOCK = "Low_Stock"
    OUT_OF_STOCK = "Out_Of_Stock"
    OVERSTOCK = "Overstock"
    EXPIRING_SOON = "Expiring_Soon"
    WARRANTY_EXPIRING = "Warranty_Expiring"


class AlertPriority(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class AlertStatus(Enum):
    ACTIVE = "Active"
    ACKNOWLEDGED = "Acknowledged"
    SNOOZED = "Snoozed"
    RESOLVED = "Resolved"


_VALID_TRANSITIONS = {
    AlertStatus.ACTIVE: {AlertStatus.ACKNOWLEDGED, AlertStatus.SNOOZED, AlertStatus.RESOLVED},
    AlertStatus.ACKNOWLEDGED: {AlertStatus.SNOOZED, AlertStatus.RESOLVED},
    AlertStatus.SNOOZED: {AlertStatus.ACKNOWLEDGED, AlertStatus.RESOLVED},
    AlertStatus.RESOLVED: set(),  # terminal
}

OPEN_STATUSES = {AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED, AlertStatus.SNOOZED}


@stockkeeping.aggregate
class StockAlert:
    """An alert about one product (optionally in one warehouse)."""

    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    warehouse_id = Identifier()
    alert_type = String(required=True, max_length=20, choices=AlertType)
    priority = String(max_length=10, choices=AlertPriority, default=AlertPriority.MEDIUM.value)
    status = String(max_length=15, choices=AlertStatus, default=AlertStatus.ACTIVE.value)
    current_quantity = Integer(default=0)
    minimum_level = Integer()
    deficit = Integer()
    unit = String(max_length=20)
    message = Text()
    acknowledged_by = String(max_length=100)
    acknowledged_at = DateTime()
    snoozed_until = DateTime()
    resolved_by = String(max_length=100)
    resolved_at = DateTime()
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def raise_alert(
        cls,
        tenant_id,
        product_id,
        alert_type,
        priority,
        current_quantity,
        minimum_level=None,
        deficit=None,
        unit=None,
        message=None,
        warehouse_id=None,
    ):
        now = datetime.now(UTC)
        alert = cls(
            tenant_id=tenant_id,
            product_id=product_id,
            warehouse_id=warehouse_id,
            alert_type=alert_type,
            priority=priority,
            status=AlertStatus.ACTIVE.value,
            current_quantity=current_quantity,
            minimum_level=minimum_level,
            deficit=deficit,
            unit=unit,
            message=message,
            created_at=now,
            updated_at=now,
        )
        alert.raise_(
            StockAlertRaised(
                alert_id=str(alert.id),
                tenant_id=str(tenant_id),
                product_id=str(product_id),
                warehouse_id=str(warehouse_id) if warehouse_id else None,
                alert_type=alert_type,
                priority=priority,
                current_quantity=current_quantity,
                minimum_level=minimum_level,
                deficit=deficit,
                raised_at=now,
            )
        )
        return alert

    @property
    def is_open(self) -> bool:
        return AlertStatus(self.status) in OPEN_STATUSES

    def _assert_can_transition(self, target_status: AlertStatus) -> None:
        current = AlertStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition("StockAlert", current.value, target_status.value)

    def _append_note(self, note: str | None) -> None:
        if note:
            self.notes = f"{self.notes}\n{note}" if self.notes else note

    def refresh(self, current_quantity, deficit, priority, message) -> bool:
        """Update the figures of an open alert in place. Returns whether anything changed."""
        if not self.is_open:
            raise InvalidTransition("StockAlert", self.status, self.status)
        if (self.current_quantity, self.deficit, self.priority, self.message) == (
            current_quantity,
            deficit,
            priority,
            message,
        ):
            return False

        self.current_quantity = current_quantity
        self.deficit = deficit
        self.priority = priority
        self.message = message
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockAlertRefreshed(
                alert_id=str(self.id),
                tenant_id=str(self.tenant_id),
                priority=priority,
                current_quantity=current_quantity,
                deficit=deficit,
                refreshed_at=self.updated_at,
            )
        )
        return True

    def acknowledge(self, user_id: str, note: str | None = None) -> None:
        self._assert_can_transition(AlertStatus.ACKNOWLEDGED)
        now = datetime.now(UTC)
        self.status = AlertStatus.ACKNOWLEDGED.value
        self.acknowledged_by = user_id
        self.acknowledged_at = now
        self._append_note(note)
        self.updated_at = now
        self.raise_(
            StockAlertAcknowledged(
                alert_id=str(self.id),
                tenant_id=str(self.tenant_id),
                acknowledged_by=user_id,
                acknowledged_at=now,
            )
        )

    def snooze(self, days: int, note: str | None = None) -> None:
        if days is None or not MIN_SNOOZE_DAYS <= days <= MAX_SNOOZE_DAYS:
            raise ValidationError(
                {"days": [f"Snooze must be between {MIN_SNOOZE_DAYS} and {MAX_SNOOZE_DAYS} days"]}
            )
        self._assert_can_transition(AlertStatus.SNOOZED)

        now = datetime.now(UTC)
        self.status = AlertStatus.SNOOZED.value
        self.snoozed_until = now + timedelta(days=days)
        self._append_note(note)
        self.updated_at = now
        self.raise_(
            StockAlertSnoozed(
                alert_id=str(self.id),
                tenant_id=str(self.tenant_id),
                snoozed_until=self.snoozed_until,
            )
        )

    def resolve(self, resolved_by: str | None = None, note: str | None = None) -> None:
        self._assert_can_transition(AlertStatus.RESOLVED)
        now = datetime.now(UTC)
        self.status = AlertStatus.RESOLVED.value
        self.resolved_by = resolved_by
        self.resolved_at = now
        self._append_note(note)
        self.updated_at = now
        self.raise_(
            StockAlertResolved(
                alert_id=str(self.id),
                tenant_id=str(self.tenant_id),
                resolved_by=resolved_by,
                resolved_at=now,
            )
        )


def snooze_expired(alert: StockAlert, now: datetime | None = None) -> bool:
    """True when a snoozed alert's window has passed and it deserves attention again."""
    if alert.status != AlertStatus.SNOOZED.value or alert.snoozed_until is None:
        return False
    return as_utc(alert.snoozed_until) <= (as_utc(now) or datetime.now(UTC))
