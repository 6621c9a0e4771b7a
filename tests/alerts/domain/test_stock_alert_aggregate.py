"""Tests for the StockAlert state machine and StockLevelSetting thresholds."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from stockkeeping.alerts.alert import AlertPriority, AlertStatus, AlertType, StockAlert, snooze_expired
from stockkeeping.alerts.events import StockAlertRefreshed
from stockkeeping.alerts.setting import StockLevelSetting
from stockkeeping.errors import InvalidTransition


def _make_alert(**overrides):
    defaults = {
        "tenant_id": "tenant-001",
        "product_id": "prod-001",
        "warehouse_id": "wh-001",
        "alert_type": AlertType.LOW_STOCK.value,
        "priority": AlertPriority.MEDIUM.value,
        "current_quantity": 12,
        "minimum_level": 10,
        "deficit": 0,
    }
    defaults.update(overrides)
    return StockAlert.raise_alert(**defaults)


class TestAlertTransitions:
    def test_new_alert_is_active(self):
        alert = _make_alert()
        assert alert.status == AlertStatus.ACTIVE.value
        assert alert.is_open

    def test_acknowledge(self):
        alert = _make_alert()
        alert.acknowledge("user-1", note="Ordering more")
        assert alert.status == AlertStatus.ACKNOWLEDGED.value
        assert alert.acknowledged_by == "user-1"
        assert alert.notes == "Ordering more"

    def test_acknowledge_twice_is_refused(self):
        alert = _make_alert()
        alert.acknowledge("user-1")
        with pytest.raises(InvalidTransition) as exc_info:
            alert.acknowledge("user-1")
        assert exc_info.value.current == "Acknowledged"

    def test_snoozed_alert_can_be_acknowledged(self):
        alert = _make_alert()
        alert.snooze(3)
        alert.acknowledge("user-1")
        assert alert.status == AlertStatus.ACKNOWLEDGED.value

    def test_snoozed_alert_cannot_be_snoozed_again(self):
        alert = _make_alert()
        alert.snooze(3)
        with pytest.raises(InvalidTransition):
            alert.snooze(3)

    def test_resolved_is_terminal(self):
        alert = _make_alert()
        alert.resolve("user-1")
        assert not alert.is_open
        for action in (lambda: alert.acknowledge("u"), lambda: alert.snooze(1), lambda: alert.resolve("u")):
            with pytest.raises(InvalidTransition):
                action()


class TestSnooze:
    @pytest.mark.parametrize("days", [0, 31, -1])
    def test_out_of_range_days(self, days):
        alert = _make_alert()
        with pytest.raises(ValidationError):
            alert.snooze(days)
        assert alert.status == AlertStatus.ACTIVE.value

    def test_snooze_sets_deadline(self):
        alert = _make_alert()
        before = datetime.now(UTC)
        alert.snooze(30)
        assert alert.snoozed_until >= before + timedelta(days=30)

    def test_expiry_is_checked_by_the_caller(self):
        alert = _make_alert()
        alert.snooze(1)
        assert snooze_expired(alert) is False
        assert snooze_expired(alert, now=datetime.now(UTC) + timedelta(days=2)) is True

    def test_active_alert_is_never_expired(self):
        assert snooze_expired(_make_alert(), now=datetime.now(UTC) + timedelta(days=60)) is False


class TestRefresh:
    def test_refresh_updates_figures(self):
        alert = _make_alert()
        assert alert.refresh(5, 5, AlertPriority.HIGH.value, "Low stock") is True
        assert (alert.current_quantity, alert.deficit, alert.priority) == (5, 5, "High")
        assert len([e for e in alert._events if isinstance(e, StockAlertRefreshed)]) == 1

    def test_refresh_with_same_figures_is_a_no_op(self):
        alert = _make_alert(message="Low stock")
        assert alert.refresh(12, 0, AlertPriority.MEDIUM.value, "Low stock") is False

    def test_resolved_alert_cannot_be_refreshed(self):
        alert = _make_alert()
        alert.resolve()
        with pytest.raises(InvalidTransition):
            alert.refresh(1, 9, AlertPriority.HIGH.value, "x")


def _make_setting(**overrides):
    defaults = {
        "tenant_id": "tenant-001",
        "product_id": "prod-001",
        "minimum_level": 10,
        "reorder_point": 15,
        "reorder_quantity": 50,
    }
    defaults.update(overrides)
    return StockLevelSetting.create(**defaults)


class TestStockLevelSetting:
    def test_reorder_point_below_minimum_is_refused(self):
        with pytest.raises(ValidationError):
            _make_setting(reorder_point=5)

    def test_maximum_must_exceed_reorder_point(self):
        with pytest.raises(ValidationError):
            _make_setting(maximum_level=15)
        assert _make_setting(maximum_level=16).thresholds.maximum_level == 16

    def test_update_keeps_unchanged_thresholds(self):
        setting = _make_setting(maximum_level=100)
        setting.update(minimum_level=12)
        assert setting.thresholds.minimum_level == 12
        assert setting.thresholds.reorder_point == 15
        assert setting.thresholds.maximum_level == 100

    def test_update_is_revalidated(self):
        setting = _make_setting()
        with pytest.raises(ValidationError):
            setting.update(minimum_level=20)

    def test_deactivate(self):
        setting = _make_setting()
        setting.deactivate()
        assert setting.is_active is False
