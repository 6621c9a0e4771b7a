"""StockLevelSetting aggregate — alert thresholds for a product."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, ValueObject

from stockkeeping.alerts.events import StockLevelSettingChanged, StockLevelSettingDefined
from stockkeeping.domain import stockkeeping

_UNSET = object()


@stockkeeping.value_object(part_of="StockLevelSetting")
class StockThresholds:
    """Minimum, reorder point and optional maximum for one product."""

    minimum_level = Integer(default=0, min_value=0)
    reorder_point = Integer(default=0, min_value=0)
    reorder_quantity = Integer(default=1, min_value=1)
    maximum_level = Integer(min_value=1)

    @invariant.post
    def reorder_point_not_below_minimum(self):
        if (self.reorder_point or 0) < (self.minimum_level or 0):
            raise ValidationError({"reorder_point": ["Reorder point cannot be below the minimum level"]})

    @invariant.post
    def maximum_above_reorder_point(self):
        if self.maximum_level is not None and self.maximum_level <= (self.reorder_point or 0):
            raise ValidationError({"maximum_level": ["Maximum level must be above the reorder point"]})


@stockkeeping.aggregate
class StockLevelSetting:
    """Thresholds for a product, tenant-wide or for one warehouse."""

    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    warehouse_id = Identifier()
    thresholds = ValueObject(StockThresholds)
    unit = String(max_length=20)
    lead_time_days = Integer(min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        tenant_id,
        product_id,
        minimum_level,
        reorder_point,
        reorder_quantity,
        maximum_level=None,
        warehouse_id=None,
        unit=None,
        lead_time_days=None,
    ):
        now = datetime.now(UTC)
        setting = cls(
            tenant_id=tenant_id,
            product_id=product_id,
            warehouse_id=warehouse_id,
            thresholds=StockThresholds(
                minimum_level=minimum_level,
                reorder_point=reorder_point,
                reorder_quantity=reorder_quantity,
                maximum_level=maximum_level,
            ),
            unit=unit,
            lead_time_days=lead_time_days,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        setting.raise_(
            StockLevelSettingDefined(
                setting_id=str(setting.id),
                tenant_id=str(tenant_id),
                product_id=str(product_id),
                warehouse_id=str(warehouse_id) if warehouse_id else None,
                minimum_level=minimum_level,
                reorder_point=reorder_point,
                reorder_quantity=reorder_quantity,
                maximum_level=maximum_level,
                defined_at=now,
            )
        )
        return setting

    def update(
        self,
        minimum_level=_UNSET,
        reorder_point=_UNSET,
        reorder_quantity=_UNSET,
        maximum_level=_UNSET,
        unit=_UNSET,
        lead_time_days=_UNSET,
        is_active=_UNSET,
    ) -> None:
        current = self.thresholds
        proposed = {
            "minimum_level": current.minimum_level,
            "reorder_point": current.reorder_point,
            "reorder_quantity": current.reorder_quantity,
            "maximum_level": current.maximum_level,
        }
        for attr, value in {
            "minimum_level": minimum_level,
            "reorder_point": reorder_point,
            "reorder_quantity": reorder_quantity,
            "maximum_level": maximum_level,
        }.items():
            if value is not _UNSET and value is not None:
                proposed[attr] = value

        self.thresholds = StockThresholds(**proposed)
        if unit is not _UNSET and unit is not None:
            self.unit = unit
        if lead_time_days is not _UNSET and lead_time_days is not None:
            self.lead_time_days = lead_time_days
        if is_active is not _UNSET and is_active is not None:
            self.is_active = is_active
        self._changed()

    def deactivate(self) -> None:
        self.is_active = False
        self._changed()

    def _changed(self) -> None:
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockLevelSettingChanged(
                setting_id=str(self.id),
                tenant_id=str(self.tenant_id),
                minimum_level=self.thresholds.minimum_level,
                reorder_point=self.thresholds.reorder_point,
                reorder_quantity=self.thresholds.reorder_quantity,
                maximum_level=self.thresholds.maximum_level,
                is_active=self.is_active,
                changed_at=self.updated_at,
            )
        )
