"""Stock level settings — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from stockkeeping.alerts.setting import StockLevelSetting
from stockkeeping.domain import stockkeeping
from stockkeeping.warehouse.warehouse import Warehouse


@stockkeeping.command(part_of="StockLevelSetting")
class CreateStockLevelSetting:
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    warehouse_id = Identifier()
    minimum_level = Integer(default=0, min_value=0)
    reorder_point = Integer(default=0, min_value=0)
    reorder_quantity = Integer(default=1, min_value=1)
    maximum_level = Integer(min_value=1)
    unit = String(max_length=20)
    lead_time_days = Integer(min_value=0)


@stockkeeping.command(part_of="StockLevelSetting")
class UpdateStockLevelSetting:
    tenant_id = Identifier(required=True)
    setting_id = Identifier(required=True)
    minimum_level = Integer(min_value=0)
    reorder_point = Integer(min_value=0)
    reorder_quantity = Integer(min_value=1)
    maximum_level = Integer(min_value=1)
    unit = String(max_length=20)
    lead_time_days = Integer(min_value=0)
    is_active = Boolean()


@stockkeeping.command(part_of="StockLevelSetting")
class DeactivateStockLevelSetting:
    tenant_id = Identifier(required=True)
    setting_id = Identifier(required=True)


@stockkeeping.command_handler(part_of=StockLevelSetting)
class StockLevelSettingHandler:
    @handle(CreateStockLevelSetting)
    def create_setting(self, command):
        tenant_id = str(command.tenant_id)
        if command.warehouse_id:
            current_domain.repository_for(Warehouse).get_for_tenant(command.warehouse_id, tenant_id)

        repo = current_domain.repository_for(StockLevelSetting)
        if repo.find_for_product(tenant_id, command.product_id, command.warehouse_id) is not None:
            raise ValidationError({"product_id": ["The product already has a stock level setting here"]})

        setting = StockLevelSetting.create(
            tenant_id=tenant_id,
            product_id=command.product_id,
            warehouse_id=command.warehouse_id,
            minimum_level=command.minimum_level or 0,
            reorder_point=command.reorder_point or 0,
            reorder_quantity=command.reorder_quantity or 1,
            maximum_level=command.maximum_level,
            unit=command.unit,
            lead_time_days=command.lead_time_days,
        )
        repo.add(setting)
        return str(setting.id)

    @handle(UpdateStockLevelSetting)
    def update_setting(self, command):
        repo = current_domain.repository_for(StockLevelSetting)
        setting = repo.get_for_tenant(command.setting_id, command.tenant_id)
        setting.update(
            minimum_level=command.minimum_level,
            reorder_point=command.reorder_point,
            reorder_quantity=command.reorder_quantity,
            maximum_level=command.maximum_level,
            unit=command.unit,
            lead_time_days=command.lead_time_days,
            is_active=command.is_active,
        )
        repo.add(setting)

    @handle(DeactivateStockLevelSetting)
    def deactivate_setting(self, command):
        repo = current_domain.repository_for(StockLevelSetting)
        setting = repo.get_for_tenant(command.setting_id, command.tenant_id)
        setting.deactivate()
        repo.add(setting)
