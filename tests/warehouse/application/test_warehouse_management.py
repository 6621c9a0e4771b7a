"""Application tests for warehouse management commands and queries."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from stockkeeping.errors import NotFound
from stockkeeping.location.generation import GenerateLocations
from stockkeeping.location.location import Location
from stockkeeping.stock.management import RegisterInventoryItem
from stockkeeping.warehouse.management import (
    CreateWarehouse,
    DecommissionWarehouse,
    SetDefaultWarehouse,
    UpdateWarehouse,
)
from stockkeeping.warehouse.queries import get_default_warehouse, get_warehouse, get_warehouse_by_code, list_warehouses
from stockkeeping.warehouse.warehouse import Warehouse

TENANT = "tenant-001"


def _create_warehouse(**overrides):
    defaults = {"tenant_id": TENANT, "code": "WH-A", "name": "Warehouse A"}
    defaults.update(overrides)
    return current_domain.process(CreateWarehouse(**defaults), asynchronous=False)


def _defaults(tenant_id=TENANT):
    return [w for w in list_warehouses(tenant_id, limit=100).items if w.is_default]


class TestCreateWarehouse:
    def test_first_warehouse_becomes_default(self):
        wh_id = _create_warehouse()
        assert get_warehouse(TENANT, wh_id).is_default is True

    def test_second_warehouse_is_not_default(self):
        _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B")
        assert get_warehouse(TENANT, second).is_default is False

    def test_duplicate_code_is_rejected(self):
        _create_warehouse()
        with pytest.raises(ValidationError) as exc_info:
            _create_warehouse(code="wh-a", name="Another")
        assert "code" in exc_info.value.messages

    def test_same_code_in_other_tenant_is_allowed(self):
        _create_warehouse()
        other = _create_warehouse(tenant_id="tenant-002")
        assert get_warehouse("tenant-002", other).code == "WH-A"


class TestDefaultWarehouse:
    def test_creating_with_default_flag_switches_default(self):
        first = _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B", is_default=True)

        assert [str(w.id) for w in _defaults()] == [second]
        assert get_warehouse(TENANT, first).is_default is False

    def test_set_default_leaves_exactly_one(self):
        _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B")
        third = _create_warehouse(code="WH-C", name="Warehouse C")

        current_domain.process(SetDefaultWarehouse(tenant_id=TENANT, warehouse_id=third), asynchronous=False)
        assert [str(w.id) for w in _defaults()] == [third]

        current_domain.process(SetDefaultWarehouse(tenant_id=TENANT, warehouse_id=second), asynchronous=False)
        assert [str(w.id) for w in _defaults()] == [second]
        assert str(get_default_warehouse(TENANT).id) == second

    def test_update_with_default_flag(self):
        _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B")
        current_domain.process(
            UpdateWarehouse(tenant_id=TENANT, warehouse_id=second, name="Renamed", is_default=True),
            asynchronous=False,
        )
        warehouse = get_warehouse(TENANT, second)
        assert warehouse.name == "Renamed"
        assert [str(w.id) for w in _defaults()] == [second]

    def test_default_is_per_tenant(self):
        _create_warehouse()
        _create_warehouse(tenant_id="tenant-002")
        assert len(_defaults(TENANT)) == 1
        assert len(_defaults("tenant-002")) == 1


class TestDecommissionWarehouse:
    def test_decommission_retires_locations(self):
        _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B")
        current_domain.process(
            GenerateLocations(tenant_id=TENANT, warehouse_id=second, zone_count=1, shelf_count=2, bin_count=2),
            asynchronous=False,
        )

        current_domain.process(DecommissionWarehouse(tenant_id=TENANT, warehouse_id=second), asynchronous=False)

        with pytest.raises(NotFound):
            get_warehouse(TENANT, second)
        locations = current_domain.repository_for(Location).in_warehouse(TENANT, second, include_deleted=True)
        assert all(loc.is_deleted for loc in locations.all().items)

    def test_default_warehouse_cannot_be_decommissioned(self):
        first = _create_warehouse()
        with pytest.raises(ValidationError):
            current_domain.process(DecommissionWarehouse(tenant_id=TENANT, warehouse_id=first), asynchronous=False)

    def test_warehouse_with_stock_cannot_be_decommissioned(self):
        _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B")
        current_domain.process(
            RegisterInventoryItem(
                tenant_id=TENANT,
                warehouse_id=second,
                product_id="prod-001",
                initial_quantity=3,
                performed_by="user-1",
            ),
            asynchronous=False,
        )
        with pytest.raises(ValidationError):
            current_domain.process(DecommissionWarehouse(tenant_id=TENANT, warehouse_id=second), asynchronous=False)
        assert current_domain.repository_for(Warehouse).get(second).is_deleted is False

    def test_warehouse_with_an_empty_item_row_cannot_be_decommissioned(self):
        _create_warehouse()
        second = _create_warehouse(code="WH-B", name="Warehouse B")
        current_domain.process(
            GenerateLocations(tenant_id=TENANT, warehouse_id=second, zone_count=1, shelf_count=1, bin_count=1),
            asynchronous=False,
        )
        current_domain.process(
            RegisterInventoryItem(
                tenant_id=TENANT,
                warehouse_id=second,
                product_id="prod-001",
                location_code="K1-P1-D1",
                performed_by="user-1",
            ),
            asynchronous=False,
        )

        with pytest.raises(ValidationError) as exc_info:
            current_domain.process(DecommissionWarehouse(tenant_id=TENANT, warehouse_id=second), asynchronous=False)
        assert "location" in exc_info.value.messages
        assert current_domain.repository_for(Warehouse).get(second).is_deleted is False


class TestWarehouseQueries:
    def test_lookup_by_code_is_case_insensitive(self):
        wh_id = _create_warehouse()
        assert str(get_warehouse_by_code(TENANT, "wh-a").id) == wh_id

    def test_other_tenant_cannot_see_warehouse(self):
        wh_id = _create_warehouse()
        with pytest.raises(NotFound):
            get_warehouse("tenant-002", wh_id)

    def test_list_is_paginated_and_ordered_by_code(self):
        for code in ("WH-C", "WH-A", "WH-B"):
            _create_warehouse(code=code, name=code)
        page = list_warehouses(TENANT, offset=1, limit=1)
        assert page.total == 3
        assert [w.code for w in page.items] == ["WH-B"]
        assert (page.offset, page.limit) == (1, 1)
