"""Application tests for location structure and location commands."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from stockkeeping.errors import CapacityExceeded, NegativeOccupancy, NotFound
from stockkeeping.location.location import Location, LocationStatus
from stockkeeping.location.management import (
    AdjustLocationOccupancy,
    ChangeLocationCapacity,
    CreateLocation,
    DeactivateLocation,
    DefineLocationStructure,
    DeleteLocation,
    ReactivateLocation,
    UpdateLocationStructure,
)
from stockkeeping.location.queries import find_available_location, get_structure, list_locations, validate_code
from stockkeeping.location.structure import CodeRejection
from stockkeeping.stock.management import AdjustQuantity, DeleteInventoryItem, RegisterInventoryItem
from stockkeeping.warehouse.management import CreateWarehouse

TENANT = "tenant-001"


@pytest.fixture
def warehouse_id():
    wh_id = current_domain.process(
        CreateWarehouse(tenant_id=TENANT, code="WH-A", name="Warehouse A"), asynchronous=False
    )
    current_domain.process(
        DefineLocationStructure(tenant_id=TENANT, warehouse_id=wh_id, max_zones=3, max_shelves=5, max_bins=5),
        asynchronous=False,
    )
    return wh_id


def _create_location(warehouse_id, code="K1-P1-D1", capacity=10):
    return current_domain.process(
        CreateLocation(tenant_id=TENANT, warehouse_id=warehouse_id, code=code, capacity=capacity),
        asynchronous=False,
    )


def _adjust(location_id, delta):
    return current_domain.process(
        AdjustLocationOccupancy(tenant_id=TENANT, location_id=location_id, delta=delta), asynchronous=False
    )


def _location(location_id):
    return current_domain.repository_for(Location).get(location_id)


def _register_at(warehouse_id, location_code):
    return current_domain.process(
        RegisterInventoryItem(
            tenant_id=TENANT,
            warehouse_id=warehouse_id,
            product_id="prod-001",
            location_code=location_code,
            performed_by="user-1",
        ),
        asynchronous=False,
    )


class TestLocationStructure:
    def test_second_structure_for_warehouse_is_refused(self, warehouse_id):
        with pytest.raises(ValidationError):
            current_domain.process(
                DefineLocationStructure(
                    tenant_id=TENANT, warehouse_id=warehouse_id, max_zones=1, max_shelves=1, max_bins=1
                ),
                asynchronous=False,
            )

    def test_grammar_change_refused_once_locations_exist(self, warehouse_id):
        _create_location(warehouse_id)
        structure = get_structure(TENANT, warehouse_id)
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateLocationStructure(tenant_id=TENANT, structure_id=structure.id, zone_prefix="Z"),
                asynchronous=False,
            )


class TestCreateLocation:
    def test_create_parses_segments(self, warehouse_id):
        loc_id = _create_location(warehouse_id, code="K2-P3-D4")
        loc = _location(loc_id)
        assert (loc.zone, loc.shelf, loc.bin) == (2, 3, 4)
        assert loc.status == LocationStatus.ACTIVE.value

    def test_code_outside_structure_is_refused(self, warehouse_id):
        with pytest.raises(ValidationError) as exc_info:
            _create_location(warehouse_id, code="K9-P1-D1")
        assert "code" in exc_info.value.messages

    def test_duplicate_code_is_refused(self, warehouse_id):
        _create_location(warehouse_id)
        with pytest.raises(ValidationError):
            _create_location(warehouse_id)


class TestOccupancyCommands:
    def test_adjust_returns_new_occupancy(self, warehouse_id):
        loc_id = _create_location(warehouse_id)
        assert _adjust(loc_id, 4) == 4
        assert _adjust(loc_id, -1) == 3

    def test_bounds_are_enforced(self, warehouse_id):
        loc_id = _create_location(warehouse_id, capacity=2)
        with pytest.raises(CapacityExceeded):
            _adjust(loc_id, 3)
        with pytest.raises(NegativeOccupancy):
            _adjust(loc_id, -1)
        assert _location(loc_id).current_occupancy == 0

    def test_inactive_location_stays_inactive(self, warehouse_id):
        loc_id = _create_location(warehouse_id, capacity=2)
        current_domain.process(DeactivateLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        _adjust(loc_id, 2)
        assert _location(loc_id).status == LocationStatus.INACTIVE.value

        current_domain.process(ReactivateLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        assert _location(loc_id).status == LocationStatus.FULL.value

    def test_capacity_can_be_cleared(self, warehouse_id):
        loc_id = _create_location(warehouse_id, capacity=2)
        _adjust(loc_id, 2)
        current_domain.process(
            ChangeLocationCapacity(tenant_id=TENANT, location_id=loc_id, unbounded=True), asynchronous=False
        )
        loc = _location(loc_id)
        assert loc.capacity is None
        assert loc.status == LocationStatus.ACTIVE.value

    def test_capacity_change_needs_a_value(self, warehouse_id):
        loc_id = _create_location(warehouse_id)
        with pytest.raises(ValidationError):
            current_domain.process(ChangeLocationCapacity(tenant_id=TENANT, location_id=loc_id), asynchronous=False)


class TestDeleteLocation:
    def test_location_holding_an_item_row_is_kept(self, warehouse_id):
        loc_id = _create_location(warehouse_id)
        item_id = _register_at(warehouse_id, "K1-P1-D1")

        with pytest.raises(ValidationError) as exc_info:
            current_domain.process(DeleteLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        assert "location" in exc_info.value.messages
        assert _location(loc_id).is_deleted is False

        current_domain.process(
            AdjustQuantity(
                tenant_id=TENANT, inventory_item_id=item_id, quantity_change=2, reason="Restock", performed_by="u"
            ),
            asynchronous=False,
        )
        assert _location(loc_id).current_occupancy == 2

    def test_location_is_released_once_its_item_is_deleted(self, warehouse_id):
        loc_id = _create_location(warehouse_id)
        item_id = _register_at(warehouse_id, "K1-P1-D1")
        current_domain.process(
            DeleteInventoryItem(tenant_id=TENANT, inventory_item_id=item_id, deleted_by="u"), asynchronous=False
        )

        current_domain.process(DeleteLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        assert list_locations(TENANT, warehouse_id).total == 0

    def test_deleted_location_is_gone(self, warehouse_id):
        loc_id = _create_location(warehouse_id)
        current_domain.process(DeleteLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)

        with pytest.raises(NotFound):
            current_domain.process(DeleteLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        assert list_locations(TENANT, warehouse_id).total == 0
        assert find_available_location(TENANT, warehouse_id) is None

    def test_deleted_code_cannot_be_reused(self, warehouse_id):
        loc_id = _create_location(warehouse_id)
        current_domain.process(DeleteLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        with pytest.raises(ValidationError):
            _create_location(warehouse_id)


class TestLocationQueries:
    def test_validate_code_reports_missing_and_inactive(self, warehouse_id):
        assert validate_code(TENANT, warehouse_id, "K1-P1-D2").reason is CodeRejection.NOT_EXISTS

        loc_id = _create_location(warehouse_id, code="K1-P1-D2")
        current_domain.process(DeactivateLocation(tenant_id=TENANT, location_id=loc_id), asynchronous=False)
        assert validate_code(TENANT, warehouse_id, "K1-P1-D2").reason is CodeRejection.INACTIVE

    def test_validate_code_without_structure(self):
        wh_id = current_domain.process(
            CreateWarehouse(tenant_id=TENANT, code="WH-Z", name="No structure"), asynchronous=False
        )
        assert validate_code(TENANT, wh_id, "K1-P1-D1").reason is CodeRejection.UNKNOWN_STRUCTURE

    def test_available_location_prefers_zone_and_skips_full(self, warehouse_id):
        full = _create_location(warehouse_id, code="K1-P1-D1", capacity=1)
        _adjust(full, 1)
        _create_location(warehouse_id, code="K1-P1-D2")
        _create_location(warehouse_id, code="K2-P1-D1")

        assert find_available_location(TENANT, warehouse_id).code == "K1-P1-D2"
        assert find_available_location(TENANT, warehouse_id, preferred_zone=2).code == "K2-P1-D1"
        assert find_available_location(TENANT, warehouse_id, preferred_zone=3).code == "K1-P1-D2"

    def test_list_filters_by_status(self, warehouse_id):
        full = _create_location(warehouse_id, code="K1-P1-D1", capacity=1)
        _adjust(full, 1)
        _create_location(warehouse_id, code="K1-P1-D2")
        page = list_locations(TENANT, warehouse_id, status=LocationStatus.FULL.value)
        assert [loc.code for loc in page.items] == ["K1-P1-D1"]
