"""Application tests for bulk location generation."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from stockkeeping.errors import LimitExceeded, NotFound
from stockkeeping.location.generation import MAX_GENERATION_COUNT, GenerateLocations
from stockkeeping.location.location import Location
from stockkeeping.location.management import DefineLocationStructure
from stockkeeping.location.queries import get_structure, list_locations, validate_code
from stockkeeping.warehouse.management import CreateWarehouse

TENANT = "tenant-001"


def _create_warehouse(tenant_id=TENANT):
    return current_domain.process(
        CreateWarehouse(tenant_id=tenant_id, code="WH-A", name="Warehouse A"), asynchronous=False
    )


def _generate(warehouse_id, zones, shelves, bins, **extra):
    return current_domain.process(
        GenerateLocations(
            tenant_id=TENANT,
            warehouse_id=warehouse_id,
            zone_count=zones,
            shelf_count=shelves,
            bin_count=bins,
            **extra,
        ),
        asynchronous=False,
    )


def _codes(warehouse_id):
    return [loc.code for loc in list_locations(TENANT, warehouse_id, limit=1000).items]


class TestGenerateLocations:
    def test_two_by_two_by_two_yields_eight_codes(self):
        wh_id = _create_warehouse()
        result = _generate(wh_id, 2, 2, 2)

        assert result.total_created == 8
        assert result.skipped == 0
        assert _codes(wh_id) == [
            "K1-P1-D1",
            "K1-P1-D2",
            "K1-P2-D1",
            "K1-P2-D2",
            "K2-P1-D1",
            "K2-P1-D2",
            "K2-P2-D1",
            "K2-P2-D2",
        ]

    def test_structure_is_created_on_first_run(self):
        wh_id = _create_warehouse()
        _generate(wh_id, 2, 3, 4)
        structure = get_structure(TENANT, wh_id)
        assert (structure.max_zones, structure.max_shelves, structure.max_bins) == (2, 3, 4)

    def test_rerun_skips_existing_codes(self):
        wh_id = _create_warehouse()
        _generate(wh_id, 1, 2, 2)
        result = _generate(wh_id, 1, 2, 2)
        assert result.total_created == 0
        assert result.skipped == 4
        assert len(_codes(wh_id)) == 4

    def test_capacity_per_bin_is_applied(self):
        wh_id = _create_warehouse()
        _generate(wh_id, 1, 1, 2, capacity_per_bin=25)
        rows = current_domain.repository_for(Location).all_in_warehouse(TENANT, wh_id)
        assert {row.capacity for row in rows} == {25}

    def test_sample_codes_are_capped(self):
        wh_id = _create_warehouse()
        result = _generate(wh_id, 3, 3, 3)
        assert result.total_created == 27
        assert len(result.sample_codes) == 10
        assert result.sample_codes[0] == "K1-P1-D1"

    def test_counts_beyond_structure_maxima_are_refused(self):
        wh_id = _create_warehouse()
        current_domain.process(
            DefineLocationStructure(tenant_id=TENANT, warehouse_id=wh_id, max_zones=2, max_shelves=2, max_bins=2),
            asynchronous=False,
        )
        with pytest.raises(ValidationError) as exc_info:
            _generate(wh_id, 3, 1, 1)
        assert "zone_count" in exc_info.value.messages
        assert _codes(wh_id) == []

    def test_generated_codes_validate(self):
        wh_id = _create_warehouse()
        _generate(wh_id, 2, 2, 3)
        for code in _codes(wh_id):
            result = validate_code(TENANT, wh_id, code)
            assert result.is_valid, code
            assert result.location_id is not None


class TestGenerationCeiling:
    def test_oversized_request_fails_before_any_write(self):
        wh_id = _create_warehouse()
        with pytest.raises(LimitExceeded):
            _generate(wh_id, 100, 100, 100)
        assert _codes(wh_id) == []
        assert get_structure(TENANT, wh_id) is None

    def test_request_at_the_ceiling_is_only_checked_by_product(self):
        with pytest.raises(LimitExceeded):
            _generate("unknown-warehouse", 50_001, 1, 1)
        assert MAX_GENERATION_COUNT == 50_000

    def test_unknown_warehouse(self):
        with pytest.raises(NotFound):
            _generate("unknown-warehouse", 1, 1, 1)
