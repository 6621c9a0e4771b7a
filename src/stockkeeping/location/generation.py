"""Bulk location generation — command and handler.

Enumerates zone × shelf × bin in ascending order, builds each code from the
warehouse's structure and inserts every code that does not exist yet, so a
re-run only fills the gaps. The hard ceiling is checked before anything is
written.
"""

import json
from dataclasses import dataclass, field

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import LimitExceeded
from stockkeeping.location.location import Location
from stockkeeping.location.structure import LocationStructure
from stockkeeping.utils.logging import get_logger, tenant_context
from stockkeeping.warehouse.warehouse import Warehouse

logger = get_logger(__name__)

MAX_GENERATION_COUNT = 50_000
SAMPLE_SIZE = 10


@dataclass(frozen=True)
class GenerationResult:
    structure_id: str
    total_created: int = 0
    skipped: int = 0
    sample_codes: list[str] = field(default_factory=list)


@stockkeeping.command(part_of="LocationStructure")
class GenerateLocations:
    """Create every location of a zone/shelf/bin block in one go."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    zone_count = Integer(required=True, min_value=1)
    shelf_count = Integer(required=True, min_value=1)
    bin_count = Integer(required=True, min_value=1)
    capacity_per_bin = Integer(min_value=1)


def check_generation_size(zone_count: int, shelf_count: int, bin_count: int) -> int:
    total = zone_count * shelf_count * bin_count
    if total > MAX_GENERATION_COUNT:
        raise LimitExceeded(
            {"count": [f"At most {MAX_GENERATION_COUNT:,} locations can be generated at once, requested {total:,}"]}
        )
    return total


def check_counts_within_structure(structure: LocationStructure, zone_count, shelf_count, bin_count) -> None:
    errors = {}
    if zone_count > structure.max_zones:
        errors["zone_count"] = [f"Structure allows at most {structure.max_zones} zones"]
    if shelf_count > structure.max_shelves:
        errors["shelf_count"] = [f"Structure allows at most {structure.max_shelves} shelves"]
    if bin_count > structure.max_bins:
        errors["bin_count"] = [f"Structure allows at most {structure.max_bins} bins"]
    if errors:
        raise ValidationError(errors)


def enumerate_codes(structure: LocationStructure, zone_count: int, shelf_count: int, bin_count: int):
    """Yield ``(code, zone, shelf, bin)`` in zone, shelf, bin order."""
    for zone in range(1, zone_count + 1):
        for shelf in range(1, shelf_count + 1):
            for bin_ in range(1, bin_count + 1):
                yield structure.build_code(zone, shelf, bin_), zone, shelf, bin_


@stockkeeping.command_handler(part_of=LocationStructure)
class LocationGenerationHandler:
    @handle(GenerateLocations)
    def generate_locations(self, command):
        tenant_id = str(command.tenant_id)
        warehouse_id = str(command.warehouse_id)

        with tenant_context(tenant_id, warehouse_id=warehouse_id):
            check_generation_size(command.zone_count, command.shelf_count, command.bin_count)
            current_domain.repository_for(Warehouse).get_for_tenant(warehouse_id, tenant_id)

            structure_repo = current_domain.repository_for(LocationStructure)
            structure = structure_repo.find_for_warehouse(tenant_id, warehouse_id)
            if structure is None:
                structure = LocationStructure.create(
                    tenant_id=tenant_id,
                    warehouse_id=warehouse_id,
                    max_zones=command.zone_count,
                    max_shelves=command.shelf_count,
                    max_bins=command.bin_count,
                )
            else:
                check_counts_within_structure(
                    structure, command.zone_count, command.shelf_count, command.bin_count
                )

            location_repo = current_domain.repository_for(Location)
            existing = location_repo.existing_codes(tenant_id, warehouse_id)

            created = []
            skipped = 0
            for code, zone, shelf, bin_ in enumerate_codes(
                structure, command.zone_count, command.shelf_count, command.bin_count
            ):
                if code in existing:
                    skipped += 1
                    continue
                created.append(
                    Location.build(
                        tenant_id=tenant_id,
                        warehouse_id=warehouse_id,
                        code=code,
                        zone=zone,
                        shelf=shelf,
                        bin_=bin_,
                        capacity=command.capacity_per_bin,
                    )
                )

            for location in created:
                location_repo.add(location)

            result = GenerationResult(
                structure_id=str(structure.id),
                total_created=len(created),
                skipped=skipped,
                sample_codes=[location.code for location in created[:SAMPLE_SIZE]],
            )
            structure.record_generation(result.total_created, result.skipped, json.dumps(result.sample_codes))
            structure_repo.add(structure)

            logger.info(
                "Locations generated",
                structure_id=result.structure_id,
                total_created=result.total_created,
                skipped=result.skipped,
            )
            return result
