"""Location aggregate — one addressable bin and its occupancy counter.

Status has two independent inputs: a manual override (a location taken out
of service stays INACTIVE whatever its occupancy) and the capacity-derived
state (FULL once occupancy reaches capacity, ACTIVE otherwise). Both are
kept separately and the flat ``status`` column is recomputed from them
after every change, so occupancy updates can never clear a manual override.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping
from stockkeeping.errors import CapacityExceeded, NegativeOccupancy, NotFound
from stockkeeping.location.events import (
    LocationCapacityChanged,
    LocationCreated,
    LocationDeactivated,
    LocationDeleted,
    LocationReactivated,
    OccupancyAdjusted,
)


class LocationStatus(Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    FULL = "Full"


@dataclass(frozen=True)
class ManualStatus:
    """Status forced by an operator."""

    status: LocationStatus = LocationStatus.INACTIVE


@dataclass(frozen=True)
class DerivedStatus:
    """Status that follows occupancy against capacity."""

    status: LocationStatus


@stockkeeping.aggregate
class Location:
    """A bin inside a warehouse, addressed by a structured code."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    zone = Integer(required=True, min_value=1)
    shelf = Integer(required=True, min_value=1)
    bin = Integer(required=True, min_value=1)
    description = String(max_length=255)
    capacity = Integer(min_value=1)
    current_occupancy = Integer(default=0, min_value=0)
    manually_inactive = Boolean(default=False)
    status = String(
        max_length=20,
        choices=LocationStatus,
        default=LocationStatus.ACTIVE.value,
    )
    is_deleted = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def build(cls, tenant_id, warehouse_id, code, zone, shelf, bin_, capacity=None, description=None):
        """Instantiate without announcing it; bulk generation reports one event per run."""
        now = datetime.now(UTC)
        location = cls(
            tenant_id=tenant_id,
            warehouse_id=warehouse_id,
            code=code,
            zone=zone,
            shelf=shelf,
            bin=bin_,
            capacity=capacity,
            description=description,
            current_occupancy=0,
            created_at=now,
            updated_at=now,
        )
        location._refresh_status()
        return location

    @classmethod
    def create(cls, tenant_id, warehouse_id, code, zone, shelf, bin_, capacity=None, description=None):
        location = cls.build(tenant_id, warehouse_id, code, zone, shelf, bin_, capacity, description)
        location.raise_(
            LocationCreated(
                location_id=str(location.id),
                tenant_id=str(tenant_id),
                warehouse_id=str(warehouse_id),
                code=code,
                capacity=capacity,
                created_at=location.created_at,
            )
        )
        return location

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    @property
    def status_source(self) -> ManualStatus | DerivedStatus:
        if self.manually_inactive or self.is_deleted:
            return ManualStatus()
        if self.capacity is not None and self.current_occupancy >= self.capacity:
            return DerivedStatus(LocationStatus.FULL)
        return DerivedStatus(LocationStatus.ACTIVE)

    def _refresh_status(self) -> None:
        self.status = self.status_source.status.value

    @property
    def headroom(self) -> int | None:
        if self.capacity is None:
            return None
        return self.capacity - self.current_occupancy

    @property
    def is_available(self) -> bool:
        return not self.is_deleted and self.status == LocationStatus.ACTIVE.value

    def _assert_live(self) -> None:
        if self.is_deleted:
            raise NotFound("Location", self.id)

    # -------------------------------------------------------------------
    # Occupancy
    # -------------------------------------------------------------------
    def check_occupancy_change(self, delta: int) -> int:
        """Return the occupancy ``delta`` would produce, or raise if it is out of bounds."""
        self._assert_live()
        new_occupancy = self.current_occupancy + delta
        if new_occupancy < 0:
            raise NegativeOccupancy(
                {"current_occupancy": [f"Location {self.code} holds {self.current_occupancy}, cannot remove {-delta}"]}
            )
        if self.capacity is not None and new_occupancy > self.capacity:
            raise CapacityExceeded(
                {"current_occupancy": [f"Location {self.code} has capacity {self.capacity}, cannot hold {new_occupancy}"]}
            )
        return new_occupancy

    def adjust_occupancy(self, delta: int) -> None:
        new_occupancy = self.check_occupancy_change(delta)
        if delta == 0:
            return

        previous = self.current_occupancy
        self.current_occupancy = new_occupancy
        self._refresh_status()
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OccupancyAdjusted(
                location_id=str(self.id),
                tenant_id=str(self.tenant_id),
                code=self.code,
                delta=delta,
                previous_occupancy=previous,
                new_occupancy=new_occupancy,
                status=self.status,
                adjusted_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Manual override and capacity
    # -------------------------------------------------------------------
    def deactivate(self) -> None:
        self._assert_live()
        if self.manually_inactive:
            return
        self.manually_inactive = True
        self._refresh_status()
        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationDeactivated(
                location_id=str(self.id),
                tenant_id=str(self.tenant_id),
                code=self.code,
                deactivated_at=self.updated_at,
            )
        )

    def reactivate(self) -> None:
        self._assert_live()
        if not self.manually_inactive:
            return
        self.manually_inactive = False
        self._refresh_status()
        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationReactivated(
                location_id=str(self.id),
                tenant_id=str(self.tenant_id),
                code=self.code,
                status=self.status,
                reactivated_at=self.updated_at,
            )
        )

    def change_capacity(self, capacity: int | None) -> None:
        """Set or clear the capacity. It may never drop below current occupancy."""
        self._assert_live()
        if capacity is not None and capacity < self.current_occupancy:
            raise CapacityExceeded(
                {"capacity": [f"Capacity {capacity} is below current occupancy {self.current_occupancy}"]}
            )

        previous = self.capacity
        self.capacity = capacity
        self._refresh_status()
        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationCapacityChanged(
                location_id=str(self.id),
                tenant_id=str(self.tenant_id),
                code=self.code,
                previous_capacity=previous,
                new_capacity=capacity,
                status=self.status,
                changed_at=self.updated_at,
            )
        )

    def update_description(self, description: str | None) -> None:
        self._assert_live()
        self.description = description
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def check_deletable(self) -> None:
        self._assert_live()
        if self.current_occupancy > 0:
            raise ValidationError(
                {"location": [f"Location {self.code} still holds {self.current_occupancy} units"]}
            )

    def delete(self) -> None:
        """Soft-delete; a deleted location is INACTIVE and never offered again."""
        self.check_deletable()
        self.is_deleted = True
        self._refresh_status()
        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationDeleted(
                location_id=str(self.id),
                tenant_id=str(self.tenant_id),
                warehouse_id=str(self.warehouse_id),
                code=self.code,
                deleted_at=self.updated_at,
            )
        )
