"""Warehouse aggregate (CQRS) — a physical site that holds stock.

Warehouse codes are unique per tenant, and each tenant has at most one
default warehouse. The default flag is only ever moved through
``WarehouseRepository.set_default`` so that clearing the old default and
setting the new one happen in the same unit of work.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from stockkeeping.domain import stockkeeping
from stockkeeping.warehouse.events import (
    DefaultWarehouseChanged,
    WarehouseCreated,
    WarehouseDecommissioned,
    WarehouseUpdated,
)

_UNSET = object()


class WarehouseType(Enum):
    MAIN = "Main"
    BRANCH = "Branch"
    MOBILE = "Mobile"
    VIRTUAL = "Virtual"


class WarehouseStatus(Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    MAINTENANCE = "Maintenance"


@stockkeeping.aggregate
class Warehouse:
    """A physical location where inventory is stored."""

    tenant_id = Identifier(required=True)
    code = String(required=True, max_length=20)
    name = String(required=True, max_length=255)
    warehouse_type = String(
        max_length=20,
        choices=WarehouseType,
        default=WarehouseType.MAIN.value,
    )
    status = String(
        max_length=20,
        choices=WarehouseStatus,
        default=WarehouseStatus.ACTIVE.value,
    )
    is_default = Boolean(default=False)
    address = String(max_length=255)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    contact_name = String(max_length=255)
    contact_phone = String(max_length=50)
    contact_email = String(max_length=255)
    is_deleted = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        tenant_id,
        code,
        name,
        warehouse_type=WarehouseType.MAIN.value,
        status=WarehouseStatus.ACTIVE.value,
        address=None,
        city=None,
        postal_code=None,
        contact_name=None,
        contact_phone=None,
        contact_email=None,
    ):
        """Register a warehouse. Default selection is the repository's job."""
        now = datetime.now(UTC)
        warehouse = cls(
            tenant_id=tenant_id,
            code=code.strip().upper(),
            name=name,
            warehouse_type=warehouse_type,
            status=status,
            is_default=False,
            address=address,
            city=city,
            postal_code=postal_code,
            contact_name=contact_name,
            contact_phone=contact_phone,
            contact_email=contact_email,
            created_at=now,
            updated_at=now,
        )
        warehouse.raise_(
            WarehouseCreated(
                warehouse_id=str(warehouse.id),
                tenant_id=str(tenant_id),
                code=warehouse.code,
                name=name,
                warehouse_type=warehouse_type,
                created_at=now,
            )
        )
        return warehouse

    @property
    def is_active(self) -> bool:
        return not self.is_deleted and self.status == WarehouseStatus.ACTIVE.value

    def update_details(
        self,
        name=_UNSET,
        warehouse_type=_UNSET,
        status=_UNSET,
        address=_UNSET,
        city=_UNSET,
        postal_code=_UNSET,
        contact_name=_UNSET,
        contact_phone=_UNSET,
        contact_email=_UNSET,
    ):
        """Update descriptive fields; untouched arguments keep their value."""
        changes = {
            "name": name,
            "warehouse_type": warehouse_type,
            "status": status,
            "address": address,
            "city": city,
            "postal_code": postal_code,
            "contact_name": contact_name,
            "contact_phone": contact_phone,
            "contact_email": contact_email,
        }
        for attr, value in changes.items():
            if value is not _UNSET and value is not None:
                setattr(self, attr, value)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseUpdated(
                warehouse_id=str(self.id),
                tenant_id=str(self.tenant_id),
                name=self.name,
                warehouse_type=self.warehouse_type,
                status=self.status,
                updated_at=self.updated_at,
            )
        )

    def mark_default(self, previous_default_id=None):
        if self.is_deleted:
            raise ValidationError({"is_default": ["A deleted warehouse cannot be the default"]})
        self.is_default = True
        self.updated_at = datetime.now(UTC)
        self.raise_(
            DefaultWarehouseChanged(
                warehouse_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_default_id=str(previous_default_id) if previous_default_id else None,
                changed_at=self.updated_at,
            )
        )

    def clear_default(self):
        self.is_default = False
        self.updated_at = datetime.now(UTC)

    def decommission(self, locations_retired=0):
        """Soft-delete the warehouse. The default warehouse cannot be removed."""
        if self.is_deleted:
            raise ValidationError({"warehouse": ["Warehouse is already decommissioned"]})
        if self.is_default:
            raise ValidationError({"warehouse": ["The default warehouse cannot be decommissioned"]})

        self.is_deleted = True
        self.status = WarehouseStatus.INACTIVE.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseDecommissioned(
                warehouse_id=str(self.id),
                tenant_id=str(self.tenant_id),
                locations_retired=locations_retired,
                decommissioned_at=self.updated_at,
            )
        )
