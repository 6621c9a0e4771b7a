"""LocationStructure aggregate — the code grammar of one warehouse.

A location code is a segment triplet (zone, shelf, bin) rendered as
``<zone prefix><zone><sep><shelf prefix><shelf><sep><bin prefix><bin>``,
e.g. ``K1-P2-D3`` with the default prefixes. Each warehouse has at most one
structure, and its prefixes and separator are frozen as soon as a location
exists under it, because changing them would orphan every issued code.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from stockkeeping.domain import stockkeeping
from stockkeeping.location.events import (
    LocationsGenerated,
    LocationStructureChanged,
    LocationStructureDefined,
)

DEFAULT_ZONE_PREFIX = "K"
DEFAULT_SHELF_PREFIX = "P"
DEFAULT_BIN_PREFIX = "D"
DEFAULT_SEPARATOR = "-"

_UNSET = object()


class CodeRejection(Enum):
    INVALID_FORMAT = "INVALID_FORMAT"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNKNOWN_STRUCTURE = "UNKNOWN_STRUCTURE"
    NOT_EXISTS = "NOT_EXISTS"
    INACTIVE = "INACTIVE"


@dataclass(frozen=True)
class CodeValidation:
    """Outcome of checking a raw code; rejections carry a reason instead of raising."""

    code: str
    zone: int | None = None
    shelf: int | None = None
    bin: int | None = None
    reason: CodeRejection | None = None
    message: str | None = None
    location_id: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.reason is None

    @property
    def segments(self) -> tuple[int, int, int] | None:
        if self.zone is None:
            return None
        return self.zone, self.shelf, self.bin

    def rejected(self, reason: CodeRejection, message: str) -> "CodeValidation":
        return CodeValidation(
            code=self.code,
            zone=self.zone,
            shelf=self.shelf,
            bin=self.bin,
            reason=reason,
            message=message,
        )


@stockkeeping.aggregate
class LocationStructure:
    """Prefixes, separator and segment maxima for one warehouse."""

    tenant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    zone_prefix = String(max_length=5, default=DEFAULT_ZONE_PREFIX)
    shelf_prefix = String(max_length=5, default=DEFAULT_SHELF_PREFIX)
    bin_prefix = String(max_length=5, default=DEFAULT_BIN_PREFIX)
    separator = String(max_length=3, default=DEFAULT_SEPARATOR)
    max_zones = Integer(required=True, min_value=1)
    max_shelves = Integer(required=True, min_value=1)
    max_bins = Integer(required=True, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        tenant_id,
        warehouse_id,
        max_zones,
        max_shelves,
        max_bins,
        zone_prefix=None,
        shelf_prefix=None,
        bin_prefix=None,
        separator=None,
    ):
        now = datetime.now(UTC)
        structure = cls(
            tenant_id=tenant_id,
            warehouse_id=warehouse_id,
            zone_prefix=zone_prefix or DEFAULT_ZONE_PREFIX,
            shelf_prefix=shelf_prefix or DEFAULT_SHELF_PREFIX,
            bin_prefix=bin_prefix or DEFAULT_BIN_PREFIX,
            separator=separator or DEFAULT_SEPARATOR,
            max_zones=max_zones,
            max_shelves=max_shelves,
            max_bins=max_bins,
            created_at=now,
            updated_at=now,
        )
        structure._check_grammar()
        structure.raise_(
            LocationStructureDefined(
                structure_id=str(structure.id),
                tenant_id=str(tenant_id),
                warehouse_id=str(warehouse_id),
                zone_prefix=structure.zone_prefix,
                shelf_prefix=structure.shelf_prefix,
                bin_prefix=structure.bin_prefix,
                separator=structure.separator,
                max_zones=max_zones,
                max_shelves=max_shelves,
                max_bins=max_bins,
                defined_at=now,
            )
        )
        return structure

    def _check_grammar(self) -> None:
        prefixes = (self.zone_prefix or "", self.shelf_prefix or "", self.bin_prefix or "")
        errors = {}
        if any(p and p[-1].isdigit() for p in prefixes):
            errors["prefix"] = ["Prefixes must not end with a digit"]
        if any(ch.isdigit() for ch in self.separator or ""):
            errors["separator"] = ["Separator must not contain digits"]
        if errors:
            raise ValidationError(errors)

    # -------------------------------------------------------------------
    # Code grammar
    # -------------------------------------------------------------------
    def build_code(self, zone: int, shelf: int, bin_: int) -> str:
        sep = self.separator
        return f"{self.zone_prefix}{zone}{sep}{self.shelf_prefix}{shelf}{sep}{self.bin_prefix}{bin_}"

    def _pattern(self) -> re.Pattern:
        sep = re.escape(self.separator)
        return re.compile(
            rf"^{re.escape(self.zone_prefix)}(\d+){sep}"
            rf"{re.escape(self.shelf_prefix)}(\d+){sep}"
            rf"{re.escape(self.bin_prefix)}(\d+)$"
        )

    def parse_code(self, raw: str) -> tuple[int, int, int] | None:
        """Split a code into its segment triplet, or ``None`` if it does not match."""
        match = self._pattern().match((raw or "").strip())
        if not match:
            return None
        zone, shelf, bin_ = (int(g) for g in match.groups())
        return zone, shelf, bin_

    def in_range(self, zone: int, shelf: int, bin_: int) -> bool:
        return 1 <= zone <= self.max_zones and 1 <= shelf <= self.max_shelves and 1 <= bin_ <= self.max_bins

    def validate(self, raw: str) -> CodeValidation:
        code = (raw or "").strip()
        segments = self.parse_code(code)
        if segments is None:
            return CodeValidation(
                code=code,
                reason=CodeRejection.INVALID_FORMAT,
                message=f"Expected a code like {self.build_code(1, 1, 1)}",
            )

        zone, shelf, bin_ = segments
        result = CodeValidation(code=code, zone=zone, shelf=shelf, bin=bin_)
        if not self.in_range(zone, shelf, bin_):
            return result.rejected(
                CodeRejection.OUT_OF_RANGE,
                f"Segments must be within 1..{self.max_zones}/1..{self.max_shelves}/1..{self.max_bins}",
            )
        return result

    # -------------------------------------------------------------------
    # Reconfiguration
    # -------------------------------------------------------------------
    def reconfigure(
        self,
        has_locations: bool,
        zone_prefix=_UNSET,
        shelf_prefix=_UNSET,
        bin_prefix=_UNSET,
        separator=_UNSET,
        max_zones=_UNSET,
        max_shelves=_UNSET,
        max_bins=_UNSET,
    ) -> None:
        """Change the structure. Prefixes and separator are frozen once locations exist."""
        grammar = {
            "zone_prefix": zone_prefix,
            "shelf_prefix": shelf_prefix,
            "bin_prefix": bin_prefix,
            "separator": separator,
        }
        grammar = {k: v for k, v in grammar.items() if v is not _UNSET and v is not None}
        changed = {k for k, v in grammar.items() if getattr(self, k) != v}
        if changed and has_locations:
            raise ValidationError(
                {field: ["Cannot change code grammar while locations exist"] for field in sorted(changed)}
            )

        maxima = {"max_zones": max_zones, "max_shelves": max_shelves, "max_bins": max_bins}
        maxima = {k: v for k, v in maxima.items() if v is not _UNSET and v is not None}

        for attr, value in {**grammar, **maxima}.items():
            setattr(self, attr, value)
        self._check_grammar()

        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationStructureChanged(
                structure_id=str(self.id),
                tenant_id=str(self.tenant_id),
                warehouse_id=str(self.warehouse_id),
                zone_prefix=self.zone_prefix,
                shelf_prefix=self.shelf_prefix,
                bin_prefix=self.bin_prefix,
                separator=self.separator,
                max_zones=self.max_zones,
                max_shelves=self.max_shelves,
                max_bins=self.max_bins,
                changed_at=self.updated_at,
            )
        )

    def record_generation(self, total_created: int, skipped: int, sample_codes: str) -> None:
        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationsGenerated(
                structure_id=str(self.id),
                tenant_id=str(self.tenant_id),
                warehouse_id=str(self.warehouse_id),
                total_created=total_created,
                skipped=skipped,
                sample_codes=sample_codes,
                generated_at=self.updated_at,
            )
        )


def validate(structure: LocationStructure | None, raw: str) -> CodeValidation:
    """Check ``raw`` against a warehouse's structure without raising."""
    if structure is None:
        return CodeValidation(
            code=(raw or "").strip(),
            reason=CodeRejection.UNKNOWN_STRUCTURE,
            message="The warehouse has no location structure",
        )
    return structure.validate(raw)
