"""SKU derived fields and product-line enrichment.

Unit conversions (dimensions are stored in millimetres):
  cubic per handling unit  = L × W × H / 1e9      → m³
  footprint per storage SU = L × W / 1e6          → m²

Stacking:
  cases_per_layer   = floor(L_su / L_hu) × floor(W_su / W_hu)
  layers_per_pallet = floor(hu_per_su / cases_per_layer)
  cases_per_pallet  = cases_per_layer × layers_per_pallet

A stacking field is (re)derived only when it is empty or its
`<field>_calculated` marker is set, and only when the result is positive.
A value the user supplies explicitly clears the marker, so manual
overrides survive later saves.

The enrich_* helpers copy SKU facts onto inbound, outbound and container
allocation product lines. They accept any object with the right attributes.
"""

import logging
import math

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tenant.sku import SKU, StorageUnit

logger = logging.getLogger("containa.sku")

STACKING_FIELDS = ("cases_per_layer", "layers_per_pallet", "cases_per_pallet")


# ── Pure calculations ───────────────────────────────────────

def cubic_per_hu(length_mm, width_mm, height_mm) -> float | None:
    if not (length_mm and width_mm and height_mm):
        return None
    return length_mm * width_mm * height_mm / 1e9


def sqm_per_su(length_mm, width_mm) -> float | None:
    if not (length_mm and width_mm):
        return None
    return length_mm * width_mm / 1e6


def calc_cases_per_layer(length_su, width_su, length_hu, width_hu) -> int | None:
    if not (length_su and width_su and length_hu and width_hu):
        return None
    return math.floor(length_su / length_hu) * math.floor(width_su / width_hu)


def calc_layers_per_pallet(hu_per_su, cases_per_layer) -> int | None:
    if not (hu_per_su and cases_per_layer):
        return None
    return math.floor(hu_per_su / cases_per_layer)


def calc_cases_per_pallet(cases_per_layer, layers_per_pallet) -> int | None:
    if not (cases_per_layer and layers_per_pallet):
        return None
    return cases_per_layer * layers_per_pallet


def ratio(numerator, denominator) -> float | None:
    if not numerator or not denominator:
        return None
    return numerator / denominator


# ── SKU derived fields ──────────────────────────────────────

def _may_derive(sku, field: str) -> bool:
    return not getattr(sku, field) or bool(getattr(sku, f"{field}_calculated"))


def _set_derived(sku, field: str, value) -> None:
    if value is not None and value > 0:
        setattr(sku, field, value)
        setattr(sku, f"{field}_calculated", True)


def apply_derived_fields(sku, storage_unit=None, overridden: set[str] | frozenset[str] = frozenset()) -> None:
    """Fill the stacking fields of `sku` in place.

    `overridden` names stacking fields the caller supplied in this write;
    they are treated as manual values from now on.
    """
    for field in overridden:
        if field in STACKING_FIELDS:
            setattr(sku, f"{field}_calculated", False)

    if storage_unit is not None and _may_derive(sku, "cases_per_layer"):
        _set_derived(sku, "cases_per_layer", calc_cases_per_layer(
            storage_unit.length_per_su_mm,
            storage_unit.width_per_su_mm,
            sku.length_per_hu_mm,
            sku.width_per_hu_mm,
        ))

    if _may_derive(sku, "layers_per_pallet"):
        _set_derived(sku, "layers_per_pallet", calc_layers_per_pallet(
            sku.hu_per_su, sku.cases_per_layer
        ))

    if _may_derive(sku, "cases_per_pallet"):
        _set_derived(sku, "cases_per_pallet", calc_cases_per_pallet(
            sku.cases_per_layer, sku.layers_per_pallet
        ))


# ── Product-line enrichment ─────────────────────────────────

def _copy_tracked_attributes(line, sku, expiry_field: str) -> None:
    if sku.is_expiry and getattr(line, expiry_field) is None:
        setattr(line, expiry_field, sku.expiry_date)
    if sku.is_attribute1 and line.attribute1 is None:
        line.attribute1 = sku.attribute1
    if sku.is_attribute2 and line.attribute2 is None:
        line.attribute2 = sku.attribute2


def enrich_inbound_line(line, sku, storage_unit=None) -> None:
    """Inbound and import-allocation lines: footprint, cubic, pallet spaces."""
    line.sku_description = sku.description
    line.lpn_qty = sku.hu_per_su
    line.weight_per_hu = sku.weight_per_hu_kg
    line.expected_cubic_per_hu = cubic_per_hu(
        sku.length_per_hu_mm, sku.width_per_hu_mm, sku.height_per_hu_mm
    )
    if storage_unit is not None:
        line.sqm_per_su = sqm_per_su(
            storage_unit.length_per_su_mm, storage_unit.width_per_su_mm
        )
    line.pallet_spaces = ratio(line.expected_qty, line.lpn_qty)
    _copy_tracked_attributes(line, sku, "expiry_date")


def enrich_allocation_line(line, sku, storage_unit=None) -> None:
    """Container allocation lines carry both import and export quantities."""
    enrich_inbound_line(line, sku, storage_unit)
    line.plt_qty = ratio(line.allocated_qty, line.lpn_qty)


def enrich_outbound_line(line, sku) -> None:
    line.sku_description = sku.description
    line.required_cubic_per_hu = cubic_per_hu(
        sku.length_per_hu_mm, sku.width_per_hu_mm, sku.height_per_hu_mm
    )
    line.plt_qty = ratio(line.allocated_qty, sku.hu_per_su)
    _copy_tracked_attributes(line, sku, "expiry")


# ── Loading ─────────────────────────────────────────────────

async def load_sku(
    db: AsyncSession, tenant_id: str, sku_id: str | None
) -> tuple[SKU | None, StorageUnit | None]:
    """Load a SKU and its storage unit for enrichment.

    Missing records are logged and reported as None; callers save the line
    without enrichment.
    """
    if not sku_id:
        return None, None
    sku = (await db.execute(
        select(SKU).where(SKU.id == sku_id, SKU.tenant_id == tenant_id)
    )).scalar_one_or_none()
    if sku is None:
        logger.warning("SKU %s not found for tenant %s; line saved unenriched", sku_id, tenant_id)
        return None, None

    storage_unit = None
    if sku.storage_unit_id:
        storage_unit = (await db.execute(
            select(StorageUnit).where(
                StorageUnit.id == sku.storage_unit_id,
                StorageUnit.tenant_id == tenant_id,
            )
        )).scalar_one_or_none()
        if storage_unit is None:
            logger.warning("Storage unit %s for SKU %s not found", sku.storage_unit_id, sku.sku_code)
    return sku, storage_unit
