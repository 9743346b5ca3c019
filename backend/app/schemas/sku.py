"""Pydantic schemas for storage units and SKUs.

Stacking fields (cases_per_layer, layers_per_pallet, cases_per_pallet) are
optional on input: omitted ones are derived, supplied ones are kept as
manual overrides.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class StorageUnitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    length_per_su_mm: float | None = Field(None, gt=0)
    width_per_su_mm: float | None = Field(None, gt=0)


class StorageUnitUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    length_per_su_mm: float | None = Field(None, gt=0)
    width_per_su_mm: float | None = Field(None, gt=0)


class StorageUnitOut(BaseModel):
    id: str
    name: str
    length_per_su_mm: float | None
    width_per_su_mm: float | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SKUBase(BaseModel):
    description: str | None = None
    customer_id: str | None = None
    storage_unit_id: str | None = None
    hu_per_su: int | None = Field(None, ge=0)
    receive_hu: bool | None = None
    pick_hu: bool | None = None
    pick_strategy: Literal["FIFO", "FEFO"] | None = None
    length_per_hu_mm: float | None = Field(None, ge=0)
    width_per_hu_mm: float | None = Field(None, ge=0)
    height_per_hu_mm: float | None = Field(None, ge=0)
    weight_per_hu_kg: float | None = Field(None, ge=0)
    cases_per_layer: int | None = Field(None, ge=0)
    layers_per_pallet: int | None = Field(None, ge=0)
    cases_per_pallet: int | None = Field(None, ge=0)
    eaches_per_case: int | None = Field(None, ge=0)
    is_expiry: bool | None = None
    is_attribute1: bool | None = None
    is_attribute2: bool | None = None
    expiry_date: date | None = None
    attribute1: str | None = None
    attribute2: str | None = None


class SKUCreate(SKUBase):
    sku_code: str = Field(..., min_length=1, max_length=100)


class SKUUpdate(SKUBase):
    sku_code: str | None = Field(None, min_length=1, max_length=100)


class SKUOut(BaseModel):
    id: str
    sku_code: str
    description: str | None
    customer_id: str | None
    storage_unit_id: str | None
    hu_per_su: int | None
    receive_hu: bool
    pick_hu: bool
    pick_strategy: str
    length_per_hu_mm: float | None
    width_per_hu_mm: float | None
    height_per_hu_mm: float | None
    weight_per_hu_kg: float | None
    cases_per_layer: int | None
    layers_per_pallet: int | None
    cases_per_pallet: int | None
    cases_per_layer_calculated: bool
    layers_per_pallet_calculated: bool
    cases_per_pallet_calculated: bool
    eaches_per_case: int | None
    is_expiry: bool
    is_attribute1: bool
    is_attribute2: bool
    expiry_date: date | None
    attribute1: str | None
    attribute2: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
