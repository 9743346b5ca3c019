"""Pydantic schemas for shipping lines, vessels and container sizes."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

FreeDaysBasis = Literal[
    "availability_date", "first_free_import_date", "discharge_date", "full_gate_out",
]
ContainerAttribute = Literal["HC", "RF", "GP", "TK", "OT"]


# ── Shipping lines ───────────────────────────────────────────

class ShippingLineCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    contact_name: str | None = None
    contact_phone_number: str | None = None
    address_street: str | None = None
    address_city: str | None = None
    address_state: str | None = None
    address_postcode: str | None = None
    import_free_days: int | None = Field(None, ge=0)
    calculate_import_free_days_using: FreeDaysBasis | None = None


class ShippingLineUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    contact_name: str | None = None
    contact_phone_number: str | None = None
    address_street: str | None = None
    address_city: str | None = None
    address_state: str | None = None
    address_postcode: str | None = None
    import_free_days: int | None = Field(None, ge=0)
    calculate_import_free_days_using: FreeDaysBasis | None = None


class ShippingLineOut(BaseModel):
    id: str
    name: str
    email: str | None
    contact_name: str | None
    contact_phone_number: str | None
    address_street: str | None
    address_city: str | None
    address_state: str | None
    address_postcode: str | None
    import_free_days: int | None
    calculate_import_free_days_using: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Vessels ──────────────────────────────────────────────────

class VesselCreate(BaseModel):
    vessel_name: str = Field(..., min_length=1, max_length=255)
    job_type: Literal["import", "export"]
    voyage_number: str | None = None
    lloyds_number: str | None = None
    eta: datetime | None = None
    availability: datetime | None = None
    storage_start: datetime | None = None
    first_free_import_date: datetime | None = None
    etd: datetime | None = None
    receival_start: datetime | None = None
    cutoff: datetime | None = None
    reefer_cutoff: datetime | None = None


class VesselUpdate(BaseModel):
    vessel_name: str | None = Field(None, min_length=1, max_length=255)
    job_type: Literal["import", "export"] | None = None
    voyage_number: str | None = None
    lloyds_number: str | None = None
    eta: datetime | None = None
    availability: datetime | None = None
    storage_start: datetime | None = None
    first_free_import_date: datetime | None = None
    etd: datetime | None = None
    receival_start: datetime | None = None
    cutoff: datetime | None = None
    reefer_cutoff: datetime | None = None


class VesselOut(BaseModel):
    id: str
    vessel_name: str
    job_type: str
    voyage_number: str | None
    lloyds_number: str | None
    eta: datetime | None
    availability: datetime | None
    storage_start: datetime | None
    first_free_import_date: datetime | None
    etd: datetime | None
    receival_start: datetime | None
    cutoff: datetime | None
    reefer_cutoff: datetime | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Container sizes ──────────────────────────────────────────

class ContainerSizeCreate(BaseModel):
    size: int = Field(..., gt=0)
    description: str | None = None
    attribute: ContainerAttribute | None = None
    weight: float | None = Field(None, ge=0)


class ContainerSizeUpdate(BaseModel):
    size: int | None = Field(None, gt=0)
    description: str | None = None
    attribute: ContainerAttribute | None = None
    weight: float | None = Field(None, ge=0)


class ContainerSizeOut(BaseModel):
    id: str
    size: int
    description: str | None
    attribute: str | None
    weight: float | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
