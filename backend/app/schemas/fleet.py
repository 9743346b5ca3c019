"""Pydantic schemas for transport companies, trailer types, vehicles, trailers and drivers."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

EmployeeType = Literal["casual", "permanent"]


# ── Transport companies ──────────────────────────────────────

class TransportCompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact: str | None = None
    mobile: str | None = None


class TransportCompanyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    contact: str | None = None
    mobile: str | None = None


class TransportCompanyOut(BaseModel):
    id: str
    name: str
    contact: str | None
    mobile: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Trailer types ────────────────────────────────────────────

class TrailerTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    max_weight_kg: float | None = Field(None, ge=0)
    max_cubic_m3: float | None = Field(None, ge=0)
    max_pallet: int | None = Field(None, ge=0)
    max_teu_capacity: int | None = Field(None, ge=0)
    trailer_a: bool = False
    trailer_b: bool = False
    trailer_c: bool = False


class TrailerTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    max_weight_kg: float | None = Field(None, ge=0)
    max_cubic_m3: float | None = Field(None, ge=0)
    max_pallet: int | None = Field(None, ge=0)
    max_teu_capacity: int | None = Field(None, ge=0)
    trailer_a: bool | None = None
    trailer_b: bool | None = None
    trailer_c: bool | None = None


class TrailerTypeOut(BaseModel):
    id: str
    name: str
    max_weight_kg: float | None
    max_cubic_m3: float | None
    max_pallet: int | None
    max_teu_capacity: int | None
    trailer_a: bool
    trailer_b: bool
    trailer_c: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Vehicles ─────────────────────────────────────────────────

class VehicleCreate(BaseModel):
    rego: str = Field(..., min_length=1, max_length=20)
    fleet_number: str | None = None
    rego_expiry_date: date | None = None
    gps_id: str | None = None
    description: str | None = None
    default_depot_id: str | None = None
    a_trailer_type_id: str | None = None
    b_trailer_type_id: str | None = None
    c_trailer_type_id: str | None = None
    sideloader: bool = False


class VehicleUpdate(BaseModel):
    rego: str | None = Field(None, min_length=1, max_length=20)
    fleet_number: str | None = None
    rego_expiry_date: date | None = None
    gps_id: str | None = None
    description: str | None = None
    default_depot_id: str | None = None
    a_trailer_type_id: str | None = None
    b_trailer_type_id: str | None = None
    c_trailer_type_id: str | None = None
    sideloader: bool | None = None


class VehicleOut(BaseModel):
    id: str
    rego: str
    fleet_number: str | None
    rego_expiry_date: date | None
    gps_id: str | None
    description: str | None
    default_depot_id: str | None
    a_trailer_type_id: str | None
    b_trailer_type_id: str | None
    c_trailer_type_id: str | None
    sideloader: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Trailers ─────────────────────────────────────────────────

class TrailerCreate(BaseModel):
    rego: str = Field(..., min_length=1, max_length=20)
    fleet_number: str | None = None
    rego_expiry_date: date | None = None
    trailer_type_id: str | None = None
    max_weight_kg: float | None = Field(None, ge=0)
    max_cube_m3: float | None = Field(None, ge=0)
    max_pallet: int | None = Field(None, ge=0)
    default_warehouse_id: str | None = None
    dangerous_cert_number: str | None = None
    dangerous_cert_expiry: date | None = None
    description: str | None = None


class TrailerUpdate(BaseModel):
    rego: str | None = Field(None, min_length=1, max_length=20)
    fleet_number: str | None = None
    rego_expiry_date: date | None = None
    trailer_type_id: str | None = None
    max_weight_kg: float | None = Field(None, ge=0)
    max_cube_m3: float | None = Field(None, ge=0)
    max_pallet: int | None = Field(None, ge=0)
    default_warehouse_id: str | None = None
    dangerous_cert_number: str | None = None
    dangerous_cert_expiry: date | None = None
    description: str | None = None


class TrailerOut(BaseModel):
    id: str
    rego: str
    fleet_number: str | None
    rego_expiry_date: date | None
    trailer_type_id: str | None
    max_weight_kg: float | None
    max_cube_m3: float | None
    max_pallet: int | None
    default_warehouse_id: str | None
    dangerous_cert_number: str | None
    dangerous_cert_expiry: date | None
    description: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Drivers ──────────────────────────────────────────────────

class DriverCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=30)
    employee_type: EmployeeType
    driving_licence_number: str = Field(..., min_length=1, max_length=50)
    licence_expiry: date | None = None
    vehicle_id: str | None = None
    default_depot_id: str | None = None
    abn: str | None = None
    address_street: str | None = None
    address_city: str | None = None
    address_state: str | None = None
    address_postcode: str | None = None
    dangerous_goods_cert_number: str | None = None
    dangerous_goods_cert_expiry: date | None = None
    msic_number: str | None = None
    msic_expiry: date | None = None


class DriverUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone_number: str | None = Field(None, min_length=1, max_length=30)
    employee_type: EmployeeType | None = None
    driving_licence_number: str | None = Field(None, min_length=1, max_length=50)
    licence_expiry: date | None = None
    vehicle_id: str | None = None
    default_depot_id: str | None = None
    abn: str | None = None
    address_street: str | None = None
    address_city: str | None = None
    address_state: str | None = None
    address_postcode: str | None = None
    dangerous_goods_cert_number: str | None = None
    dangerous_goods_cert_expiry: date | None = None
    msic_number: str | None = None
    msic_expiry: date | None = None


class DriverOut(BaseModel):
    id: str
    name: str
    phone_number: str
    employee_type: str
    driving_licence_number: str
    licence_expiry: date | None
    vehicle_id: str | None
    default_depot_id: str | None
    abn: str | None
    address_street: str | None
    address_city: str | None
    address_state: str | None
    address_postcode: str | None
    dangerous_goods_cert_number: str | None
    dangerous_goods_cert_expiry: date | None
    msic_number: str | None
    msic_expiry: date | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
