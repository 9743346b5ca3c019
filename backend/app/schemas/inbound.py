"""Pydantic schemas for inbound jobs, receiving and put-away."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.common import PartyRefIn, PartyRefOut


class InboundLineIn(BaseModel):
    sku_id: str | None = None
    batch_number: str | None = None
    expected_qty: int | None = Field(None, ge=0)
    expected_weight: float | None = Field(None, ge=0)
    expiry_date: date | None = None
    attribute1: str | None = None
    attribute2: str | None = None


class InboundLineOut(BaseModel):
    id: str
    inbound_inventory_id: str
    sku_id: str | None
    sku_description: str | None
    batch_number: str | None
    lpn_qty: int | None
    expected_qty: int | None
    received_qty: int | None
    expected_weight: float | None
    received_weight: float | None
    sqm_per_su: float | None
    pallet_spaces: float | None
    weight_per_hu: float | None
    expected_cubic_per_hu: float | None
    received_cubic_per_hu: float | None
    expiry_date: date | None
    attribute1: str | None
    attribute2: str | None

    model_config = {"from_attributes": True}


class InboundCreate(BaseModel):
    expected_date: date | None = None
    delivery_customer_reference: str | None = None
    ordering_customer_reference: str | None = None
    delivery_customer: PartyRefIn | None = None
    customer_contact_name: str | None = None
    supplier_name: str | None = None
    transport_mode: str | None = None
    warehouse_id: str | None = None
    notes: str | None = None
    lines: list[InboundLineIn] = Field(default_factory=list)


class InboundUpdate(BaseModel):
    expected_date: date | None = None
    delivery_customer_reference: str | None = None
    ordering_customer_reference: str | None = None
    delivery_customer: PartyRefIn | None = None
    customer_contact_name: str | None = None
    supplier_name: str | None = None
    transport_mode: str | None = None
    warehouse_id: str | None = None
    notes: str | None = None


class InboundOut(BaseModel):
    id: str
    job_code: str
    expected_date: date | None
    completed_date: datetime | None
    delivery_customer_reference: str | None
    ordering_customer_reference: str | None
    delivery_customer: PartyRefOut | None = None
    customer_name: str | None
    customer_location: str | None
    customer_state: str | None
    customer_contact_name: str | None
    supplier_name: str | None
    transport_mode: str | None
    warehouse_id: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
    lines: list[InboundLineOut] = []

    model_config = {"from_attributes": True}


class ReceiptIn(BaseModel):
    product_line_id: str
    received_qty: int = Field(..., ge=0)
    received_weight: float | None = Field(None, ge=0)
    received_cubic_per_hu: float | None = Field(None, ge=0)


class ReceiveRequest(BaseModel):
    lines: list[ReceiptIn]


class PalletIn(BaseModel):
    hu_qty: int = Field(..., gt=0)
    location: str | None = None


class PutAwayRequest(BaseModel):
    product_line_id: str
    warehouse_id: str | None = None
    pallets: list[PalletIn]
