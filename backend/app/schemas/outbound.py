"""Pydantic schemas for outbound jobs, allocation and pickups."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.common import PartyRefIn, PartyRefOut


class OutboundLineIn(BaseModel):
    sku_id: str | None = None
    batch_number: str | None = None
    expiry: date | None = None
    attribute1: str | None = None
    attribute2: str | None = None
    expected_qty: int | None = Field(None, ge=0)
    expected_weight: float | None = Field(None, ge=0)
    container_number: str | None = None
    location: str | None = None


class OutboundLineOut(BaseModel):
    id: str
    outbound_inventory_id: str
    sku_id: str | None
    sku_description: str | None
    batch_number: str | None
    expiry: date | None
    attribute1: str | None
    attribute2: str | None
    expected_qty: int | None
    allocated_qty: int
    expected_weight: float | None
    allocated_weight: float | None
    required_cubic_per_hu: float | None
    allocated_cubic_per_hu: float | None
    plt_qty: float | None
    container_number: str | None
    location: str | None

    model_config = {"from_attributes": True}


class OutboundCreate(BaseModel):
    customer_ref_number: str | None = None
    consignee_ref_number: str | None = None
    container_number: str | None = None
    inspection_number: str | None = None
    inbound_job_number: str | None = None
    warehouse_id: str | None = None
    customer: PartyRefIn | None = None
    customer_to: PartyRefIn | None = None
    customer_from: PartyRefIn | None = None
    required_date_time: datetime | None = None
    order_notes: str | None = None
    pallet_count: int | None = Field(None, ge=0)
    lines: list[OutboundLineIn] = Field(default_factory=list)


class OutboundUpdate(BaseModel):
    customer_ref_number: str | None = None
    consignee_ref_number: str | None = None
    container_number: str | None = None
    inspection_number: str | None = None
    inbound_job_number: str | None = None
    warehouse_id: str | None = None
    customer: PartyRefIn | None = None
    customer_to: PartyRefIn | None = None
    customer_from: PartyRefIn | None = None
    required_date_time: datetime | None = None
    order_notes: str | None = None
    pallet_count: int | None = Field(None, ge=0)


class OutboundOut(BaseModel):
    id: str
    job_code: str
    status: str
    customer_ref_number: str | None
    consignee_ref_number: str | None
    container_number: str | None
    inspection_number: str | None
    inbound_job_number: str | None
    warehouse_id: str | None
    customer: PartyRefOut | None = None
    customer_name: str | None
    customer_location: str | None
    customer_state: str | None
    customer_contact: str | None
    customer_to: PartyRefOut | None = None
    customer_to_name: str | None
    customer_to_location: str | None
    customer_to_state: str | None
    customer_to_contact: str | None
    customer_from: PartyRefOut | None = None
    customer_from_name: str | None
    customer_from_location: str | None
    customer_from_state: str | None
    customer_from_contact: str | None
    required_date_time: datetime | None
    order_notes: str | None
    pallet_count: int | None
    created_at: datetime
    updated_at: datetime
    lines: list[OutboundLineOut] = []

    model_config = {"from_attributes": True}


# ── Allocation ───────────────────────────────────────────────

class AllocationItem(BaseModel):
    product_line_id: str
    batch_number: str | None = None
    lpn_ids: list[str] | None = None
    quantity: int | None = Field(None, gt=0)


class AllocateRequest(BaseModel):
    allocations: list[AllocationItem]


class AllocationResult(BaseModel):
    product_line_id: str
    allocated_lpns: list[str]
    allocated_qty: int
    expected_qty: int | None


class AllocateResponse(BaseModel):
    status: str
    results: list[AllocationResult]


class ReleaseRequest(BaseModel):
    product_line_id: str
    lpn_ids: list[str] | None = None


class ReleaseResponse(BaseModel):
    status: str
    released_lpns: list[str]


# ── Pickups ──────────────────────────────────────────────────

class PickupCreate(BaseModel):
    product_line_id: str
    lpn_ids: list[str] = Field(default_factory=list)
    loosened_qty: int = Field(0, ge=0)
    buffer_qty: int = Field(0, ge=0)
    notes: str | None = None
    complete: bool = False


class PickupOut(BaseModel):
    id: str
    outbound_inventory_id: str | None
    outbound_product_line_id: str | None
    container_detail_id: str | None
    container_stock_allocation_id: str | None
    picked_up_lpns: list[dict] | None
    picked_up_loosened_qty: int
    buffer_qty: int
    picked_up_qty: int
    final_picked_up_qty: int
    pickup_status: str
    picked_up_by: str | None
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
