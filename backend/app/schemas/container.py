"""Pydantic schemas for container bookings, containers and stock allocations."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.common import PartyRefIn, PartyRefOut
from app.schemas.inventory import LpnOut


# ── Bookings ─────────────────────────────────────────────────

class BookingFields(BaseModel):
    customer_reference: str | None = None
    booking_reference: str | None = None
    charge_to: PartyRefIn | None = None
    charge_to_contact_name: str | None = None
    charge_to_contact_number: str | None = None
    consignee_id: str | None = None
    consignor_id: str | None = None
    vessel_name: str | None = None
    voyage_number: str | None = None
    eta: datetime | None = None
    etd: datetime | None = None
    availability: datetime | None = None
    storage_start: date | None = None
    first_free_import_date: date | None = None
    receival_start: datetime | None = None
    cutoff: datetime | None = None
    from_name: str | None = None
    from_address: str | None = None
    from_city: str | None = None
    from_state: str | None = None
    from_postcode: str | None = None
    to_name: str | None = None
    to_address: str | None = None
    to_city: str | None = None
    to_state: str | None = None
    to_postcode: str | None = None
    container_sizes: list[str] | None = None
    container_quantities: dict[str, int] | None = None
    full_routing: dict | None = None
    empty_routing: dict | None = None
    instructions: str | None = None
    job_notes: str | None = None


class BookingCreate(BookingFields):
    pass


class BookingUpdate(BookingFields):
    pass


class BookingOut(BaseModel):
    id: str
    booking_type: str
    booking_code: str
    status: str
    customer_reference: str | None
    booking_reference: str | None
    charge_to: PartyRefOut | None = None
    charge_to_name: str | None
    charge_to_contact_name: str | None
    charge_to_contact_number: str | None
    consignee_id: str | None
    consignor_id: str | None
    vessel_name: str | None
    voyage_number: str | None
    eta: datetime | None
    etd: datetime | None
    availability: datetime | None
    storage_start: date | None
    first_free_import_date: date | None
    receival_start: datetime | None
    cutoff: datetime | None
    from_name: str | None
    from_address: str | None
    from_city: str | None
    from_state: str | None
    from_postcode: str | None
    to_name: str | None
    to_address: str | None
    to_city: str | None
    to_state: str | None
    to_postcode: str | None
    container_sizes: list[str] | None
    container_quantities: dict | None
    full_routing: dict | None
    empty_routing: dict | None
    instructions: str | None
    job_notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatusChange(BaseModel):
    status: str = Field(..., min_length=1)


# ── Containers ───────────────────────────────────────────────

class ContainerDetailCreate(BaseModel):
    container_number: str | None = Field(None, max_length=30)
    container_size: str | None = None
    iso_code: str | None = None
    seal_number: str | None = None
    shipping_line: str | None = None
    warehouse_id: str | None = None
    gross_weight: float | None = Field(None, ge=0)
    tare_weight: float | None = Field(None, ge=0)
    cargo_weight: float | None = Field(None, ge=0)


class ContainerDetailUpdate(BaseModel):
    container_number: str | None = Field(None, min_length=1, max_length=30)
    container_size: str | None = None
    iso_code: str | None = None
    seal_number: str | None = None
    shipping_line: str | None = None
    warehouse_id: str | None = None
    gross_weight: float | None = Field(None, ge=0)
    tare_weight: float | None = Field(None, ge=0)
    cargo_weight: float | None = Field(None, ge=0)


class ContainerDetailOut(BaseModel):
    id: str
    booking_id: str
    container_number: str
    container_size: str | None
    iso_code: str | None
    seal_number: str | None
    shipping_line: str | None
    warehouse_id: str | None
    gross_weight: float | None
    tare_weight: float | None
    cargo_weight: float | None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Stock allocations ────────────────────────────────────────

class AllocationLineIn(BaseModel):
    sku_id: str | None = None
    batch_number: str | None = None
    expected_qty: int | None = Field(None, ge=0)
    received_qty: int | None = Field(None, ge=0)
    allocated_qty: int | None = Field(None, ge=0)
    picked_qty: int | None = Field(None, ge=0)
    expected_weight: float | None = Field(None, ge=0)
    received_weight: float | None = Field(None, ge=0)
    location: str | None = None
    expiry_date: date | None = None
    attribute1: str | None = None
    attribute2: str | None = None


class AllocationLineOut(BaseModel):
    id: str
    position: int
    sku_id: str | None
    sku_description: str | None
    batch_number: str | None
    expected_qty: int | None
    received_qty: int | None
    allocated_qty: int | None
    picked_qty: int | None
    expected_weight: float | None
    received_weight: float | None
    lpn_qty: int | None
    sqm_per_su: float | None
    plt_qty: float | None
    pallet_spaces: float | None
    weight_per_hu: float | None
    expected_cubic_per_hu: float | None
    location: str | None
    expiry_date: date | None
    attribute1: str | None
    attribute2: str | None

    model_config = {"from_attributes": True}


class StockAllocationCreate(BaseModel):
    stage: str | None = None
    lines: list[AllocationLineIn] = Field(default_factory=list)


class StockAllocationUpdate(BaseModel):
    stage: str | None = None
    lines: list[AllocationLineIn] | None = None


class StockAllocationOut(BaseModel):
    id: str
    container_detail_id: str
    booking_id: str
    stage: str
    lines: list[AllocationLineOut]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Export LPN allocation ────────────────────────────────────

class ContainerAllocationItem(BaseModel):
    line_id: str
    lpn_ids: list[str] | None = None
    quantity: int | None = Field(None, gt=0)


class ContainerAllocateRequest(BaseModel):
    allocations: list[ContainerAllocationItem]


class ContainerAllocationResult(BaseModel):
    line_id: str
    allocated_lpns: list[str]
    allocated_qty: int
    expected_qty: int | None


class ContainerAllocateResponse(BaseModel):
    container_status: str
    results: list[ContainerAllocationResult]
    allocation: StockAllocationOut


class ContainerReleaseRequest(BaseModel):
    lpn_ids: list[str] | None = None


class ContainerReleaseResponse(BaseModel):
    container_status: str
    released_lpns: list[str]
    allocation: StockAllocationOut


class AllocationStockOut(BaseModel):
    line_id: str
    sku_id: str | None
    batch_number: str | None
    expected_qty: int | None
    allocated_qty: int | None
    available: list[LpnOut]
    allocated: list[LpnOut]


# ── Put-away / pickup ────────────────────────────────────────

class ContainerPalletIn(BaseModel):
    line_id: str
    hu_qty: int = Field(..., gt=0)
    location: str | None = None


class ContainerPutAwayRequest(BaseModel):
    allocation_id: str
    warehouse_id: str | None = None
    pallets: list[ContainerPalletIn]


class ContainerPickupCreate(BaseModel):
    allocation_id: str
    lpn_ids: list[str] = Field(default_factory=list)
    loosened_qty: int = Field(0, ge=0)
    buffer_qty: int = Field(0, ge=0)
    notes: str | None = None
    complete: bool = False
