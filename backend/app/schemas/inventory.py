"""Pydantic schemas for LPN records and aggregated inventory."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class LpnUpdate(BaseModel):
    allocation_status: Literal["available", "allocated", "picked"] | None = None
    outbound_inventory_id: str | None = None
    outbound_product_line_id: str | None = None
    location: str | None = None
    hu_qty: int | None = Field(None, ge=0)
    batch_number: str | None = None


class LpnBatchUpdateItem(LpnUpdate):
    id: str


class LpnBatchGet(BaseModel):
    ids: list[str]


class LpnBatchUpdate(BaseModel):
    updates: list[LpnBatchUpdateItem]


class LpnRef(BaseModel):
    id: str
    sku_id: str | None
    warehouse_id: str | None


class LpnBatchResult(BaseModel):
    id: str
    success: bool
    error: str | None = None


class LpnOut(BaseModel):
    id: str
    lpn_number: str
    inbound_inventory_id: str | None
    inbound_product_line_id: str | None
    container_detail_id: str | None
    container_stock_allocation_id: str | None
    sku_id: str | None
    batch_number: str | None
    warehouse_id: str | None
    location: str | None
    hu_qty: int
    allocation_status: str
    outbound_inventory_id: str | None
    outbound_product_line_id: str | None
    export_allocation_id: str | None
    allocated_at: datetime | None
    allocated_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AggregatedInventoryOut(BaseModel):
    sku_id: str
    sku_code: str
    sku_description: str
    batch_number: str | None
    qty_available: int
    qty_received: int
    qty_allocated: int
    qty_picked: int
    qty_dispatched: int
    qty_hold: int
    statuses: list[str]
    batches: list[str]
    lpns: list[str]
    locations: list[str]
    inbound_job_codes: list[str]
    customer_references: list[str]
    container_numbers: list[str]
    expiry: date | None
    attribute1: str | None
    attribute2: str | None
    customer_name: str | None

    model_config = {"from_attributes": True}


class InventoryResponse(BaseModel):
    items: list[AggregatedInventoryOut]
    location_range: str
