"""Pydantic schemas for warehouses."""

from datetime import datetime

from pydantic import BaseModel, Field


class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postcode: str | None = None
    is_active: bool = True


class WarehouseUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postcode: str | None = None
    is_active: bool | None = None


class WarehouseOut(BaseModel):
    id: str
    name: str
    street: str | None
    city: str | None
    state: str | None
    postcode: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
