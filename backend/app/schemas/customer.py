"""Pydantic schemas for customers and paying customers."""

from datetime import datetime

from pydantic import BaseModel, Field


class CustomerCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    email: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postcode: str | None = None


class CustomerUpdate(BaseModel):
    customer_name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postcode: str | None = None


class CustomerOut(BaseModel):
    id: str
    customer_name: str
    email: str | None
    contact_name: str | None
    contact_phone: str | None
    street: str | None
    city: str | None
    state: str | None
    postcode: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PayingCustomerCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    abn: str | None = None
    email: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    billing_street: str | None = None
    billing_city: str | None = None
    billing_state: str | None = None
    billing_postcode: str | None = None
    delivery_same_as_billing: bool = False
    delivery_street: str | None = None
    delivery_city: str | None = None
    delivery_state: str | None = None
    delivery_postcode: str | None = None


class PayingCustomerUpdate(BaseModel):
    customer_name: str | None = Field(None, min_length=1, max_length=255)
    abn: str | None = None
    email: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    billing_street: str | None = None
    billing_city: str | None = None
    billing_state: str | None = None
    billing_postcode: str | None = None
    delivery_same_as_billing: bool | None = None
    delivery_street: str | None = None
    delivery_city: str | None = None
    delivery_state: str | None = None
    delivery_postcode: str | None = None


class PayingCustomerOut(BaseModel):
    id: str
    customer_name: str
    abn: str | None
    email: str | None
    contact_name: str | None
    contact_phone: str | None
    billing_street: str | None
    billing_city: str | None
    billing_state: str | None
    billing_postcode: str | None
    delivery_same_as_billing: bool
    delivery_street: str | None
    delivery_city: str | None
    delivery_state: str | None
    delivery_postcode: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
