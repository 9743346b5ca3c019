"""Pydantic schemas for tenant registration and approval."""

from datetime import datetime

from pydantic import BaseModel, Field


class TenantRegister(BaseModel):
    company_name: str | None = Field(None, max_length=255)
    full_name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = None
    fax: str | None = None
    abn: str | None = None
    acn: str | None = None
    website: str | None = None
    scac: str | None = None
    emails: dict | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country_code: str | None = Field(None, max_length=2)
    data_region: str | None = None
    privacy_consent: bool = False


class TenantOut(BaseModel):
    id: str
    company_name: str
    full_name: str | None
    email: str
    phone: str | None
    subdomain: str | None
    approved: bool
    onboarding_step: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SubdomainCheck(BaseModel):
    available: bool
    subdomain: str
    message: str


class TenantApproval(BaseModel):
    tenant: TenantOut
    roles_created: list[str]
