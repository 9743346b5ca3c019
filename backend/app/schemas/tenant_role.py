"""Pydantic schemas for tenant roles."""

from datetime import datetime

from pydantic import BaseModel, Field


class TenantRoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    permissions: dict[str, bool] = Field(default_factory=dict)
    is_active: bool = True


class TenantRoleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    permissions: dict[str, bool] | None = None
    is_active: bool | None = None


class TenantRoleOut(BaseModel):
    id: str
    name: str
    description: str | None
    is_system_role: bool
    permissions: dict | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
