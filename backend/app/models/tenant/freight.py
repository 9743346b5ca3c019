"""Shipping lines, vessels and container sizes."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import TenantBase

# Which date a shipping line starts counting import free days from
FREE_DAYS_BASES = (
    "availability_date", "first_free_import_date", "discharge_date", "full_gate_out",
)

VESSEL_JOB_TYPES = ("import", "export")

# HC high cube, RF reefer, GP general purpose, TK tank, OT open top
CONTAINER_ATTRIBUTES = ("HC", "RF", "GP", "TK", "OT")


class ShippingLine(TenantBase):
    """A carrier like MSC, Maersk or CMA CGM."""

    __tablename__ = "shipping_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    contact_name: Mapped[str | None] = mapped_column(String(255))
    contact_phone_number: Mapped[str | None] = mapped_column(String(30))
    address_street: Mapped[str | None] = mapped_column(String(255))
    address_city: Mapped[str | None] = mapped_column(String(100))
    address_state: Mapped[str | None] = mapped_column(String(50))
    address_postcode: Mapped[str | None] = mapped_column(String(20))
    import_free_days: Mapped[int | None] = mapped_column(Integer)
    calculate_import_free_days_using: Mapped[str | None] = mapped_column(String(30))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Vessel(TenantBase):
    """A vessel call (one voyage) with its terminal dates."""

    __tablename__ = "vessels"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    vessel_name: Mapped[str] = mapped_column(String(255), nullable=False)
    voyage_number: Mapped[str | None] = mapped_column(String(50))
    lloyds_number: Mapped[str | None] = mapped_column(String(20))
    # import | export
    job_type: Mapped[str] = mapped_column(String(10), nullable=False)

    # ── Import dates ─────────────────────────────────────────
    eta: Mapped[datetime | None] = mapped_column(DateTime)
    availability: Mapped[datetime | None] = mapped_column(DateTime)
    storage_start: Mapped[datetime | None] = mapped_column(DateTime)
    first_free_import_date: Mapped[datetime | None] = mapped_column(DateTime)

    # ── Export dates ─────────────────────────────────────────
    etd: Mapped[datetime | None] = mapped_column(DateTime)
    receival_start: Mapped[datetime | None] = mapped_column(DateTime)
    cutoff: Mapped[datetime | None] = mapped_column(DateTime)
    reefer_cutoff: Mapped[datetime | None] = mapped_column(DateTime)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class ContainerSize(TenantBase):
    __tablename__ = "container_sizes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # Length in feet: 20, 40, 45
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    attribute: Mapped[str | None] = mapped_column(String(2))
    weight: Mapped[float | None] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
