"""SKU and StorageUnit — product master data used to enrich product lines.

Derived fields (cases per layer / layers per pallet / cases per pallet) are
maintained by `app.services.sku_calculator`. Each carries a `*_calculated`
marker: True means the stored value was derived and may be recomputed,
False means the user entered it and it must be left alone.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean, Date, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import TenantBase


class StorageUnit(TenantBase):
    """A storage footprint (pallet type) a SKU is stacked on."""
    __tablename__ = "storage_units"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    length_per_su_mm: Mapped[float | None] = mapped_column(Float)
    width_per_su_mm: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class SKU(TenantBase):
    __tablename__ = "skus"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sku_code", name="uq_skus_tenant_code"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    sku_code: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(255))
    customer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("customers.id")
    )
    storage_unit_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("storage_units.id")
    )

    # ── Handling ─────────────────────────────────────────────
    hu_per_su: Mapped[int | None] = mapped_column(Integer)
    receive_hu: Mapped[bool] = mapped_column(Boolean, default=False)
    pick_hu: Mapped[bool] = mapped_column(Boolean, default=False)
    # FIFO | FEFO
    pick_strategy: Mapped[str] = mapped_column(String(10), default="FIFO")

    # ── Dimensions per handling unit ─────────────────────────
    length_per_hu_mm: Mapped[float | None] = mapped_column(Float)
    width_per_hu_mm: Mapped[float | None] = mapped_column(Float)
    height_per_hu_mm: Mapped[float | None] = mapped_column(Float)
    weight_per_hu_kg: Mapped[float | None] = mapped_column(Float)

    # ── Stacking (derived unless overridden) ─────────────────
    cases_per_layer: Mapped[int | None] = mapped_column(Integer)
    layers_per_pallet: Mapped[int | None] = mapped_column(Integer)
    cases_per_pallet: Mapped[int | None] = mapped_column(Integer)
    cases_per_layer_calculated: Mapped[bool] = mapped_column(Boolean, default=False)
    layers_per_pallet_calculated: Mapped[bool] = mapped_column(Boolean, default=False)
    cases_per_pallet_calculated: Mapped[bool] = mapped_column(Boolean, default=False)
    eaches_per_case: Mapped[int | None] = mapped_column(Integer)

    # ── Tracked attributes ───────────────────────────────────
    is_expiry: Mapped[bool] = mapped_column(Boolean, default=False)
    is_attribute1: Mapped[bool] = mapped_column(Boolean, default=False)
    is_attribute2: Mapped[bool] = mapped_column(Boolean, default=False)
    expiry_date: Mapped[date | None] = mapped_column(Date)
    attribute1: Mapped[str | None] = mapped_column(String(100))
    attribute2: Mapped[str | None] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
