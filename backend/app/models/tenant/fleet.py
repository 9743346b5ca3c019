"""Fleet: transport companies, trailer types, vehicles, trailers and drivers.

Master data only. Bookings keep their own carrier snapshots, so
deactivating an asset never rewrites history.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import TenantBase

EMPLOYEE_TYPES = ("casual", "permanent")


class TransportCompany(TenantBase):
    __tablename__ = "transport_companies"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str | None] = mapped_column(String(255))
    mobile: Mapped[str | None] = mapped_column(String(30))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class TrailerType(TenantBase):
    """A trailer configuration. The a/b/c flags say which hitch positions it can take."""

    __tablename__ = "trailer_types"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    max_weight_kg: Mapped[float | None] = mapped_column(Float)
    max_cubic_m3: Mapped[float | None] = mapped_column(Float)
    max_pallet: Mapped[int | None] = mapped_column(Integer)
    max_teu_capacity: Mapped[int | None] = mapped_column(Integer)
    trailer_a: Mapped[bool] = mapped_column(Boolean, default=False)
    trailer_b: Mapped[bool] = mapped_column(Boolean, default=False)
    trailer_c: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Vehicle(TenantBase):
    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    fleet_number: Mapped[str | None] = mapped_column(String(50))
    rego: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    rego_expiry_date: Mapped[date | None] = mapped_column(Date)
    gps_id: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    default_depot_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id")
    )
    # Trailer types the prime mover can pull, front to back
    a_trailer_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trailer_types.id")
    )
    b_trailer_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trailer_types.id")
    )
    c_trailer_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trailer_types.id")
    )
    sideloader: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Trailer(TenantBase):
    __tablename__ = "trailers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    fleet_number: Mapped[str | None] = mapped_column(String(50))
    rego: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    rego_expiry_date: Mapped[date | None] = mapped_column(Date)
    trailer_type_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trailer_types.id")
    )
    max_weight_kg: Mapped[float | None] = mapped_column(Float)
    max_cube_m3: Mapped[float | None] = mapped_column(Float)
    max_pallet: Mapped[int | None] = mapped_column(Integer)
    default_warehouse_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id")
    )
    dangerous_cert_number: Mapped[str | None] = mapped_column(String(100))
    dangerous_cert_expiry: Mapped[date | None] = mapped_column(Date)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Driver(TenantBase):
    __tablename__ = "drivers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)
    # casual | permanent
    employee_type: Mapped[str] = mapped_column(String(20), nullable=False)
    vehicle_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("vehicles.id"))
    default_depot_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id")
    )
    abn: Mapped[str | None] = mapped_column(String(20))

    # ── Address ──────────────────────────────────────────────
    address_street: Mapped[str | None] = mapped_column(String(255))
    address_city: Mapped[str | None] = mapped_column(String(100))
    address_state: Mapped[str | None] = mapped_column(String(50))
    address_postcode: Mapped[str | None] = mapped_column(String(20))

    # ── Licences and certificates ────────────────────────────
    driving_licence_number: Mapped[str] = mapped_column(String(50), nullable=False)
    licence_expiry: Mapped[date | None] = mapped_column(Date)
    dangerous_goods_cert_number: Mapped[str | None] = mapped_column(String(100))
    dangerous_goods_cert_expiry: Mapped[date | None] = mapped_column(Date)
    msic_number: Mapped[str | None] = mapped_column(String(50))
    msic_expiry: Mapped[date | None] = mapped_column(Date)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
